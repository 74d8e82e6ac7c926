"""Path items: the operations bound to one fully resolved path."""

from typing import TYPE_CHECKING

from doc_router.errors import BuildError
from doc_router.openapi.models import Param
from doc_router.openapi.operation import Operation

if TYPE_CHECKING:
    from doc_router.openapi.document import Document

# serialization order of operations within a path item
METHODS = ("get", "put", "post", "delete", "options", "head", "patch", "trace")


class PathItem:
    def __init__(self, path: str, document: "Document | None", parameters: list[Param] | None = None):
        self.path = path
        self.document = document
        # path-level params, fixed by the scope chain that created the item
        self.parameters: list[Param] = list(parameters or [])
        self.operations: dict[str, Operation] = {}

    def root(self) -> "Document":
        if self.document is None:
            raise BuildError(f"path {self.path} is not attached to a document")
        return self.document

    def add_operation(self, method: str, inherited: list[Param] | None = None) -> Operation:
        method = method.lower()
        if method not in METHODS:
            raise BuildError(f"unsupported HTTP method {method.upper()} on {self.path}")
        if method in self.operations:
            raise BuildError(f"path {self.path} already has a {method} operation")
        op = Operation(method, self, inherited=inherited)
        self.operations[method] = op
        return op

    def parameter_names(self) -> set[str]:
        return {p.name for p in self.parameters if p.name}

    def to_dict(self) -> dict:
        data = {}
        for method in METHODS:
            if method in self.operations:
                data[method] = self.operations[method].to_dict()
        if self.parameters:
            data["parameters"] = [p.to_dict() for p in self.parameters]
        return data
