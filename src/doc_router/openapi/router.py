"""Scope tree mirroring nested route groups.

A router is one level of path nesting. Routers grouped in several levels
share parameters (path/query/header/cookie) and tags with their
descendants; what an operation inherits is computed from the whole ancestor
chain when the operation is registered.
"""

import logging
from typing import TYPE_CHECKING, Any, Callable

from doc_router.errors import BuildError
from doc_router.openapi.models import Param, ParamLocation, Schema
from doc_router.openapi.operation import Operation
from doc_router.openapi.schema import primitive_schema, to_example
from doc_router.paths import join_paths, to_openapi_path

if TYPE_CHECKING:
    from doc_router.openapi.document import Document

logger = logging.getLogger(__name__)

OpFn = Callable[[Operation], Any]


class Router:
    """One scope node: a path segment plus the params and tags it hands down.

    ``sub`` and ``route`` grow the tree; the verb methods register an
    operation under this node's full path, inheriting from every ancestor.
    """

    def __init__(self, document: "Document | None", parent: "Router | None" = None, segment: str = "/"):
        self.document = document
        self.parent = parent
        self.segment = segment
        self.tags: list[str] = []
        self.params: list[Param] = []
        self.children: dict[str, Router] = {}

    def root(self) -> "Document":
        if self.document is None:
            raise BuildError(f"router {self.full_path() or '/'} has no document attached")
        return self.document

    # inherited state

    def chain(self) -> list["Router"]:
        """This router and its ancestors, outermost first."""
        nodes = []
        node = self
        while node is not None:
            nodes.append(node)
            node = node.parent
        nodes.reverse()
        return nodes

    def full_path(self, relative: str = "") -> str:
        return join_paths(*[node.segment for node in self.chain()], relative)

    def inherited_params(self) -> list[Param]:
        params = []
        seen = set()
        for node in self.chain():
            for param in node.params:
                if param.name in seen:
                    raise BuildError(
                        f"duplicate parameter {param.name!r} declared on {node.full_path() or '/'} "
                        "and one of its parent routes"
                    )
                seen.add(param.name)
                params.append(param)
        return params

    def inherited_tags(self) -> list[str]:
        tags = []
        for node in self.chain():
            for tag in node.tags:
                if tag not in tags:
                    tags.append(tag)
        return tags

    # local declarations

    def with_param(self, param: Param) -> "Router":
        if not ParamLocation.is_valid(param.location):
            raise BuildError(f"invalid param location {param.location!r} for {param.name!r}")
        if any(p.name == param.name for p in self.params):
            raise BuildError(f"duplicate parameter {param.name!r} on {self.full_path() or '/'}")
        if param.location == ParamLocation.PATH:
            param.required = True
            param.schema_ = param.schema_ or Schema(type="string")
        self.params.append(param)
        return self

    def add_parameter(self, location: str, name: str, description: str = "", required: bool = False) -> "Router":
        if not ParamLocation.is_valid(location):
            raise BuildError(f"invalid param location {location!r} for {name!r}")
        return self.with_param(
            Param(
                name=name,
                location=ParamLocation(location),
                description=description or None,
                required=required,
                schema_=Schema(type="string"),
            )
        )

    def with_path_param(self, name: str, description: str = "") -> "Router":
        return self.with_param(Param(name=name, location=ParamLocation.PATH, description=description or None))

    def with_query_param(self, name: str, description: str = "", example: Any = None, required: bool = False) -> "Router":
        schema = primitive_schema(type(example)) if example is not None else Schema(type="string")
        return self.with_param(
            Param(
                name=name,
                location=ParamLocation.QUERY,
                description=description or None,
                required=required,
                schema_=schema,
                example=to_example(example),
            )
        )

    def with_header_param(self, name: str, description: str = "", required: bool = False) -> "Router":
        return self.with_param(
            Param(
                name=name,
                location=ParamLocation.HEADER,
                description=description or None,
                required=required,
                schema_=Schema(type="string"),
            )
        )

    def with_tags(self, *tags: str) -> "Router":
        for tag in tags:
            if tag not in self.tags:
                self.tags.append(tag)
        return self

    # nesting

    def sub(self, segment: str) -> "Router":
        """Create and return a child router for ``segment``."""
        child = Router(self.document, parent=self, segment=segment)
        self.children[segment] = child
        return child

    def route(self, segment: str, fn: Callable[["Router"], Any] | None = None) -> "Router":
        """Configure a sub router with ``fn``. Returns this router, not the child."""
        child = self.sub(segment)
        if fn is not None:
            fn(child)
        return self

    # operations

    def method(self, method: str, relative_path: str, op_fn: OpFn | None = None) -> Operation:
        doc = self.root()
        full_path = to_openapi_path(self.full_path(relative_path))
        inherited = self.inherited_params()
        item = doc.get_or_create_path(full_path, inherited)
        op = item.add_operation(method, inherited)
        op.tags(*self.inherited_tags())
        if op_fn is not None:
            op_fn(op)
        op.check_path_params()
        logger.debug("documented %s %s as %s", method.upper(), full_path, op.id)
        return op

    def get(self, path: str, op_fn: OpFn | None = None) -> Operation:
        return self.method("get", path, op_fn)

    def put(self, path: str, op_fn: OpFn | None = None) -> Operation:
        return self.method("put", path, op_fn)

    def post(self, path: str, op_fn: OpFn | None = None) -> Operation:
        return self.method("post", path, op_fn)

    def delete(self, path: str, op_fn: OpFn | None = None) -> Operation:
        return self.method("delete", path, op_fn)

    def patch(self, path: str, op_fn: OpFn | None = None) -> Operation:
        return self.method("patch", path, op_fn)

    def head(self, path: str, op_fn: OpFn | None = None) -> Operation:
        return self.method("head", path, op_fn)

    def options(self, path: str, op_fn: OpFn | None = None) -> Operation:
        return self.method("options", path, op_fn)

    def trace(self, path: str, op_fn: OpFn | None = None) -> Operation:
        return self.method("trace", path, op_fn)
