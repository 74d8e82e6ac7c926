"""Operation builder: one HTTP method on one path.

Every setter returns the operation itself so configuration callbacks can be
written as a single chained expression::

    def get_book(op):
        (op.summary("Get a book")
           .add_parameter("path", "name", "Book name")
           .returns(200, "The book", Book(...))
           .returns(404, "No such book", Error(...)))
"""

import logging
import re
from typing import TYPE_CHECKING, Any, Callable

from doc_router.errors import BuildError
from doc_router.openapi.models import (
    MIME_JSON,
    Header,
    MediaType,
    Param,
    ParamLocation,
    RequestBody,
    Response,
    Schema,
)
from doc_router.openapi.schema import primitive_schema, to_example
from doc_router.paths import template_params

if TYPE_CHECKING:
    from doc_router.openapi.document import Document
    from doc_router.openapi.path import PathItem

logger = logging.getLogger(__name__)

_STATUS_RANGE = re.compile(r"^[1-5](\d\d|XX)$")


def derive_operation_id(method: str, path: str) -> str:
    """``get`` + ``/books/{name}`` -> ``get_books_name``."""
    return "_".join([method.lower()] + re.findall(r"[A-Za-z0-9]+", path))


def status_key(code: int | str) -> str:
    key = str(code)
    if key == "default" or _STATUS_RANGE.match(key):
        return key
    raise BuildError(f"invalid response status code {code!r}")


class Operation:
    """One method on one path item, configured through chained setters."""

    def __init__(self, method: str, path_item: "PathItem | None" = None, inherited: list[Param] | None = None):
        self.method = method.lower()
        self.path_item = path_item
        # params inherited from the scope chain at registration time
        self.inherited: list[Param] = list(inherited or [])
        self.parameters: list[Param] = []
        self.body: RequestBody | None = None
        self.responses: dict[str, Response] = {}
        self.tag_list: list[str] = []
        self._summary: str | None = None
        self._description: str | None = None
        self._deprecated = False

        path = path_item.path if path_item is not None else ""
        self._operation_id = derive_operation_id(self.method, path)
        if path_item is not None and path_item.document is not None:
            self._operation_id = path_item.document.reserve_operation_id(self._operation_id)

    @property
    def id(self) -> str:
        return self._operation_id

    @property
    def path(self) -> str:
        return self.path_item.path if self.path_item is not None else ""

    def root(self) -> "Document":
        """Document this operation belongs to."""
        if self.path_item is None:
            raise BuildError(f"no path is set for operation {self._operation_id}")
        return self.path_item.root()

    def summary(self, text: str) -> "Operation":
        self._summary = text
        return self

    def description(self, text: str) -> "Operation":
        self._description = text
        return self

    def deprecated(self, flag: bool = True) -> "Operation":
        self._deprecated = flag
        return self

    def tags(self, *tags: str) -> "Operation":
        for tag in tags:
            if tag not in self.tag_list:
                self.tag_list.append(tag)
        return self

    def operation_id(self, operation_id: str) -> "Operation":
        if operation_id == self._operation_id:
            return self
        if self.path_item is not None and self.path_item.document is not None:
            self.path_item.document.rename_operation_id(self._operation_id, operation_id)
        self._operation_id = operation_id
        return self

    def metadata(self, operation_id: str, summary: str, description: str = "") -> "Operation":
        self.operation_id(operation_id)
        self._summary = summary
        self._description = description or None
        return self

    # parameters

    def _param_name(self, param: Param) -> str | None:
        if param.ref is None:
            return param.name
        shared = self.root().components.parameters.get(param.ref.rsplit("/", 1)[-1])
        return shared.name if shared is not None else None

    def parameter_names(self) -> list[str]:
        return [self._param_name(p) for p in self.inherited + self.parameters]

    def with_param(self, param: Param) -> "Operation":
        if param.ref is None:
            if not ParamLocation.is_valid(param.location):
                raise BuildError(f"invalid param location {param.location!r} for {param.name!r}")
            if param.location == ParamLocation.PATH:
                param.required = True
        name = self._param_name(param)
        if name in self.parameter_names():
            raise BuildError(f"duplicate parameter {name!r} in operation {self._operation_id}")
        self.parameters.append(param)
        return self

    def add_parameter(
        self,
        location: str,
        name: str,
        description: str = "",
        required: bool = False,
        schema: Schema | None = None,
        example: Any = None,
    ) -> "Operation":
        if not ParamLocation.is_valid(location):
            raise BuildError(f"invalid param location {location!r} for {name!r}")
        location = ParamLocation(location)
        # path segments are always strings at the router level
        if location == ParamLocation.PATH:
            required = True
            schema = Schema(type="string")
        return self.with_param(
            Param(
                name=name,
                location=location,
                description=description or None,
                required=required,
                schema_=schema,
                example=to_example(example),
            )
        )

    def with_path_param(self, name: str, description: str = "") -> "Operation":
        return self.add_parameter(ParamLocation.PATH, name, description)

    def with_query_param(self, name: str, description: str = "", example: Any = None, required: bool = False) -> "Operation":
        """Query param typed after ``example``; only scalar examples are supported."""
        schema = primitive_schema(type(example)) if example is not None else Schema(type="string")
        return self.add_parameter(ParamLocation.QUERY, name, description, required, schema, example)

    def with_header_param(self, name: str, description: str = "", required: bool = False) -> "Operation":
        return self.add_parameter(ParamLocation.HEADER, name, description, required, Schema(type="string"))

    def with_cookie_param(self, name: str, description: str = "", required: bool = False) -> "Operation":
        return self.add_parameter(ParamLocation.COOKIE, name, description, required, Schema(type="string"))

    def with_shared_param(self, param: Param, key: str | None = None) -> "Operation":
        """Register ``param`` as a component and reference it from this operation."""
        key = key or f"{self._operation_id}_{param.name}"
        if param.location == ParamLocation.PATH:
            param.required = True
        ref = self.root().components.add_parameter(key, param)
        return self.with_param(ref)

    def with_param_ref(self, key: str) -> "Operation":
        if key not in self.root().components.parameters:
            raise BuildError(f"unknown parameter component {key!r} in operation {self._operation_id}")
        return self.with_param(Param(ref=f"#/components/parameters/{key}"))

    # request body

    def _schema(self, key: str | None, value: Any) -> Schema:
        document = self.root()
        try:
            return document.get_or_create_schema(key, value)
        except BuildError as e:
            raise BuildError(f"{self.method.upper()} {self.path} ({self._operation_id}): {e}") from e

    def _ensure_body(self) -> RequestBody:
        if self.body is None:
            self.body = RequestBody()
        elif self.body.ref is not None:
            raise BuildError(f"request body of {self._operation_id} is a component reference")
        return self.body

    def request_body(self, fn: Callable[[RequestBody], Any]) -> "Operation":
        """Hand the request body to ``fn`` for manual configuration."""
        fn(self._ensure_body())
        return self

    def read_json(self, description: str, required: bool, value: Any, key: str | None = None) -> "Operation":
        """JSON request body shaped like ``value`` (a type or a sample)."""
        schema = self._schema(key, value)
        body = self._ensure_body()
        body.description = description or body.description
        body.required = required or body.required
        body.content[MIME_JSON] = MediaType(schema_=schema, example=to_example(value))
        return self

    def read(self, description: str, required: bool, mime_type: str, example: Any = None) -> "Operation":
        """Request body of any media type, documented by example only."""
        body = self._ensure_body()
        body.description = description or body.description
        body.required = required or body.required
        body.content[mime_type] = MediaType(example=to_example(example))
        return self

    def share_request_body(self, key: str | None = None) -> "Operation":
        """Move the current request body into components and reference it."""
        if self.body is None or self.body.ref is not None:
            raise BuildError(f"operation {self._operation_id} has no inline request body to share")
        self.body = self.root().components.add_request_body(key or self._operation_id, self.body)
        return self

    def use_request_body(self, key: str) -> "Operation":
        if key not in self.root().components.request_bodies:
            raise BuildError(f"unknown request body component {key!r} in operation {self._operation_id}")
        self.body = RequestBody(ref=f"#/components/requestBodies/{key}")
        return self

    # responses

    def _add_response(self, code: int | str, response: Response) -> "Operation":
        key = status_key(code)
        if key in self.responses:
            raise BuildError(f"operation {self._operation_id} already returns code {key}")
        self.responses[key] = response
        return self

    def _json_response(self, description: str, key: str | None, value: Any) -> Response:
        schema = self._schema(key, value)
        return Response(
            description=description,
            content={MIME_JSON: MediaType(schema_=schema, example=to_example(value))},
        )

    def returns(self, code: int | str, description: str, value: Any, key: str | None = None) -> "Operation":
        """JSON response for ``code`` shaped like ``value``."""
        return self._add_response(code, self._json_response(description, key, value))

    def returns_default(self, description: str, value: Any, key: str | None = None) -> "Operation":
        """Response used when none of the declared codes apply."""
        return self._add_response("default", self._json_response(description, key, value))

    def returns_non_json(
        self,
        code: int | str,
        description: str,
        mime_type: str,
        headers: dict[str, Header] | None = None,
        schema: Schema | None = None,
        example: Any = None,
    ) -> "Operation":
        return self._add_response(
            code,
            Response(
                description=description,
                headers=headers or None,
                content={mime_type: MediaType(schema_=schema, example=to_example(example))},
            ),
        )

    def returns_empty(self, code: int | str, description: str) -> "Operation":
        return self._add_response(code, Response(description=description))

    def check_path_params(self) -> None:
        """Warn about ``{placeholders}`` with no matching path parameter."""
        declared = set(self.parameter_names())
        if self.path_item is not None:
            declared |= self.path_item.parameter_names()
        for name in template_params(self.path):
            if name not in declared:
                logger.warning("%s %s: path parameter %r is not declared", self.method.upper(), self.path, name)

    def to_dict(self) -> dict:
        data = {}
        if self.tag_list:
            data["tags"] = list(self.tag_list)
        if self._summary:
            data["summary"] = self._summary
        if self._description:
            data["description"] = self._description
        data["operationId"] = self._operation_id

        path_level = self.path_item.parameter_names() if self.path_item is not None else set()
        params = [p for p in self.inherited if p.name not in path_level] + self.parameters
        if params:
            data["parameters"] = [p.to_dict() for p in params]
        if self.body is not None:
            data["requestBody"] = self.body.to_dict()
        data["responses"] = {code: r.to_dict() for code, r in self.responses.items()}
        if self._deprecated:
            data["deprecated"] = True
        return data
