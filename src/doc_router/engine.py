"""Route registration that documents itself.

:class:`Engine` wraps a Starlette :class:`~starlette.routing.Router`. Each
route is first recorded in the OpenAPI document and then added to the
Starlette router under the same full path, so the document advertises
exactly what the dispatcher matches.
"""

import logging
from typing import Any, Callable

from starlette.routing import Route
from starlette.routing import Router as AppRouter

from doc_router.errors import BuildError
from doc_router.openapi.document import Document
from doc_router.openapi.models import Info
from doc_router.openapi.router import OpFn, Router
from doc_router.paths import to_starlette_path

logger = logging.getLogger(__name__)

DocFn = Callable[[Router], Any]

ANY_METHODS = ("GET", "POST", "PUT", "PATCH", "HEAD", "OPTIONS", "DELETE", "TRACE")


class RouterGroup:
    """Routes sharing a path prefix, with their documentation scope."""

    def __init__(self, engine: "Engine", scope: Router):
        self.engine = engine
        self.scope = scope

    @property
    def base_path(self) -> str:
        return self.scope.full_path()

    def group(self, relative_path: str, doc_fn: DocFn | None = None) -> "RouterGroup":
        """Sub group under ``relative_path``; ``doc_fn`` configures its doc scope."""
        child = self.scope.sub(relative_path)
        if doc_fn is not None and self.engine.document is not None:
            doc_fn(child)
        return RouterGroup(self.engine, child)

    def handle(self, method: str, relative_path: str, endpoint: Callable, op_fn: OpFn | None = None) -> "RouterGroup":
        method = method.upper()
        full_path = self.scope.full_path(relative_path)
        app_path = to_starlette_path(full_path)
        if (method, app_path) in self.engine.registered:
            raise BuildError(f"route {method} {full_path} is already registered")
        if self.engine.document is not None:
            self.scope.method(method, relative_path, op_fn)
        route = Route(app_path, endpoint, methods=[method])
        # Route answers HEAD for GET on its own; HEAD is only served when registered
        if method != "HEAD":
            route.methods.discard("HEAD")
        self.engine.app.routes.append(route)
        self.engine.registered.add((method, app_path))
        logger.debug("routed %s %s", method, full_path)
        return self

    def get(self, relative_path: str, endpoint: Callable, op_fn: OpFn | None = None) -> "RouterGroup":
        return self.handle("GET", relative_path, endpoint, op_fn)

    def post(self, relative_path: str, endpoint: Callable, op_fn: OpFn | None = None) -> "RouterGroup":
        return self.handle("POST", relative_path, endpoint, op_fn)

    def put(self, relative_path: str, endpoint: Callable, op_fn: OpFn | None = None) -> "RouterGroup":
        return self.handle("PUT", relative_path, endpoint, op_fn)

    def patch(self, relative_path: str, endpoint: Callable, op_fn: OpFn | None = None) -> "RouterGroup":
        return self.handle("PATCH", relative_path, endpoint, op_fn)

    def delete(self, relative_path: str, endpoint: Callable, op_fn: OpFn | None = None) -> "RouterGroup":
        return self.handle("DELETE", relative_path, endpoint, op_fn)

    def head(self, relative_path: str, endpoint: Callable, op_fn: OpFn | None = None) -> "RouterGroup":
        return self.handle("HEAD", relative_path, endpoint, op_fn)

    def options(self, relative_path: str, endpoint: Callable, op_fn: OpFn | None = None) -> "RouterGroup":
        return self.handle("OPTIONS", relative_path, endpoint, op_fn)

    def any(self, relative_path: str, endpoint: Callable, op_fn: OpFn | None = None) -> "RouterGroup":
        """Register ``endpoint`` for every HTTP method."""
        for method in ANY_METHODS:
            self.handle(method, relative_path, endpoint, op_fn)
        return self


class Engine(RouterGroup):
    """Root group. ``engine.app`` is the ASGI application to serve."""

    def __init__(self, info: Info | None = None, enable_openapi: bool = True, app: AppRouter | None = None):
        self.document = Document(info) if enable_openapi else None
        self.app = app if app is not None else AppRouter()
        self.registered: set[tuple[str, str]] = set()
        super().__init__(self, Router(self.document))

    def doc(self, fn: Callable[[Document], Any] | None = None) -> Document | None:
        """Apply ``fn`` to the document (when enabled) and return it."""
        if self.document is not None and fn is not None:
            fn(self.document)
        return self.document
