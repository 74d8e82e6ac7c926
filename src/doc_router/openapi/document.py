"""Document root: owns the path table and the component registry."""

import json
import logging
from typing import Any

import yaml

from doc_router.errors import BuildError
from doc_router.openapi.components import Components
from doc_router.openapi.models import OPENAPI_VERSION, Info, Param, Schema, Server
from doc_router.openapi.path import METHODS, PathItem
from doc_router.openapi.router import Router
from doc_router.openapi.schema import SchemaReflector

logger = logging.getLogger(__name__)


class _Dumper(yaml.SafeDumper):
    # the same example object may appear under several operations
    def ignore_aliases(self, data):
        return True


class Document:
    """An OpenAPI document built up while routes are registered.

    Created once at startup, filled in by routers and operations, and read
    only for serialization afterwards.
    """

    def __init__(self, info: Info | None = None, servers: list[Server] | None = None):
        self.openapi = OPENAPI_VERSION
        self.info = info or Info()
        self.servers: list[Server] = list(servers or [])
        self.paths: dict[str, PathItem] = {}
        self.components = Components()
        self.reflector = SchemaReflector(self.components)
        self._operation_ids: set[str] = set()

    def new_router(self) -> Router:
        """Root scope for declaring routes against this document."""
        return Router(self)

    def add_server(self, url: str, description: str | None = None) -> "Document":
        if not any(s.url == url for s in self.servers):
            self.servers.append(Server(url=url, description=description))
        return self

    def path(self, full_path: str) -> PathItem | None:
        return self.paths.get(full_path)

    def get_or_create_path(self, full_path: str, parameters: list[Param]) -> PathItem:
        item = self.paths.get(full_path)
        if item is None:
            item = PathItem(full_path, self, parameters)
            self.paths[full_path] = item
            logger.debug("new path item %s", full_path)
        return item

    def get_or_create_schema(self, key: str | None, value: Any) -> Schema:
        """Schema for ``value``, stored in components under ``key`` when given.

        Raises BuildError when the value's type cannot be modelled.
        """
        return self.reflector.reflect(value, key=key or None)

    def reserve_operation_id(self, operation_id: str) -> str:
        """Claim a generated id, suffixing it until it is unique."""
        candidate, n = operation_id, 2
        while candidate in self._operation_ids:
            candidate = f"{operation_id}_{n}"
            n += 1
        self._operation_ids.add(candidate)
        return candidate

    def rename_operation_id(self, old: str, new: str) -> None:
        if new in self._operation_ids:
            raise BuildError(f"duplicate operationId {new!r}")
        self._operation_ids.discard(old)
        self._operation_ids.add(new)

    def operations(self):
        """Yield ``(path, method, operation)`` in document order."""
        for path, item in self.paths.items():
            for method in METHODS:
                if method in item.operations:
                    yield path, method, item.operations[method]

    def to_dict(self) -> dict:
        data = {
            "openapi": self.openapi,
            "info": self.info.to_dict(),
        }
        if self.servers:
            data["servers"] = [s.to_dict() for s in self.servers]
        data["paths"] = {path: item.to_dict() for path, item in self.paths.items()}
        if not self.components.is_empty():
            data["components"] = self.components.to_dict()
        return data

    def yaml(self) -> bytes:
        return yaml.dump(self.to_dict(), Dumper=_Dumper, sort_keys=False, allow_unicode=True).encode("utf-8")

    def json(self, indent: int = 2) -> bytes:
        return json.dumps(self.to_dict(), indent=indent, ensure_ascii=False).encode("utf-8")
