"""Deduplicating store of reusable schemas, parameters and request bodies."""

import logging

from doc_router.openapi.models import Param, RequestBody, Schema

logger = logging.getLogger(__name__)


class Components:
    """Component registry of a document.

    A key maps to exactly one definition for the life of the document: the
    first writer wins and later writers get the existing entry back.
    """

    def __init__(self):
        self.schemas: dict[str, Schema] = {}
        self.parameters: dict[str, Param] = {}
        self.request_bodies: dict[str, RequestBody] = {}
        # key -> python type that first claimed it
        self._schema_origins: dict[str, object] = {}

    def has_schema(self, key: str) -> bool:
        return key in self.schemas

    def claim_schema(self, key: str, origin: object) -> bool:
        """Reserve ``key`` for ``origin``. Returns False if it was already taken."""
        if key in self.schemas:
            first = self._schema_origins.get(key)
            if origin is not None and first is not None and first is not origin:
                logger.warning(
                    "schema component %r already defined by %r, reusing it for %r",
                    key, first, origin,
                )
            return False
        # placeholder so self-referencing types resolve to a $ref
        self.schemas[key] = Schema()
        self._schema_origins[key] = origin
        return True

    def set_schema(self, key: str, schema: Schema) -> Schema:
        self.schemas[key] = schema
        logger.debug("registered schema component %r", key)
        return Schema.reference("schemas", key)

    def add_schema(self, key: str, schema: Schema) -> Schema:
        """Store ``schema`` under ``key`` unless taken; return a reference either way."""
        if self.claim_schema(key, None):
            self.set_schema(key, schema)
        return Schema.reference("schemas", key)

    def add_parameter(self, key: str, param: Param) -> Param:
        self.parameters.setdefault(key, param)
        return Param(ref=f"#/components/parameters/{key}")

    def add_request_body(self, key: str, body: RequestBody) -> RequestBody:
        self.request_bodies.setdefault(key, body)
        return RequestBody(ref=f"#/components/requestBodies/{key}")

    def resolve_schema(self, schema: Schema | None) -> Schema | None:
        """Follow a ``$ref`` to its stored schema; inline schemas come back as-is."""
        if schema is None or schema.ref_key is None:
            return schema
        return self.schemas.get(schema.ref_key)

    def is_empty(self) -> bool:
        return not (self.schemas or self.parameters or self.request_bodies)

    def to_dict(self) -> dict:
        data = {}
        if self.schemas:
            data["schemas"] = {k: v.to_dict() for k, v in self.schemas.items()}
        if self.parameters:
            data["parameters"] = {k: v.to_dict() for k, v in self.parameters.items()}
        if self.request_bodies:
            data["requestBodies"] = {k: v.to_dict() for k, v in self.request_bodies.items()}
        return data
