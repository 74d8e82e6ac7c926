"""OpenAPI 3.0 objects that serialize straight into the document.

Field names follow Python conventions; aliases carry the wire names
(``in``, ``$ref``, ``operationId``...). Everything dumps with
``by_alias=True, exclude_none=True`` so unset optional fields disappear.
"""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

OPENAPI_VERSION = "3.0.3"
MIME_JSON = "application/json"

DEFAULT_TITLE = "API"
DEFAULT_VERSION = "0.1.0"


class ParamLocation(str, Enum):
    QUERY = "query"
    HEADER = "header"
    PATH = "path"
    COOKIE = "cookie"

    @classmethod
    def is_valid(cls, value: Any) -> bool:
        try:
            cls(value)
        except ValueError:
            return False
        return True


class OpenAPIModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    def to_dict(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")


class Schema(OpenAPIModel):
    """A schema node; either inline or a ``$ref`` into components."""

    ref: str | None = Field(None, alias="$ref")
    type: str | None = None
    format: str | None = None
    description: str | None = None
    nullable: bool | None = None
    enum: list[Any] | None = None
    properties: dict[str, "Schema"] | None = None
    required: list[str] | None = None
    items: "Schema | None" = None
    unique_items: bool | None = Field(None, alias="uniqueItems")
    additional_properties: "Schema | bool | None" = Field(None, alias="additionalProperties")
    example: Any = None

    @classmethod
    def reference(cls, section: str, key: str) -> "Schema":
        return cls(ref=f"#/components/{section}/{key}")

    @property
    def ref_key(self) -> str | None:
        """Component key this schema points at, if it is a reference."""
        if self.ref is None:
            return None
        return self.ref.rsplit("/", 1)[-1]


class Contact(OpenAPIModel):
    name: str | None = None
    url: str | None = None
    email: str | None = None


class License(OpenAPIModel):
    name: str
    url: str | None = None


class Info(OpenAPIModel):
    title: str = DEFAULT_TITLE
    version: str = DEFAULT_VERSION
    description: str | None = None
    terms_of_service: str | None = Field(None, alias="termsOfService")
    contact: Contact | None = None
    license: License | None = None


class Server(OpenAPIModel):
    url: str
    description: str | None = None


class Param(OpenAPIModel):
    """A single API parameter (query, path, header, or cookie)."""

    ref: str | None = Field(None, alias="$ref")
    name: str | None = None
    location: ParamLocation | None = Field(None, alias="in")
    description: str | None = None
    required: bool | None = None
    deprecated: bool | None = None
    allow_empty_value: bool | None = Field(None, alias="allowEmptyValue")
    schema_: Schema | None = Field(None, alias="schema")
    example: Any = None

    def to_dict(self) -> dict:
        data = super().to_dict()
        if self.ref is None:
            data.setdefault("required", False)
        return data


class Header(OpenAPIModel):
    description: str | None = None
    required: bool | None = None
    schema_: Schema | None = Field(None, alias="schema")
    example: Any = None


class MediaType(OpenAPIModel):
    schema_: Schema | None = Field(None, alias="schema")
    example: Any = None


class RequestBody(OpenAPIModel):
    ref: str | None = Field(None, alias="$ref")
    description: str | None = None
    content: dict[str, MediaType] = Field(default_factory=dict)
    required: bool | None = None

    def to_dict(self) -> dict:
        if self.ref is not None:
            return {"$ref": self.ref}
        return super().to_dict()


class Response(OpenAPIModel):
    description: str = ""
    headers: dict[str, Header] | None = None
    content: dict[str, MediaType] | None = None
