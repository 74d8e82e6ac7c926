"""Read a serialized document back into flat endpoint rows.

Used by the ``routes`` command to list what an application documents, and
by tests to check the artifact rather than the in-memory builders.
"""

from pathlib import Path

import yaml
from pydantic import BaseModel

from doc_router.openapi.path import METHODS


class ParamSummary(BaseModel):
    """One documented parameter row; ``$ref`` parameters are resolved first."""

    name: str
    location: str  # the OpenAPI "in" field
    required: bool
    param_type: str  # schema type, "string" when the schema has none
    description: str = ""


class EndpointSummary(BaseModel):
    """A single documented endpoint."""

    method: str  # upper case, any of METHODS
    path: str  # /books/{name}
    operation_id: str
    summary: str = ""
    parameters: list[ParamSummary]
    request_content_type: str | None = None
    responses: dict[str, str]  # {status_code: description}
    tags: list[str]
    deprecated: bool = False


def load_document(file_path: Path) -> dict:
    """Parse a YAML or JSON document file."""
    return yaml.safe_load(file_path.read_text(encoding="utf-8"))


def summarize(doc: dict) -> list[EndpointSummary]:
    """Flatten a serialized document into one row per operation."""
    components = doc.get("components", {})
    endpoints = []
    for path, item in doc.get("paths", {}).items():
        path_params = item.get("parameters", [])
        for method in METHODS:
            operation = item.get(method)
            if operation is None:
                continue
            params = path_params + operation.get("parameters", [])
            endpoints.append(
                EndpointSummary(
                    method=method.upper(),
                    path=path,
                    operation_id=operation.get("operationId", ""),
                    summary=operation.get("summary", ""),
                    parameters=_parse_parameters(params, components),
                    request_content_type=_request_content_type(operation.get("requestBody"), components),
                    responses=_parse_responses(operation.get("responses", {})),
                    tags=operation.get("tags", []),
                    deprecated=operation.get("deprecated", False),
                )
            )
    return endpoints


def _resolve(obj: dict, components: dict) -> dict:
    ref = obj.get("$ref")
    if not ref:
        return obj
    _, _, section, key = ref.split("/", 3)
    return components.get(section, {}).get(key, {})


def _parse_parameters(params: list[dict], components: dict) -> list[ParamSummary]:
    result = []
    for p in params:
        p = _resolve(p, components)
        schema = _resolve(p.get("schema", {}), components)
        result.append(
            ParamSummary(
                name=p["name"],
                location=p.get("in", "query"),
                required=p.get("required", False),
                param_type=schema.get("type", "string"),
                description=p.get("description", ""),
            )
        )
    return result


def _request_content_type(body: dict | None, components: dict) -> str | None:
    if not body:
        return None
    content = _resolve(body, components).get("content", {})
    # Prefer JSON when several media types are accepted
    if "application/json" in content:
        return "application/json"
    for content_type in content:
        return content_type
    return None


def _parse_responses(responses: dict) -> dict[str, str]:
    return {str(code): resp.get("description", "") for code, resp in responses.items()}
