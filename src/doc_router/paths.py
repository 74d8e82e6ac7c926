"""Path joining and template conversion shared by the document and the dispatcher."""

import posixpath
import re

_SLASHES = re.compile(r"/{2,}")
# ":name" and "*name" segments, as written in route declarations
_GIN_PARAM = re.compile(r"(?<=/)([:*])([A-Za-z_][A-Za-z0-9_]*)|^([:*])([A-Za-z_][A-Za-z0-9_]*)")
_TEMPLATE_PARAM = re.compile(r"\{([A-Za-z_][A-Za-z0-9_]*)(?::[a-z]+)?\}")


def join_paths(*segments: str) -> str:
    """Join route segments into one clean path.

    Empty segments contribute nothing, repeated slashes collapse and ``.``/``..``
    are resolved. A trailing slash on the last non-empty segment is kept.
    """
    parts = [s for s in segments if s]
    if not parts:
        return ""
    joined = posixpath.normpath(_SLASHES.sub("/", "/".join(parts)))
    if parts[-1].endswith("/") and not joined.endswith("/"):
        joined += "/"
    return joined


def _convert(path: str, catch_all: str) -> str:
    def repl(match: re.Match) -> str:
        marker = match.group(1) or match.group(3)
        name = match.group(2) or match.group(4)
        if marker == "*":
            return catch_all.format(name=name)
        return "{" + name + "}"

    return _GIN_PARAM.sub(repl, path)


def to_openapi_path(path: str) -> str:
    """``/books/:name`` -> ``/books/{name}``; catch-all ``*rest`` -> ``{rest}``."""
    return _TEMPLATE_PARAM.sub(r"{\1}", _convert(path, "{{{name}}}"))


def to_starlette_path(path: str) -> str:
    """``/books/:name`` -> ``/books/{name}``; catch-all ``*rest`` -> ``{rest:path}``."""
    return _convert(path, "{{{name}:path}}")


def template_params(path: str) -> list[str]:
    """Names of the ``{param}`` placeholders in an OpenAPI path, in order."""
    return _TEMPLATE_PARAM.findall(path)
