"""CLI entry point for doc-router."""

import importlib
from pathlib import Path

import click

from doc_router.engine import Engine
from doc_router.errors import BuildError
from doc_router.openapi.document import Document
from doc_router.summary import load_document, summarize


def _load_document(app_ref: str) -> Document:
    """Resolve ``module:attribute`` to a built document."""
    module_name, _, attr = app_ref.partition(":")
    if not module_name or not attr:
        raise click.BadParameter(f"expected module:attribute, got {app_ref!r}", param_hint="APP_REF")
    try:
        module = importlib.import_module(module_name)
        obj = getattr(module, attr)
        if not isinstance(obj, (Engine, Document)) and callable(obj):
            obj = obj()
    except ImportError as e:
        raise click.ClickException(f"cannot import {module_name}: {e}") from e
    except AttributeError as e:
        raise click.ClickException(f"{module_name} has no attribute {attr!r}") from e
    except BuildError as e:
        raise click.ClickException(f"cannot build the document: {e}") from e

    if isinstance(obj, Engine):
        obj = obj.doc()
        if obj is None:
            raise click.ClickException(f"{app_ref} was created with enable_openapi=False")
    if not isinstance(obj, Document):
        raise click.ClickException(f"{app_ref} is neither an Engine nor a Document")
    return obj


def _render(doc: Document, fmt: str, output: Path) -> bytes:
    if fmt == "auto":
        fmt = "json" if output.suffix.lower() == ".json" else "yaml"
    if fmt == "json":
        return doc.json()
    return doc.yaml()


@click.group()
def main():
    """doc-router: OpenAPI documents generated from route registration."""
    pass


@main.command()
@click.argument("app_ref")
@click.option("-o", "--output", required=True, type=click.Path(path_type=Path), help="Output file for the document.")
@click.option("--format", "fmt", default="auto", envvar="DOC_ROUTER_FORMAT", type=click.Choice(["auto", "yaml", "json"]), help="Document format (auto: from the output suffix).")
@click.option("--server", "servers", multiple=True, envvar="DOC_ROUTER_SERVER", help="Server URL to add to the document.")
def export(app_ref: str, output: Path, fmt: str, servers: tuple[str, ...]):
    """Build the document of APP_REF (module:attribute) and write it to a file."""
    click.echo(f"Loading {app_ref}...")
    doc = _load_document(app_ref)
    for url in servers:
        doc.add_server(url)

    data = _render(doc, fmt, output)
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_bytes(data)
    click.echo(f"Documented {len(doc.paths)} paths, saved to {output}")


@main.command()
@click.argument("source")
def routes(source: str):
    """List documented operations of SOURCE (module:attribute or a document file)."""
    path = Path(source)
    if path.is_file():
        data = load_document(path)
    else:
        data = _load_document(source).to_dict()

    for ep in summarize(data):
        click.echo(f"{ep.method:<7} {ep.path}  {ep.operation_id}")
