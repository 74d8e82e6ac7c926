import json
import textwrap

import yaml
from click.testing import CliRunner

from doc_router.cli import main


def _write_module(tmp_path, monkeypatch, name: str, source: str) -> str:
    (tmp_path / f"{name}.py").write_text(textwrap.dedent(source))
    monkeypatch.syspath_prepend(str(tmp_path))
    return name


class TestCliExport:
    def test_export_yaml(self, tmp_path):
        output = tmp_path / "docs" / "openapi.yaml"
        runner = CliRunner()
        result = runner.invoke(main, ["export", "bookstore:build_engine", "-o", str(output)])

        assert result.exit_code == 0, result.output
        assert output.exists()
        doc = yaml.safe_load(output.read_text())
        assert "/books/{name}" in doc["paths"]
        assert "Documented 2 paths" in result.output

    def test_export_json_from_suffix(self, tmp_path):
        output = tmp_path / "openapi.json"
        runner = CliRunner()
        result = runner.invoke(main, ["export", "bookstore:build_engine", "-o", str(output)])

        assert result.exit_code == 0, result.output
        assert json.loads(output.read_text())["info"]["title"] == "Bookstore"

    def test_export_format_from_env(self, tmp_path):
        output = tmp_path / "openapi.txt"
        runner = CliRunner()
        result = runner.invoke(
            main,
            ["export", "bookstore:build_engine", "-o", str(output)],
            env={"DOC_ROUTER_FORMAT": "json"},
        )

        assert result.exit_code == 0, result.output
        assert json.loads(output.read_text())["openapi"] == "3.0.3"

    def test_export_adds_servers(self, tmp_path):
        output = tmp_path / "openapi.yaml"
        runner = CliRunner()
        result = runner.invoke(main, [
            "export", "bookstore:build_engine",
            "-o", str(output),
            "--server", "https://books.example.com",
        ])

        assert result.exit_code == 0, result.output
        urls = [s["url"] for s in yaml.safe_load(output.read_text())["servers"]]
        assert urls == ["http://localhost:8080", "https://books.example.com"]

    def test_build_error_aborts_without_writing(self, tmp_path, monkeypatch):
        name = _write_module(tmp_path, monkeypatch, "broken_app", """
            from doc_router.engine import Engine

            async def noop(request):
                pass

            def build():
                engine = Engine()
                books = engine.group("/books")
                books.get(":name", noop, lambda op: op.returns(200, "a", {"x": 1}).returns(200, "b", {"x": 2}))
                return engine
        """)
        output = tmp_path / "openapi.yaml"
        runner = CliRunner()
        result = runner.invoke(main, ["export", f"{name}:build", "-o", str(output)])

        assert result.exit_code == 1
        assert "already returns code 200" in result.output
        assert not output.exists()

    def test_disabled_engine(self, tmp_path, monkeypatch):
        name = _write_module(tmp_path, monkeypatch, "silent_app", """
            from doc_router.engine import Engine

            engine = Engine(enable_openapi=False)
        """)
        runner = CliRunner()
        result = runner.invoke(main, ["export", f"{name}:engine", "-o", str(tmp_path / "o.yaml")])

        assert result.exit_code == 1
        assert "enable_openapi=False" in result.output

    def test_bad_reference(self, tmp_path):
        runner = CliRunner()
        result = runner.invoke(main, ["export", "bookstore", "-o", str(tmp_path / "o.yaml")])
        assert result.exit_code != 0

        result = runner.invoke(main, ["export", "no_such_module_xyz:app", "-o", str(tmp_path / "o.yaml")])
        assert result.exit_code == 1
        assert "cannot import" in result.output


class TestCliRoutes:
    def test_routes_from_app(self):
        runner = CliRunner()
        result = runner.invoke(main, ["routes", "bookstore:build_engine"])

        assert result.exit_code == 0, result.output
        lines = result.output.strip().splitlines()
        assert len(lines) == 4
        assert lines[0].split() == ["GET", "/books/{name}", "get_books_name"]
        assert "deleteBook" in lines[1]

    def test_routes_from_file(self, tmp_path):
        output = tmp_path / "openapi.yaml"
        runner = CliRunner()
        runner.invoke(main, ["export", "bookstore:build_engine", "-o", str(output)])
        result = runner.invoke(main, ["routes", str(output)])

        assert result.exit_code == 0, result.output
        assert "PUT" in result.output
