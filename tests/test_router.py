import pytest

from doc_router.errors import BuildError
from doc_router.openapi.document import Document
from doc_router.openapi.models import Param
from doc_router.openapi.router import Router


def _root() -> Router:
    return Document().new_router()


class TestPaths:
    def test_full_path_joins_ancestors(self):
        leaf = _root().sub("/api").sub("v1/").sub("/books")
        assert leaf.full_path() == "/api/v1/books"
        assert leaf.full_path(":name") == "/api/v1/books/:name"

    def test_operation_registered_under_template_path(self):
        root = _root()
        root.sub("/books").get("/:name")
        assert list(root.root().paths) == ["/books/{name}"]

    def test_route_returns_parent_and_configures_child(self):
        root = _root()
        seen = []
        assert root.route("/books", seen.append) is root
        assert seen == [root.children["/books"]]
        assert seen[0].parent is root

    def test_scopes_merge_by_full_path(self):
        root = _root()
        root.sub("/books").get(":name")
        root.sub("/books/").delete("/:name")
        item = root.root().paths["/books/{name}"]
        assert list(item.operations) == ["get", "delete"]

    def test_same_method_twice_rejected(self):
        books = _root().sub("/books")
        books.delete(":name")
        with pytest.raises(BuildError, match="already has a delete operation"):
            books.delete(":name")

    def test_root_without_document(self):
        with pytest.raises(BuildError, match="no document"):
            Router(None).sub("/books").root()


class TestParameterInheritance:
    def test_params_in_root_to_leaf_order(self):
        root = _root().with_header_param("X-Tenant")
        shelf = root.sub("/shelves/:shelf").with_path_param("shelf")
        op = shelf.sub("/books").get(":name", lambda o: o.with_path_param("name"))
        assert op.parameter_names() == ["X-Tenant", "shelf", "name"]

    def test_chain_params_become_path_level(self):
        root = _root()
        books = root.sub("/books/:name").with_path_param("name", "Book name")
        op = books.get("")
        item = root.root().paths["/books/{name}"]
        assert [p.name for p in item.parameters] == ["name"]
        assert "parameters" not in op.to_dict()
        assert item.to_dict()["parameters"][0]["required"] is True

    def test_duplicate_in_chain_rejected_at_registration(self):
        root = _root().with_query_param("page")
        child = root.sub("/books").with_query_param("page")
        with pytest.raises(BuildError, match="duplicate parameter 'page'"):
            child.get("")

    def test_operation_param_clashing_with_inherited(self):
        books = _root().sub("/books").with_query_param("page", example=1)
        with pytest.raises(BuildError, match="duplicate parameter 'page'"):
            books.get("", lambda o: o.with_query_param("page"))

    def test_duplicate_in_same_router(self):
        router = _root().with_path_param("id")
        with pytest.raises(BuildError):
            router.with_path_param("id")

    def test_invalid_location(self):
        with pytest.raises(BuildError, match="invalid param location"):
            _root().add_parameter("body", "payload")

    def test_path_param_forced_required(self):
        router = _root().with_param(Param(name="id", location="path", required=False))
        assert router.params[0].required is True
        assert router.params[0].schema_.type == "string"

    def test_undeclared_template_param_warns(self, caplog):
        _root().sub("/books").get(":name")
        assert "path parameter 'name' is not declared" in caplog.text


class TestTags:
    def test_tags_root_to_leaf_then_operation(self):
        root = _root().with_tags("api")
        books = root.sub("/books").with_tags("books", "api")
        op = books.get("", lambda o: o.tags("read", "books"))
        assert op.tag_list == ["api", "books", "read"]

    def test_parent_changes_are_not_retroactive(self):
        root = _root()
        books = root.sub("/books").with_tags("books")
        op = books.get("")
        root.with_tags("late")
        later = books.post("")
        assert op.tag_list == ["books"]
        assert later.tag_list == ["late", "books"]
