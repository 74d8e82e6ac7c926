import datetime
import logging
import uuid
from dataclasses import dataclass, field, make_dataclass
from enum import Enum
from typing import Literal, NamedTuple, Optional, TypedDict

import pytest
from pydantic import BaseModel, Field

from doc_router.errors import BuildError
from doc_router.openapi.components import Components
from doc_router.openapi.schema import Kind, SchemaReflector, kind_of, primitive_schema, to_example


@dataclass
class Book:
    name: str
    author: str
    isdn: str
    publisher: str


@dataclass
class Node:
    value: int
    children: list["Node"] = field(default_factory=list)


class Genre(str, Enum):
    FICTION = "fiction"
    POETRY = "poetry"


class Author(BaseModel):
    """Someone who writes books."""

    full_name: str = Field(alias="fullName", description="Display name")
    born: Optional[datetime.date] = None
    genres: list[Genre] = []


class Shelf(TypedDict):
    label: str
    books: list[Book]


class Point(NamedTuple):
    x: float
    y: float = 0.0


class Opaque:
    pass


@dataclass
class Holder:
    handle: Opaque


def _reflector():
    components = Components()
    return components, SchemaReflector(components)


class TestKinds:
    @pytest.mark.parametrize("tp,kind", [
        (bool, Kind.BOOLEAN),
        (int, Kind.INTEGER),
        (float, Kind.NUMBER),
        (str, Kind.STRING),
        (bytes, Kind.BINARY),
        (datetime.datetime, Kind.DATETIME),
        (datetime.date, Kind.DATE),
        (uuid.UUID, Kind.UUID),
        (Genre, Kind.ENUM),
        (list[int], Kind.ARRAY),
        (dict[str, int], Kind.MAPPING),
        (Optional[int], Kind.OPTIONAL),
        (Book, Kind.RECORD),
        (Author, Kind.RECORD),
        (Point, Kind.RECORD),
        (Literal["a", "b"], Kind.LITERAL),
    ])
    def test_kind_of(self, tp, kind):
        assert kind_of(tp) is kind

    def test_unknown_kinds(self):
        assert kind_of(Opaque) is None
        assert kind_of(int | str) is None

    def test_primitive_schema(self):
        assert primitive_schema(datetime.datetime).to_dict() == {"type": "string", "format": "date-time"}
        with pytest.raises(BuildError):
            primitive_schema(list)


class TestReflectTypes:
    def test_record_becomes_component(self):
        components, reflector = _reflector()
        schema = reflector.reflect(Book)
        assert schema.to_dict() == {"$ref": "#/components/schemas/Book"}
        stored = components.schemas["Book"].to_dict()
        assert stored["type"] == "object"
        assert stored["properties"] == {
            "name": {"type": "string"},
            "author": {"type": "string"},
            "isdn": {"type": "string"},
            "publisher": {"type": "string"},
        }
        assert stored["required"] == ["name", "author", "isdn", "publisher"]

    def test_same_type_stored_once(self):
        components, reflector = _reflector()
        first = reflector.reflect(Book)
        second = reflector.reflect(Book("a", "b", "c", "d"))
        assert first.ref == second.ref
        assert list(components.schemas) == ["Book"]

    def test_self_reference_terminates(self):
        components, reflector = _reflector()
        reflector.reflect(Node)
        node = components.schemas["Node"].to_dict()
        assert node["properties"]["children"] == {
            "type": "array",
            "items": {"$ref": "#/components/schemas/Node"},
        }
        assert node["required"] == ["value"]

    def test_pydantic_model(self):
        components, reflector = _reflector()
        reflector.reflect(Author)
        author = components.schemas["Author"].to_dict()
        assert author["description"] == "Someone who writes books."
        assert author["properties"]["fullName"] == {"type": "string", "description": "Display name"}
        assert author["properties"]["born"] == {"type": "string", "format": "date", "nullable": True}
        assert author["properties"]["genres"]["items"] == {"type": "string", "enum": ["fiction", "poetry"]}
        assert author["required"] == ["fullName"]

    def test_typed_dict_with_nested_record(self):
        components, reflector = _reflector()
        reflector.reflect(Shelf)
        shelf = components.schemas["Shelf"].to_dict()
        assert shelf["properties"]["books"]["items"] == {"$ref": "#/components/schemas/Book"}
        assert "Book" in components.schemas

    def test_named_tuple_defaults_are_optional(self):
        components, reflector = _reflector()
        reflector.reflect(Point)
        assert components.schemas["Point"].to_dict()["required"] == ["x"]

    def test_mapping_and_set(self):
        _, reflector = _reflector()
        assert reflector.reflect(dict[str, float]).to_dict() == {
            "type": "object",
            "additionalProperties": {"type": "number"},
        }
        assert reflector.reflect(set[str]).to_dict() == {
            "type": "array",
            "items": {"type": "string"},
            "uniqueItems": True,
        }

    def test_literal(self):
        _, reflector = _reflector()
        assert reflector.reflect(Literal[1, 2]).to_dict() == {"type": "integer", "enum": [1, 2]}

    def test_key_overrides_record_name(self):
        components, reflector = _reflector()
        schema = reflector.reflect(Book, key="BookV2")
        assert schema.ref == "#/components/schemas/BookV2"
        assert "Book" not in components.schemas

    def test_key_registers_inline_schema(self):
        components, reflector = _reflector()
        schema = reflector.reflect(list[Book], key="Books")
        assert schema.ref == "#/components/schemas/Books"
        assert components.schemas["Books"].to_dict() == {
            "type": "array",
            "items": {"$ref": "#/components/schemas/Book"},
        }

    def test_existing_key_is_reused(self):
        components, reflector = _reflector()
        reflector.reflect(int, key="Count")
        schema = reflector.reflect(str, key="Count")
        assert schema.ref == "#/components/schemas/Count"
        assert components.schemas["Count"].to_dict() == {"type": "integer"}

    def test_name_clash_keeps_first_and_warns(self, caplog):
        components, reflector = _reflector()
        reflector.reflect(Book)
        other_book = make_dataclass("Book", [("title", str)])
        with caplog.at_level(logging.WARNING):
            schema = reflector.reflect(other_book)
        assert schema.ref == "#/components/schemas/Book"
        assert "name" in components.schemas["Book"].properties
        assert "already defined" in caplog.text


class TestReflectValues:
    def test_primitives(self):
        _, reflector = _reflector()
        assert reflector.reflect(True).to_dict() == {"type": "boolean"}
        assert reflector.reflect(3).to_dict() == {"type": "integer"}
        assert reflector.reflect("x").to_dict() == {"type": "string"}

    def test_list_items(self):
        _, reflector = _reflector()
        assert reflector.reflect([1, 2]).to_dict() == {"type": "array", "items": {"type": "integer"}}
        assert reflector.reflect([]).to_dict() == {"type": "array", "items": {}}

    def test_list_of_records(self):
        components, reflector = _reflector()
        schema = reflector.reflect([Book("a", "b", "c", "d")])
        assert schema.to_dict()["items"] == {"$ref": "#/components/schemas/Book"}
        assert "Book" in components.schemas

    def test_dict_value(self):
        _, reflector = _reflector()
        assert reflector.reflect({"a": 1.5}).to_dict() == {
            "type": "object",
            "additionalProperties": {"type": "number"},
        }


class TestReflectErrors:
    def test_unknown_type(self):
        _, reflector = _reflector()
        with pytest.raises(BuildError, match="Opaque"):
            reflector.reflect(Opaque)

    def test_unknown_field_names_location(self):
        _, reflector = _reflector()
        with pytest.raises(BuildError, match="Holder.handle"):
            reflector.reflect(Holder)

    def test_none_value(self):
        _, reflector = _reflector()
        with pytest.raises(BuildError):
            reflector.reflect(None)

    def test_union(self):
        _, reflector = _reflector()
        with pytest.raises(BuildError):
            reflector.reflect(int | str)

    def test_non_string_mapping_keys(self):
        _, reflector = _reflector()
        with pytest.raises(BuildError, match="mapping keys"):
            reflector.reflect(dict[int, str])

    def test_non_string_sample_keys(self):
        _, reflector = _reflector()
        with pytest.raises(BuildError, match="mapping keys must be strings, got int"):
            reflector.reflect({1: "a"})

    def test_heterogeneous_sample_list(self):
        _, reflector = _reflector()
        with pytest.raises(BuildError, match="heterogeneous list"):
            reflector.reflect([1, "a"])


class TestToExample:
    def test_dataclass(self):
        assert to_example(Book("a", "b", "c", "d")) == {"name": "a", "author": "b", "isdn": "c", "publisher": "d"}

    def test_pydantic_uses_aliases(self):
        example = to_example(Author(fullName="Ursula", born=datetime.date(1929, 10, 21)))
        assert example == {"fullName": "Ursula", "born": "1929-10-21", "genres": []}

    def test_types_have_no_example(self):
        assert to_example(Book) is None

    def test_nested_values(self):
        assert to_example({"when": datetime.date(2020, 1, 2), "genre": Genre.POETRY}) == {
            "when": "2020-01-02",
            "genre": "poetry",
        }
