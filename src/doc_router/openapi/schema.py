"""Reflect python types and values into OpenAPI schemas.

Every type is first classified into a :class:`Kind`, then built by the rule
registered for that kind. Record-like types (dataclasses, pydantic models,
TypedDicts, NamedTuples) always become components and are referenced with
``$ref``, so the same record used by many operations is stored once.
"""

import dataclasses
import datetime
import types
import typing
import uuid
from collections.abc import Mapping, Sequence
from decimal import Decimal
from enum import Enum
from typing import Any, Literal, Union, get_args, get_origin, get_type_hints

from pydantic import BaseModel

from doc_router.errors import BuildError
from doc_router.openapi.components import Components
from doc_router.openapi.models import Schema

_NONE = type(None)


class Kind(Enum):
    BOOLEAN = "boolean"
    INTEGER = "integer"
    NUMBER = "number"
    STRING = "string"
    BINARY = "binary"
    DATE = "date"
    DATETIME = "date-time"
    UUID = "uuid"
    ENUM = "enum"
    LITERAL = "literal"
    ARRAY = "array"
    MAPPING = "mapping"
    RECORD = "record"
    OPTIONAL = "optional"
    ANY = "any"


# kind -> (type, format)
_PRIMITIVES = {
    Kind.BOOLEAN: ("boolean", None),
    Kind.INTEGER: ("integer", None),
    Kind.NUMBER: ("number", None),
    Kind.STRING: ("string", None),
    Kind.BINARY: ("string", "binary"),
    Kind.DATE: ("string", "date"),
    Kind.DATETIME: ("string", "date-time"),
    Kind.UUID: ("string", "uuid"),
}

_ARRAY_ORIGINS = (list, tuple, set, frozenset, Sequence)
_MAPPING_ORIGINS = (dict, Mapping)


def is_type_like(target: Any) -> bool:
    """True for classes and ``typing`` constructs, False for plain values."""
    if isinstance(target, type) or target is Any:
        return True
    return get_origin(target) is not None


def is_record(tp: Any) -> bool:
    if not isinstance(tp, type):
        return False
    if dataclasses.is_dataclass(tp) or issubclass(tp, BaseModel):
        return True
    if typing.is_typeddict(tp):
        return True
    return issubclass(tp, tuple) and hasattr(tp, "_fields")


def kind_of(tp: Any) -> Kind | None:
    """Classify a type; None means the type cannot be modelled."""
    if tp is Any or tp is object:
        return Kind.ANY
    origin = get_origin(tp)
    if origin is typing.Annotated:
        return kind_of(get_args(tp)[0])
    if origin is Union or origin is types.UnionType:
        non_none = [a for a in get_args(tp) if a is not _NONE]
        if len(non_none) == 1 and len(non_none) < len(get_args(tp)):
            return Kind.OPTIONAL
        return None
    if origin is Literal:
        return Kind.LITERAL
    if origin is not None:
        if isinstance(origin, type) and issubclass(origin, _MAPPING_ORIGINS):
            return Kind.MAPPING
        if isinstance(origin, type) and issubclass(origin, _ARRAY_ORIGINS):
            return Kind.ARRAY
        return None
    if not isinstance(tp, type):
        return None
    # order matters: bool < int, IntEnum < int, datetime < date, NamedTuple < tuple
    if issubclass(tp, bool):
        return Kind.BOOLEAN
    if issubclass(tp, Enum):
        return Kind.ENUM
    if is_record(tp):
        return Kind.RECORD
    if issubclass(tp, int):
        return Kind.INTEGER
    if issubclass(tp, (float, Decimal)):
        return Kind.NUMBER
    if issubclass(tp, str):
        return Kind.STRING
    if issubclass(tp, (bytes, bytearray)):
        return Kind.BINARY
    if issubclass(tp, datetime.datetime):
        return Kind.DATETIME
    if issubclass(tp, datetime.date):
        return Kind.DATE
    if issubclass(tp, uuid.UUID):
        return Kind.UUID
    if issubclass(tp, _MAPPING_ORIGINS):
        return Kind.MAPPING
    if issubclass(tp, (list, tuple, set, frozenset)):
        return Kind.ARRAY
    return None


def primitive_schema(tp: Any) -> Schema:
    """Schema for a scalar type; raises for anything composite."""
    kind = kind_of(tp)
    if kind not in _PRIMITIVES:
        raise BuildError(f"{tp!r} is not a primitive type")
    typ, fmt = _PRIMITIVES[kind]
    return Schema(type=typ, format=fmt)


def _enum_type(values: list) -> str | None:
    if values and all(isinstance(v, str) for v in values):
        return "string"
    if values and all(isinstance(v, int) and not isinstance(v, bool) for v in values):
        return "integer"
    return None


def _class_doc(cls: type) -> str | None:
    doc = cls.__dict__.get("__doc__")
    if not doc:
        return None
    # dataclasses synthesize "Name(field: type, ...)" when undocumented
    if dataclasses.is_dataclass(cls) and doc.startswith(cls.__name__ + "("):
        return None
    return doc.strip()


@dataclasses.dataclass
class _Field:
    name: str
    annotation: Any
    required: bool
    description: str | None = None


def _record_fields(cls: type) -> list[_Field]:
    if issubclass(cls, BaseModel):
        fields = []
        for name, info in cls.model_fields.items():
            prop = info.serialization_alias or info.alias or name
            fields.append(_Field(prop, info.annotation, info.is_required(), info.description))
        return fields

    hints = get_type_hints(cls, include_extras=True)
    if dataclasses.is_dataclass(cls):
        return [
            _Field(
                f.name,
                hints.get(f.name, Any),
                f.default is dataclasses.MISSING and f.default_factory is dataclasses.MISSING,
            )
            for f in dataclasses.fields(cls)
        ]
    if typing.is_typeddict(cls):
        required = cls.__required_keys__
        return [_Field(name, tp, name in required) for name, tp in hints.items()]
    # NamedTuple
    defaults = getattr(cls, "_field_defaults", {})
    return [_Field(name, hints.get(name, Any), name not in defaults) for name in cls._fields]


class SchemaReflector:
    """Builds schemas, storing records in a :class:`Components` registry."""

    def __init__(self, components: Components):
        self.components = components
        self._rules = {
            Kind.ENUM: self._enum,
            Kind.LITERAL: self._literal,
            Kind.ARRAY: self._array,
            Kind.MAPPING: self._mapping,
            Kind.RECORD: self._record,
            Kind.OPTIONAL: self._optional,
            Kind.ANY: lambda tp, where, key: Schema(),
        }
        for kind in _PRIMITIVES:
            self._rules[kind] = self._primitive

    def reflect(self, target: Any, key: str | None = None) -> Schema:
        """Schema for a type or a value.

        ``key`` names the component the result is stored under. Without it,
        records use their class name and everything else stays inline. When
        ``key`` is already registered the stored entry is reused as-is.
        """
        if key and self.components.has_schema(key):
            self.components.claim_schema(key, self._origin(target))
            return Schema.reference("schemas", key)
        if is_type_like(target):
            schema = self.from_type(target, where=_describe(target), key=key)
        else:
            schema = self.from_value(target, where=type(target).__name__, key=key)
        if key and schema.ref_key != key:
            if self.components.claim_schema(key, self._origin(target)):
                return self.components.set_schema(key, schema)
            return Schema.reference("schemas", key)
        return schema

    def from_type(self, tp: Any, where: str, key: str | None = None) -> Schema:
        if get_origin(tp) is typing.Annotated:
            tp = get_args(tp)[0]
        kind = kind_of(tp)
        if kind is None:
            raise BuildError(f"cannot build a schema for {_describe(tp)} at {where}")
        return self._rules[kind](tp, where, key)

    def from_value(self, value: Any, where: str, key: str | None = None) -> Schema:
        if value is None:
            raise BuildError(f"cannot infer a schema from None at {where}")
        if isinstance(value, (list, tuple, set, frozenset)) and not is_record(type(value)):
            items = Schema()
            if value:
                if len({type(v) for v in value}) > 1:
                    raise BuildError(f"cannot build a schema for heterogeneous {type(value).__name__} at {where}")
                first = next(iter(value))
                items = self.from_value(first, where=f"{where}[]")
            unique = True if isinstance(value, (set, frozenset)) else None
            return Schema(type="array", items=items, unique_items=unique)
        if isinstance(value, dict):
            bad = [k for k in value if not isinstance(k, str)]
            if bad:
                raise BuildError(f"mapping keys must be strings, got {type(bad[0]).__name__} at {where}")
            if not value:
                return Schema(type="object")
            first = next(iter(value.values()))
            return Schema(type="object", additional_properties=self.from_value(first, where=f"{where}{{}}"))
        return self.from_type(type(value), where=where, key=key)

    def _origin(self, target: Any) -> Any:
        return target if is_type_like(target) else type(target)

    def _primitive(self, tp, where, key):
        typ, fmt = _PRIMITIVES[kind_of(tp)]
        return Schema(type=typ, format=fmt)

    def _enum(self, tp, where, key):
        values = [m.value for m in tp]
        return Schema(type=_enum_type(values), enum=values)

    def _literal(self, tp, where, key):
        values = list(get_args(tp))
        return Schema(type=_enum_type(values), enum=values)

    def _optional(self, tp, where, key):
        inner = next(a for a in get_args(tp) if a is not _NONE)
        schema = self.from_type(inner, where, key)
        if schema.ref is None:
            schema.nullable = True
        return schema

    def _array(self, tp, where, key):
        origin = get_origin(tp) or tp
        args = [a for a in get_args(tp) if a is not Ellipsis]
        unique = True if issubclass(origin, (set, frozenset)) else None
        if not args:
            return Schema(type="array", items=Schema(), unique_items=unique)
        if len(set(args)) > 1:
            raise BuildError(f"cannot build a schema for heterogeneous {_describe(tp)} at {where}")
        items = self.from_type(args[0], where=f"{where}[]")
        return Schema(type="array", items=items, unique_items=unique)

    def _mapping(self, tp, where, key):
        args = get_args(tp)
        if len(args) < 2:
            return Schema(type="object")
        if kind_of(args[0]) not in (Kind.STRING, Kind.ENUM, Kind.LITERAL):
            raise BuildError(f"mapping keys must be strings, got {_describe(args[0])} at {where}")
        values = self.from_type(args[1], where=f"{where}{{}}")
        return Schema(type="object", additional_properties=values)

    def _record(self, tp, where, key):
        name = key or tp.__name__
        if not self.components.claim_schema(name, tp):
            return Schema.reference("schemas", name)

        properties = {}
        required = []
        for field in _record_fields(tp):
            prop = self.from_type(field.annotation, where=f"{tp.__name__}.{field.name}")
            if field.description and prop.ref is None:
                prop.description = field.description
            properties[field.name] = prop
            if field.required:
                required.append(field.name)

        schema = Schema(
            type="object",
            description=_class_doc(tp),
            properties=properties,
            required=required or None,
        )
        return self.components.set_schema(name, schema)


def _describe(tp: Any) -> str:
    if isinstance(tp, type):
        return tp.__qualname__
    return repr(tp)


def to_example(value: Any) -> Any:
    """Plain data suitable for an ``example`` field; types have no example."""
    if is_type_like(value):
        return None
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json", by_alias=True)
    if dataclasses.is_dataclass(value):
        return {f.name: to_example(getattr(value, f.name)) for f in dataclasses.fields(value)}
    if isinstance(value, tuple) and hasattr(value, "_asdict"):
        return to_example(value._asdict())
    if isinstance(value, Enum):
        return to_example(value.value)
    if isinstance(value, dict):
        return {str(k): to_example(v) for k, v in value.items()}
    if isinstance(value, (set, frozenset)):
        return [to_example(v) for v in sorted(value, key=repr)]
    if isinstance(value, (list, tuple)):
        return [to_example(v) for v in value]
    if isinstance(value, (datetime.date, datetime.time)):
        return value.isoformat()
    if isinstance(value, uuid.UUID):
        return str(value)
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, (bytes, bytearray)):
        return bytes(value).decode("utf-8", errors="replace")
    return value
