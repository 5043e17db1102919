"""Concrete schema types other than records: primitives, containers, unions and named types."""

from __future__ import annotations

import json
from collections.abc import Iterable, Sequence
from typing import Any

from avrokit.base import (
    AvroError,
    FingerprintType,
    LogicalSchema,
    Name,
    Schema,
    SchemaType,
    validate_name,
)


def _dumps(value: Any) -> str:
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False)


class _NamedSchema(Schema):
    """A schema identified by a full name, with optional aliases."""

    def __init__(
        self,
        name: str,
        namespace: str | None = "",
        aliases: Iterable[str] = (),
        props: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(props)
        self._name = Name(name, namespace, aliases)

    @property
    def name(self) -> str:
        """The short name of the schema."""
        return self._name.name

    @property
    def namespace(self) -> str:
        """The namespace of the schema."""
        return self._name.namespace

    @property
    def full_name(self) -> str:
        """The fully qualified name of the schema."""
        return self._name.full_name

    @property
    def aliases(self) -> tuple[str, ...]:
        """The fully qualified aliases of the schema."""
        return self._name.aliases


class PrimitiveSchema(Schema):
    """A primitive type, optionally annotated with a logical type."""

    def __init__(
        self,
        typ: SchemaType | str,
        logical: LogicalSchema | None = None,
        props: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(props)
        try:
            typ = SchemaType(typ)
        except ValueError:
            pass
        self._type = typ
        self.logical = logical

    @property
    def type(self) -> SchemaType:
        return self._type

    def __str__(self) -> str:
        if self.logical is None:
            return f'"{self._type}"'
        return f'{{"type":"{self._type}",{self.logical}}}'

    def to_json(self) -> str:
        """Return the JSON form of the schema."""
        return str(self)


class NullSchema(Schema):
    """The null type."""

    def __init__(self) -> None:
        super().__init__()

    @property
    def type(self) -> SchemaType:
        return SchemaType.NULL

    def __str__(self) -> str:
        return '"null"'

    def to_json(self) -> str:
        """Return the JSON form of the schema."""
        return '"null"'


class ArraySchema(Schema):
    """An array of items of one schema."""

    def __init__(self, items: Schema, props: dict[str, Any] | None = None) -> None:
        super().__init__(props)
        self.items = items

    @property
    def type(self) -> SchemaType:
        return SchemaType.ARRAY

    def __str__(self) -> str:
        return f'{{"type":"array","items":{self.items}}}'

    def to_json(self) -> str:
        """Return the JSON form of the schema."""
        return f'{{"type":"array","items":{self.items.to_json()}}}'


class MapSchema(Schema):
    """A map from strings to values of one schema."""

    def __init__(self, values: Schema, props: dict[str, Any] | None = None) -> None:
        super().__init__(props)
        self.values = values

    @property
    def type(self) -> SchemaType:
        return SchemaType.MAP

    def __str__(self) -> str:
        return f'{{"type":"map","values":{self.values}}}'

    def to_json(self) -> str:
        """Return the JSON form of the schema."""
        return f'{{"type":"map","values":{self.values.to_json()}}}'


class UnionSchema(Schema):
    """A union of distinct, non-union schemas."""

    def __init__(self, types: Sequence[Schema]) -> None:
        super().__init__()
        seen: set[str] = set()
        for schema in types:
            if schema.type == SchemaType.UNION:
                raise AvroError("avro: union type cannot be a union")
            key = schema_type_name(schema)
            if key in seen:
                raise AvroError("avro: union type must be unique")
            seen.add(key)
        self.types = tuple(types)

    @property
    def type(self) -> SchemaType:
        return SchemaType.UNION

    def get(self, name: str) -> tuple[Schema | None, int]:
        """Return the member schema with the given type name and its position, or (None, -1)."""
        for index, schema in enumerate(self.types):
            if schema_type_name(schema) == name:
                return schema, index
        return None, -1

    def nullable(self) -> bool:
        """Whether the union is a pair of null and one other type."""
        return len(self.types) == 2 and any(t.type == SchemaType.NULL for t in self.types)

    def indices(self) -> tuple[int, int]:
        """Return the positions of (null, other type) for a nullable union, else (0, 0)."""
        if not self.nullable():
            return 0, 0
        if self.types[0].type == SchemaType.NULL:
            return 0, 1
        return 1, 0

    def __str__(self) -> str:
        return "[" + ",".join(str(t) for t in self.types) + "]"

    def to_json(self) -> str:
        """Return the JSON form of the schema."""
        return "[" + ",".join(t.to_json() for t in self.types) + "]"


class FixedSchema(_NamedSchema):
    """A named fixed-size byte sequence, optionally with a logical type."""

    def __init__(
        self,
        name: str,
        namespace: str | None = "",
        size: int = 0,
        logical: LogicalSchema | None = None,
        aliases: Iterable[str] = (),
        props: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(name, namespace, aliases, props)
        self.size = size
        self.logical = logical

    @property
    def type(self) -> SchemaType:
        return SchemaType.FIXED

    def _logical_suffix(self) -> str:
        return f",{self.logical}" if self.logical is not None else ""

    def __str__(self) -> str:
        return (
            f'{{"name":"{self.full_name}","type":"fixed","size":{self.size}'
            f"{self._logical_suffix()}}}"
        )

    def to_json(self) -> str:
        """Return the JSON form of the schema."""
        doc: dict[str, Any] = {"name": self.full_name}
        if self.aliases:
            doc["aliases"] = list(self.aliases)
        doc["type"] = "fixed"
        doc["size"] = self.size
        return _dumps(doc)[:-1] + self._logical_suffix() + "}"


class EnumSchema(_NamedSchema):
    """A named set of symbols."""

    def __init__(
        self,
        name: str,
        namespace: str | None = "",
        symbols: Sequence[str] = (),
        default: str | None = "",
        aliases: Iterable[str] = (),
        doc: str | None = "",
        props: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(name, namespace, aliases, props)
        if not symbols:
            raise AvroError("avro: enum must have a non-empty array of symbols")
        for symbol in symbols:
            if not isinstance(symbol, str):
                raise AvroError(f"avro: invalid symbol {symbol!r}")
            try:
                validate_name(symbol)
            except AvroError:
                raise AvroError(f"avro: invalid symbol {symbol!r}") from None
        if isinstance(default, str) and default:
            if default not in symbols:
                raise AvroError(f"avro: symbol default {default!r} must be a symbol")
        else:
            default = ""
        self.symbols = tuple(symbols)
        self.default = default
        self.doc = doc or ""

    @property
    def type(self) -> SchemaType:
        return SchemaType.ENUM

    def __str__(self) -> str:
        symbols = ",".join(f'"{s}"' for s in self.symbols)
        return f'{{"name":"{self.full_name}","type":"enum","symbols":[{symbols}]}}'

    def to_json(self) -> str:
        """Return the JSON form of the schema."""
        doc: dict[str, Any] = {"name": self.full_name}
        if self.aliases:
            doc["aliases"] = list(self.aliases)
        if self.doc:
            doc["doc"] = self.doc
        doc["type"] = "enum"
        doc["symbols"] = list(self.symbols)
        if self.default:
            doc["default"] = self.default
        return _dumps(doc)


class RefSchema(Schema):
    """A reference, by name, to a named schema defined elsewhere."""

    def __init__(self, schema: Schema) -> None:
        super().__init__()
        self._actual = schema

    @property
    def type(self) -> SchemaType:
        return SchemaType.REF

    @property
    def schema(self) -> Schema:
        """The schema being referenced."""
        return self._actual

    @property
    def full_name(self) -> str:
        """The full name of the referenced schema."""
        return self._actual.full_name  # type: ignore[attr-defined]

    def __str__(self) -> str:
        return f'"{self.full_name}"'

    def fingerprint(self) -> bytes:
        """Return the SHA-256 fingerprint of the referenced schema."""
        return self._actual.fingerprint()

    def fingerprint_using(self, typ: FingerprintType | str) -> bytes:
        """Return the fingerprint of the referenced schema using the given algorithm."""
        return self._actual.fingerprint_using(typ)

    def to_json(self) -> str:
        """Return the JSON form of the reference."""
        return f'"{self.full_name}"'


def schema_type_name(schema: Schema) -> str:
    """Return the name that identifies a schema within a union."""
    if isinstance(schema, RefSchema):
        schema = schema.schema
    full_name = getattr(schema, "full_name", None)
    if isinstance(full_name, str):
        return full_name
    name = str(schema.type)
    if schema.logical is not None:
        name += "." + str(schema.logical.type)
    return name