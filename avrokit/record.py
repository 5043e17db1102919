"""Record schemas, their fields, and validation of field defaults."""

from __future__ import annotations

import json
import math
import struct
from collections.abc import Iterable, Sequence
from typing import Any

from avrokit.base import FIELD_RESERVED, AvroError, Order, Schema, SchemaType, validate_name
from avrokit.schema import ArraySchema, MapSchema, UnionSchema, _NamedSchema


def _dumps(value: Any) -> str:
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False)


class _NoDefault:
    def __repr__(self) -> str:
        return "NO_DEFAULT"


NO_DEFAULT: Any = _NoDefault()
"""Marks a field that has no default value."""

_INVALID = object()


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _checked_default(schema: Schema, value: Any) -> Any:
    """Return the normalised default, or _INVALID if it does not fit the schema."""
    typ = schema.type

    if typ == SchemaType.NULL:
        return None if value is None else _INVALID

    if typ in (SchemaType.STRING, SchemaType.BYTES, SchemaType.ENUM, SchemaType.FIXED):
        return value if isinstance(value, str) else _INVALID

    if typ == SchemaType.BOOLEAN:
        return value if isinstance(value, bool) else _INVALID

    if typ in (SchemaType.INT, SchemaType.LONG):
        if not _is_number(value):
            return _INVALID
        if isinstance(value, float):
            if not math.isfinite(value):
                return _INVALID
            return int(value)
        return value

    if typ == SchemaType.FLOAT:
        if not _is_number(value):
            return _INVALID
        try:
            return struct.unpack("<f", struct.pack("<f", float(value)))[0]
        except (OverflowError, struct.error):
            return _INVALID

    if typ == SchemaType.DOUBLE:
        return float(value) if _is_number(value) else _INVALID

    if typ == SchemaType.ARRAY and isinstance(schema, ArraySchema):
        if not isinstance(value, (list, tuple)):
            return _INVALID
        items = []
        for item in value:
            checked = _checked_default(schema.items, item)
            if checked is _INVALID:
                return _INVALID
            items.append(checked)
        return items

    if typ == SchemaType.MAP and isinstance(schema, MapSchema):
        if not isinstance(value, dict):
            return _INVALID
        entries = {}
        for key, item in value.items():
            checked = _checked_default(schema.values, item)
            if checked is _INVALID:
                return _INVALID
            entries[key] = checked
        return entries

    if typ == SchemaType.UNION and isinstance(schema, UnionSchema):
        return _checked_default(schema.types[0], value)

    if typ == SchemaType.RECORD and isinstance(schema, RecordSchema):
        if not isinstance(value, dict):
            return _INVALID
        record = dict(value)
        for field in schema.fields:
            field_default = record.get(field.name, field.default)
            checked = _checked_default(field.type, field_default)
            if checked is _INVALID:
                return _INVALID
            record[field.name] = checked
        return record

    return _INVALID


def validate_default(name: str, schema: Schema, default: Any) -> Any:
    """Return ``default`` normalised for ``schema``, raising AvroError if it does not fit."""
    checked = _checked_default(schema, default)
    if checked is _INVALID:
        raise AvroError(f"avro: invalid default for field {name}. {default!r} not a {schema.type}")
    return checked


class Field:
    """A field of a record schema."""

    def __init__(
        self,
        name: str,
        typ: Schema,
        default: Any = NO_DEFAULT,
        aliases: Iterable[str] = (),
        doc: str | None = "",
        order: Order | str | None = None,
        props: dict[str, Any] | None = None,
    ) -> None:
        validate_name(name)
        aliases = tuple(aliases or ())
        for alias in aliases:
            validate_name(alias)

        if order in (None, ""):
            order = Order.ASC
        else:
            try:
                order = Order(order)
            except ValueError:
                raise AvroError(f"avro: field {name!r} order {order!r} is invalid") from None

        self.name = name
        self.type = typ
        self.aliases = aliases
        self.doc = doc or ""
        self.order = order
        self._props = {k: v for k, v in (props or {}).items() if k not in FIELD_RESERVED}

        self.has_default = default is not NO_DEFAULT
        self._default = validate_default(name, typ, default) if self.has_default else None

    @property
    def default(self) -> Any:
        """The default value, or None when there is none."""
        return self._default

    @property
    def props(self) -> dict[str, Any]:
        """A copy of the non-reserved properties."""
        return dict(self._props)

    def prop(self, name: str) -> Any:
        """Return a property of the field, or None."""
        return self._props.get(name)

    def __str__(self) -> str:
        return f'{{"name":"{self.name}","type":{self.type}}}'

    def to_json(self) -> str:
        """Return the JSON form of the field."""
        parts = [f'"name":{_dumps(self.name)}']
        if self.aliases:
            parts.append(f'"aliases":{_dumps(list(self.aliases))}')
        if self.doc:
            parts.append(f'"doc":{_dumps(self.doc)}')
        parts.append(f'"type":{self.type.to_json()}')  # type: ignore[attr-defined]
        if self.order != Order.ASC:
            parts.append(f'"order":{_dumps(self.order.value)}')
        if self.has_default:
            parts.append(f'"default":{_dumps(self._default)}')
        return "{" + ",".join(parts) + "}"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Field):
            return NotImplemented
        return (
            self.name == other.name
            and str(self.type) == str(other.type)
            and self.has_default == other.has_default
            and self._default == other._default
            and self.order == other.order
            and self.aliases == other.aliases
        )

    def __hash__(self) -> int:
        return hash((self.name, str(self.type)))

    def __repr__(self) -> str:
        return f"Field({self})"


class RecordSchema(_NamedSchema):
    """A named record made of ordered fields; error records are flagged by ``is_error``."""

    def __init__(
        self,
        name: str,
        namespace: str | None = "",
        fields: Sequence[Field] = (),
        is_error: bool = False,
        aliases: Iterable[str] = (),
        doc: str | None = "",
        props: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(name, namespace, aliases, props)
        self.fields: list[Field] = list(fields)
        self.is_error = is_error
        self.doc = doc or ""

    @property
    def type(self) -> SchemaType:
        return SchemaType.RECORD

    @property
    def _kind(self) -> str:
        return "error" if self.is_error else "record"

    def __str__(self) -> str:
        fields = ",".join(str(f) for f in self.fields)
        return f'{{"name":"{self.full_name}","type":"{self._kind}","fields":[{fields}]}}'

    def to_json(self) -> str:
        """Return the JSON form of the schema."""
        parts = [f'"name":{_dumps(self.full_name)}']
        if self.aliases:
            parts.append(f'"aliases":{_dumps(list(self.aliases))}')
        if self.doc:
            parts.append(f'"doc":{_dumps(self.doc)}')
        parts.append(f'"type":"{self._kind}"')
        parts.append('"fields":[' + ",".join(f.to_json() for f in self.fields) + "]")
        return "{" + ",".join(parts) + "}"