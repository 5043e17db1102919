"""Decoding Avro data into plain Python values, driven by a schema."""

from __future__ import annotations

import datetime
from collections.abc import Iterator
from fractions import Fraction
from typing import Any

from avrokit.base import AvroError, DecimalLogicalSchema, LogicalType, Schema, SchemaType
from avrokit.reader import Reader
from avrokit.record import RecordSchema
from avrokit.schema import (
    ArraySchema,
    EnumSchema,
    FixedSchema,
    MapSchema,
    RefSchema,
    UnionSchema,
    schema_type_name,
)

_EPOCH = datetime.datetime(1970, 1, 1, tzinfo=datetime.timezone.utc)


def _decimal(data: bytes, scale: int) -> Fraction:
    unscaled = int.from_bytes(data, "big", signed=True)
    return Fraction(unscaled, 10**scale)


def iter_array(reader: Reader) -> Iterator[int]:
    """Yield the index of each array item; read the item before advancing."""
    index = 0
    while True:
        count, _ = reader.read_block_header()
        if count == 0:
            return
        for _ in range(count):
            yield index
            index += 1


def iter_map(reader: Reader) -> Iterator[str]:
    """Yield the key of each map entry; read the value before advancing."""
    while True:
        count, _ = reader.read_block_header()
        if count == 0:
            return
        for _ in range(count):
            yield reader.read_string()


def read_next(reader: Reader, schema: Schema) -> Any:
    """Read the next value described by ``schema`` as plain Python data."""
    logical = schema.logical
    lt = logical.type if logical is not None else None
    typ = schema.type

    if typ == SchemaType.BOOLEAN:
        return reader.read_bool()

    if typ == SchemaType.INT:
        if lt == LogicalType.DATE:
            return _EPOCH + datetime.timedelta(days=reader.read_int())
        if lt == LogicalType.TIME_MILLIS:
            return datetime.timedelta(milliseconds=reader.read_int())
        return reader.read_int()

    if typ == SchemaType.LONG:
        if lt == LogicalType.TIME_MICROS:
            return datetime.timedelta(microseconds=reader.read_long())
        if lt == LogicalType.TIMESTAMP_MILLIS:
            return _EPOCH + datetime.timedelta(milliseconds=reader.read_long())
        if lt == LogicalType.TIMESTAMP_MICROS:
            return _EPOCH + datetime.timedelta(microseconds=reader.read_long())
        return reader.read_long()

    if typ == SchemaType.FLOAT:
        return reader.read_float()

    if typ == SchemaType.DOUBLE:
        return reader.read_double()

    if typ == SchemaType.STRING:
        return reader.read_string()

    if typ == SchemaType.BYTES:
        data = reader.read_bytes()
        if isinstance(logical, DecimalLogicalSchema):
            return _decimal(data, logical.scale)
        return data

    if isinstance(schema, RecordSchema):
        return {field.name: read_next(reader, field.type) for field in schema.fields}

    if isinstance(schema, RefSchema):
        return read_next(reader, schema.schema)

    if isinstance(schema, EnumSchema):
        index = reader.read_int()
        if not 0 <= index < len(schema.symbols):
            raise AvroError("avro: Read: unknown enum symbol")
        return schema.symbols[index]

    if isinstance(schema, ArraySchema):
        return [read_next(reader, schema.items) for _ in iter_array(reader)]

    if isinstance(schema, MapSchema):
        return {key: read_next(reader, schema.values) for key in iter_map(reader)}

    if isinstance(schema, UnionSchema):
        index = reader.read_long()
        if not 0 <= index < len(schema.types):
            raise AvroError("avro: Read: unknown union type")
        member = schema.types[index]
        if member.type == SchemaType.NULL:
            return None
        return {schema_type_name(member): read_next(reader, member)}

    if isinstance(schema, FixedSchema):
        data = reader.read(schema.size)
        if isinstance(logical, DecimalLogicalSchema):
            return _decimal(data, logical.scale)
        return data

    raise AvroError(f"avro: Read: unexpected schema type: {typ}")