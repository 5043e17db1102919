"""Parsing of Avro schema documents into schema objects."""

from __future__ import annotations

import json
import math
from os import PathLike
from pathlib import Path
from typing import Any

from avrokit.base import (
    AvroError,
    DecimalLogicalSchema,
    LogicalSchema,
    LogicalType,
    PrimitiveLogicalSchema,
    Schema,
    SchemaCache,
    SchemaType,
)
from avrokit.record import NO_DEFAULT, Field, RecordSchema
from avrokit.schema import (
    ArraySchema,
    EnumSchema,
    FixedSchema,
    MapSchema,
    NullSchema,
    PrimitiveSchema,
    RefSchema,
    UnionSchema,
)

DEFAULT_SCHEMA_CACHE = SchemaCache()
"""The cache of named schemas shared by :func:`parse`."""

_PRIMITIVES = (
    SchemaType.STRING,
    SchemaType.BYTES,
    SchemaType.INT,
    SchemaType.LONG,
    SchemaType.FLOAT,
    SchemaType.DOUBLE,
    SchemaType.BOOLEAN,
)


def parse(schema: str) -> Schema:
    """Parse a schema document using the default schema cache."""
    return parse_with_cache(schema, "", DEFAULT_SCHEMA_CACHE)


def parse_with_cache(schema: str, namespace: str, cache: SchemaCache) -> Schema:
    """Parse a schema document in ``namespace``, resolving and storing named types in ``cache``."""
    try:
        document: Any = json.loads(schema)
    except ValueError:
        document = schema
    return _parse_type(namespace or "", document, cache)


def parse_files(*paths: str | PathLike[str]) -> Schema | None:
    """Parse the schema files in order, returning the last schema.

    Later files may refer to named types defined in earlier ones.
    """
    schema = None
    for path in paths:
        schema = parse(Path(path).read_text(encoding="utf-8"))
    return schema


def _schema_type(value: str) -> SchemaType | None:
    try:
        return SchemaType(value)
    except ValueError:
        return None


def _logical_type(value: str) -> LogicalType | None:
    try:
        return LogicalType(value)
    except ValueError:
        return None


def _get_str(m: dict[str, Any], key: str, what: str) -> str:
    value = m.get(key)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise AvroError(f"avro: error decoding {what}: {key!r} expected a string, got {value!r}")
    return value


def _get_int(m: dict[str, Any], key: str, what: str) -> int:
    value = m.get(key)
    if value is None:
        return 0
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise AvroError(f"avro: error decoding {what}: {key!r} expected a number, got {value!r}")
    if isinstance(value, float):
        if not math.isfinite(value):
            raise AvroError(f"avro: error decoding {what}: {key!r} is not finite")
        return int(value)
    return value


def _get_str_list(m: dict[str, Any], key: str, what: str) -> list[str]:
    value = m.get(key)
    if value is None:
        return []
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise AvroError(f"avro: error decoding {what}: {key!r} expected a list of strings")
    return value


def _get_dict_list(m: dict[str, Any], key: str, what: str) -> list[dict[str, Any]]:
    value = m.get(key)
    if value is None:
        return []
    if not isinstance(value, list) or not all(isinstance(v, dict) for v in value):
        raise AvroError(f"avro: error decoding {what}: {key!r} expected a list of objects")
    return value


def _full_name(namespace: str, name: str) -> str:
    if not namespace or "." in name:
        return name
    return f"{namespace}.{name}"


def _check_parsed_name(name: str, namespace: str, has_namespace: bool) -> None:
    if not name:
        raise AvroError("avro: non-empty name key required")
    if has_namespace and not namespace:
        raise AvroError("avro: namespace key must be non-empty or omitted")


def _parse_type(namespace: str, value: Any, cache: SchemaCache) -> Schema:
    if value is None:
        return NullSchema()
    if isinstance(value, str):
        return _parse_primitive_type(namespace, value, cache)
    if isinstance(value, dict):
        return _parse_complex_type(namespace, value, cache)
    if isinstance(value, list):
        return _parse_union(namespace, value, cache)
    raise AvroError(f"avro: unknown type: {value!r}")


def _parse_primitive_type(namespace: str, name: str, cache: SchemaCache) -> Schema:
    typ = _schema_type(name)
    if typ == SchemaType.NULL:
        return NullSchema()
    if typ in _PRIMITIVES:
        return PrimitiveSchema(typ)
    schema = cache.get(_full_name(namespace, name))
    if schema is None:
        raise AvroError(f"avro: unknown type: {name}")
    return schema


def _parse_complex_type(namespace: str, m: dict[str, Any], cache: SchemaCache) -> Schema:
    raw = m.get("type")
    if isinstance(raw, list):
        return _parse_union(namespace, raw, cache)
    if not isinstance(raw, str):
        raise AvroError(f"avro: unknown type: {m!r}")

    typ = _schema_type(raw)
    if typ == SchemaType.NULL:
        return NullSchema()
    if typ in _PRIMITIVES:
        return _parse_primitive(typ, m)
    if typ in (SchemaType.RECORD, SchemaType.ERROR):
        return _parse_record(typ, namespace, m, cache)
    if typ == SchemaType.ENUM:
        return _parse_enum(namespace, m, cache)
    if typ == SchemaType.ARRAY:
        return _parse_array(namespace, m, cache)
    if typ == SchemaType.MAP:
        return _parse_map(namespace, m, cache)
    if typ == SchemaType.FIXED:
        return _parse_fixed(namespace, m, cache)
    return _parse_type(namespace, raw, cache)


def _parse_primitive(typ: SchemaType, m: dict[str, Any]) -> Schema:
    logical_type = _get_str(m, "logicalType", "primitive")
    precision = _get_int(m, "precision", "primitive")
    scale = _get_int(m, "scale", "primitive")

    logical = None
    if logical_type:
        logical = _primitive_logical_type(typ, logical_type, precision, scale)
    return PrimitiveSchema(typ, logical, props=m)


def _primitive_logical_type(
    typ: SchemaType, name: str, precision: int, scale: int
) -> LogicalSchema | None:
    lt = _logical_type(name)
    allowed = {
        (SchemaType.STRING, LogicalType.UUID),
        (SchemaType.INT, LogicalType.DATE),
        (SchemaType.INT, LogicalType.TIME_MILLIS),
        (SchemaType.LONG, LogicalType.TIME_MICROS),
        (SchemaType.LONG, LogicalType.TIMESTAMP_MILLIS),
        (SchemaType.LONG, LogicalType.TIMESTAMP_MICROS),
    }
    if lt is not None and (typ, lt) in allowed:
        return PrimitiveLogicalSchema(lt)
    if typ == SchemaType.BYTES and lt == LogicalType.DECIMAL:
        return _decimal_logical_type(-1, precision, scale)
    return None


def _parse_record(
    typ: SchemaType, namespace: str, m: dict[str, Any], cache: SchemaCache
) -> Schema:
    name = _get_str(m, "name", "record")
    record_namespace = _get_str(m, "namespace", "record")
    aliases = _get_str_list(m, "aliases", "record")
    doc = _get_str(m, "doc", "record")
    raw_fields = _get_dict_list(m, "fields", "record")

    _check_parsed_name(name, record_namespace, "namespace" in m)
    if not record_namespace:
        record_namespace = namespace

    if "fields" not in m:
        raise AvroError("avro: record must have an array of fields")

    record = RecordSchema(
        name,
        record_namespace,
        (),
        is_error=typ == SchemaType.ERROR,
        aliases=aliases,
        doc=doc,
        props=m,
    )

    ref = RefSchema(record)
    cache.add(record.full_name, ref)
    for alias in record.aliases:
        cache.add(alias, ref)

    for raw in raw_fields:
        record.fields.append(_parse_field(record_namespace, raw, cache))
    return record


def _parse_field(namespace: str, m: dict[str, Any], cache: SchemaCache) -> Field:
    name = _get_str(m, "name", "field")
    aliases = _get_str_list(m, "aliases", "field")
    doc = _get_str(m, "doc", "field")
    order = _get_str(m, "order", "field")

    _check_parsed_name(name, "", False)

    if "type" not in m:
        raise AvroError("avro: field requires a type")
    typ = _parse_type(namespace, m["type"], cache)

    default = m["default"] if "default" in m else NO_DEFAULT

    return Field(
        name,
        typ,
        default=default,
        aliases=aliases,
        doc=doc,
        order=order or None,
        props=m,
    )


def _parse_enum(namespace: str, m: dict[str, Any], cache: SchemaCache) -> Schema:
    name = _get_str(m, "name", "enum")
    enum_namespace = _get_str(m, "namespace", "enum")
    aliases = _get_str_list(m, "aliases", "enum")
    doc = _get_str(m, "doc", "enum")
    symbols = _get_str_list(m, "symbols", "enum")
    default = _get_str(m, "default", "enum")

    _check_parsed_name(name, enum_namespace, "namespace" in m)
    if not enum_namespace:
        enum_namespace = namespace

    enum = EnumSchema(
        name,
        enum_namespace,
        symbols,
        default=default,
        aliases=aliases,
        doc=doc,
        props=m,
    )

    cache.add(enum.full_name, enum)
    for alias in enum.aliases:
        cache.add(alias, enum)
    return enum


def _parse_array(namespace: str, m: dict[str, Any], cache: SchemaCache) -> Schema:
    if "items" not in m:
        raise AvroError("avro: array must have an items key")
    return ArraySchema(_parse_type(namespace, m["items"], cache), props=m)


def _parse_map(namespace: str, m: dict[str, Any], cache: SchemaCache) -> Schema:
    if "values" not in m:
        raise AvroError("avro: map must have an values key")
    return MapSchema(_parse_type(namespace, m["values"], cache), props=m)


def _parse_union(namespace: str, values: list[Any], cache: SchemaCache) -> Schema:
    return UnionSchema([_parse_type(namespace, v, cache) for v in values])


def _parse_fixed(namespace: str, m: dict[str, Any], cache: SchemaCache) -> Schema:
    name = _get_str(m, "name", "fixed")
    fixed_namespace = _get_str(m, "namespace", "fixed")
    aliases = _get_str_list(m, "aliases", "fixed")
    size = _get_int(m, "size", "fixed")
    logical_type = _get_str(m, "logicalType", "fixed")
    precision = _get_int(m, "precision", "fixed")
    scale = _get_int(m, "scale", "fixed")

    _check_parsed_name(name, fixed_namespace, "namespace" in m)
    if not fixed_namespace:
        fixed_namespace = namespace

    if "size" not in m:
        raise AvroError("avro: fixed must have a size")

    logical = None
    if logical_type:
        logical = _fixed_logical_type(size, logical_type, precision, scale)

    fixed = FixedSchema(name, fixed_namespace, size, logical, aliases=aliases, props=m)

    cache.add(fixed.full_name, fixed)
    for alias in fixed.aliases:
        cache.add(alias, fixed)
    return fixed


def _fixed_logical_type(size: int, name: str, precision: int, scale: int) -> LogicalSchema | None:
    lt = _logical_type(name)
    if lt == LogicalType.DURATION and size == 12:
        return PrimitiveLogicalSchema(LogicalType.DURATION)
    if lt == LogicalType.DECIMAL:
        return _decimal_logical_type(size, precision, scale)
    return None


def _decimal_logical_type(size: int, precision: int, scale: int) -> LogicalSchema | None:
    if precision <= 0:
        return None
    if size > 0:
        max_precision = math.floor(math.log10(2) * (8 * size - 1))
        if precision > max_precision:
            return None
    if scale < 0 or scale > precision:
        return None
    return DecimalLogicalSchema(precision, scale)