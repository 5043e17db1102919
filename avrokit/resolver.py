"""Resolution between Avro type names and Python types."""

from __future__ import annotations

import datetime
import threading
from fractions import Fraction
from typing import Any

from avrokit.base import AvroError, LogicalType, SchemaType


def _as_type(obj: Any) -> type:
    return obj if isinstance(obj, type) else type(obj)


class TypeResolver:
    """Maps Avro type names to Python types and back; primitives are pre-registered."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._names: dict[str, type] = {}
        self._types: dict[type, list[str]] = {}

        self.register(SchemaType.NULL.value, type(None))
        self.register(SchemaType.INT.value, int)
        self.register(SchemaType.LONG.value, int)
        self.register(SchemaType.FLOAT.value, float)
        self.register(SchemaType.DOUBLE.value, float)
        self.register(SchemaType.STRING.value, str)
        self.register(SchemaType.BYTES.value, bytes)
        self.register(SchemaType.BOOLEAN.value, bool)

        logical = [
            (SchemaType.INT, LogicalType.DATE, datetime.datetime),
            (SchemaType.INT, LogicalType.TIME_MILLIS, datetime.timedelta),
            (SchemaType.LONG, LogicalType.TIMESTAMP_MILLIS, datetime.datetime),
            (SchemaType.LONG, LogicalType.TIMESTAMP_MICROS, datetime.datetime),
            (SchemaType.LONG, LogicalType.TIME_MICROS, datetime.timedelta),
            (SchemaType.BYTES, LogicalType.DECIMAL, Fraction),
        ]
        for base, lt, typ in logical:
            self.register(f"{base.value}.{lt.value}", typ)

    def register(self, name: str, typ: Any) -> None:
        """Register ``name`` for a type (or the type of an instance)."""
        typ = _as_type(typ)
        with self._lock:
            self._names[name] = typ
            self._types.setdefault(typ, []).append(name)

    def name(self, typ: Any) -> list[str]:
        """Return the names registered for a type (or the type of an instance)."""
        typ = _as_type(typ)
        with self._lock:
            names = self._types.get(typ)
        if names is None:
            raise AvroError(f"avro: unable to resolve type {typ.__qualname__}")
        return list(names)

    def type(self, name: str) -> type:
        """Return the type registered for ``name``."""
        with self._lock:
            typ = self._names.get(name)
        if typ is None:
            raise AvroError(f"avro: unable to resolve type with name {name}")
        return typ