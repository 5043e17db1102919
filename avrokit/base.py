"""Core schema building blocks: type enums, names, fingerprints and caches."""

from __future__ import annotations

import hashlib
import re
from abc import ABC, abstractmethod
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from enum import Enum
from typing import Any, Union


class AvroError(Exception):
    """Raised for invalid schemas, invalid data and unsupported operations."""


class _StrEnum(str, Enum):
    def __str__(self) -> str:
        return self.value


class SchemaType(_StrEnum):
    """The type of a schema."""

    RECORD = "record"
    ERROR = "error"
    REF = "<ref>"
    ENUM = "enum"
    ARRAY = "array"
    MAP = "map"
    UNION = "union"
    FIXED = "fixed"
    STRING = "string"
    BYTES = "bytes"
    INT = "int"
    LONG = "long"
    FLOAT = "float"
    DOUBLE = "double"
    BOOLEAN = "boolean"
    NULL = "null"


class Order(_StrEnum):
    """The sort order of a record field."""

    ASC = "ascending"
    DESC = "descending"
    IGNORE = "ignore"


class LogicalType(_StrEnum):
    """A logical type that annotates a schema."""

    DECIMAL = "decimal"
    UUID = "uuid"
    DATE = "date"
    TIME_MILLIS = "time-millis"
    TIME_MICROS = "time-micros"
    TIMESTAMP_MILLIS = "timestamp-millis"
    TIMESTAMP_MICROS = "timestamp-micros"
    DURATION = "duration"


class FingerprintType(_StrEnum):
    """A schema fingerprinting algorithm."""

    CRC64_AVRO = "CRC64-AVRO"
    MD5 = "MD5"
    SHA256 = "SHA256"


SCHEMA_RESERVED = frozenset(
    {
        "doc", "fields", "items", "name", "namespace", "size", "symbols",
        "values", "type", "aliases", "logicalType", "precision", "scale",
    }
)
FIELD_RESERVED = frozenset({"default", "doc", "name", "order", "type", "aliases"})

_NAME_RE = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")


def validate_name(name: str) -> None:
    """Raise AvroError unless ``name`` is a valid Avro name part."""
    if not name:
        raise AvroError("name must be a non-empty")
    if not _NAME_RE.fullmatch(name):
        raise AvroError(f"invalid name {name}")


def _validate_dotted(full: str) -> None:
    for part in full.split("."):
        try:
            validate_name(part)
        except AvroError as exc:
            raise AvroError(f"avro: invalid name part {part!r} in name {full!r}: {exc}") from exc


class Name:
    """A validated, namespace-qualified schema name with its aliases."""

    __slots__ = ("name", "namespace", "full_name", "aliases")

    def __init__(self, name: str, namespace: str | None = "", aliases: Iterable[str] = ()) -> None:
        namespace = namespace or ""
        if "." in name:
            namespace, _, name = name.rpartition(".")

        full = f"{namespace}.{name}" if namespace else name
        _validate_dotted(full)

        qualified = []
        for alias in aliases or ():
            if "." in alias:
                _validate_dotted(alias)
                qualified.append(alias)
                continue
            try:
                validate_name(alias)
            except AvroError as exc:
                raise AvroError(f"avro: invalid name {alias!r}: {exc}") from exc
            qualified.append(f"{namespace}.{alias}" if namespace else alias)

        self.name = name
        self.namespace = namespace
        self.full_name = full
        self.aliases = tuple(qualified)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Name):
            return NotImplemented
        return (self.full_name, self.aliases) == (other.full_name, other.aliases)

    def __hash__(self) -> int:
        return hash((self.full_name, self.aliases))

    def __repr__(self) -> str:
        return f"Name({self.full_name!r}, aliases={list(self.aliases)!r})"


_CRC64_EMPTY = 0xC15D213AA4D7A795


def _crc64_table() -> tuple[int, ...]:
    table = []
    for i in range(256):
        fp = i
        for _ in range(8):
            fp = (fp >> 1) ^ (_CRC64_EMPTY & -(fp & 1))
        table.append(fp)
    return tuple(table)


_CRC64_TABLE = _crc64_table()


def crc64_avro(data: bytes) -> bytes:
    """Return the 8-byte big-endian Avro CRC-64 fingerprint of ``data``."""
    fp = _CRC64_EMPTY
    for byte in data:
        fp = (fp >> 8) ^ _CRC64_TABLE[(fp ^ byte) & 0xFF]
    return fp.to_bytes(8, "big")


_FINGERPRINTERS: dict[FingerprintType, Callable[[bytes], bytes]] = {
    FingerprintType.CRC64_AVRO: crc64_avro,
    FingerprintType.MD5: lambda data: hashlib.md5(data).digest(),
    FingerprintType.SHA256: lambda data: hashlib.sha256(data).digest(),
}


@dataclass(frozen=True)
class PrimitiveLogicalSchema:
    """A logical type that carries no parameters."""

    type: LogicalType

    def __str__(self) -> str:
        return f'"logicalType":"{LogicalType(self.type).value}"'


@dataclass(frozen=True)
class DecimalLogicalSchema:
    """The decimal logical type with its precision and scale."""

    precision: int
    scale: int = 0

    @property
    def type(self) -> LogicalType:
        return LogicalType.DECIMAL

    def __str__(self) -> str:
        scale = f',"scale":{self.scale}' if self.scale > 0 else ""
        return f'"logicalType":"decimal","precision":{self.precision}{scale}'


LogicalSchema = Union[PrimitiveLogicalSchema, DecimalLogicalSchema]


class Schema(ABC):
    """Base of every Avro schema: canonical form, fingerprints and properties."""

    _reserved: frozenset[str] = SCHEMA_RESERVED
    logical: LogicalSchema | None = None

    def __init__(self, props: dict[str, Any] | None = None) -> None:
        self._props = {k: v for k, v in (props or {}).items() if k not in self._reserved}
        self._fingerprints: dict[FingerprintType, bytes] = {}

    @property
    @abstractmethod
    def type(self) -> SchemaType:
        """The type of the schema."""

    @abstractmethod
    def __str__(self) -> str:
        """The canonical form of the schema."""

    @property
    def props(self) -> dict[str, Any]:
        """A copy of the non-reserved properties."""
        return dict(self._props)

    def prop(self, name: str) -> Any:
        """Return a property of the schema, or None."""
        return self._props.get(name)

    def fingerprint(self) -> bytes:
        """Return the SHA-256 fingerprint of the canonical form."""
        return self.fingerprint_using(FingerprintType.SHA256)

    def fingerprint_using(self, typ: FingerprintType | str) -> bytes:
        """Return the fingerprint of the canonical form using the given algorithm."""
        try:
            algorithm = FingerprintType(typ)
        except ValueError:
            raise AvroError(f"avro: unknown fingerprint algorithm {typ}") from None
        cached = self._fingerprints.get(algorithm)
        if cached is None:
            cached = _FINGERPRINTERS[algorithm](str(self).encode("utf-8"))
            self._fingerprints[algorithm] = cached
        return cached

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Schema):
            return NotImplemented
        return type(self) is type(other) and str(self) == str(other) and self._props == other._props

    def __hash__(self) -> int:
        return hash((type(self).__name__, str(self)))

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self})"


class SchemaCache:
    """A cache of schemas keyed by full name."""

    def __init__(self) -> None:
        self._cache: dict[str, Schema] = {}

    def add(self, name: str, schema: Schema) -> None:
        """Store ``schema`` under ``name``."""
        self._cache[name] = schema

    def get(self, name: str) -> Schema | None:
        """Return the schema stored under ``name``, or None."""
        return self._cache.get(name)