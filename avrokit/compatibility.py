"""Checking whether data written with one schema can be read with another."""

from __future__ import annotations

from avrokit.base import AvroError, Schema, SchemaType
from avrokit.record import RecordSchema
from avrokit.schema import ArraySchema, EnumSchema, FixedSchema, MapSchema, RefSchema, UnionSchema

_IN_PROGRESS = object()

_PROMOTIONS = {
    SchemaType.INT: (SchemaType.LONG, SchemaType.FLOAT, SchemaType.DOUBLE),
    SchemaType.LONG: (SchemaType.FLOAT, SchemaType.DOUBLE),
    SchemaType.FLOAT: (SchemaType.DOUBLE,),
    SchemaType.STRING: (SchemaType.BYTES,),
    SchemaType.BYTES: (SchemaType.STRING,),
}


class SchemaCompatibility:
    """Determines the compatibility of reader and writer schemas, caching the results."""

    def __init__(self) -> None:
        self._cache: dict[tuple[bytes, bytes], object] = {}

    def compatible(self, reader: Schema, writer: Schema) -> None:
        """Raise AvroError unless data written with ``writer`` can be read with ``reader``."""
        key = (reader.fingerprint(), writer.fingerprint())
        if key in self._cache:
            result = self._cache[key]
            if result is _IN_PROGRESS or result is None:
                # A pending entry means the schemas are recursive; stop here.
                return
            raise AvroError(str(result))

        self._cache[key] = _IN_PROGRESS
        try:
            self._match(reader, writer)
        except AvroError as exc:
            self._cache[key] = str(exc)
            raise AvroError(str(exc)) from None
        self._cache[key] = None

    def _match(self, reader: Schema, writer: Schema) -> None:
        if isinstance(reader, RefSchema):
            reader = reader.schema
        if isinstance(writer, RefSchema):
            writer = writer.schema

        if reader.type != writer.type:
            if isinstance(writer, UnionSchema):
                for schema in writer.types:
                    self.compatible(reader, schema)
                return

            if isinstance(reader, UnionSchema):
                for schema in reader.types:
                    try:
                        self.compatible(schema, writer)
                    except AvroError:
                        continue
                    return
                raise AvroError(f"reader union lacking writer schema {writer.type}")

            if reader.type in _PROMOTIONS.get(writer.type, ()):
                return

            raise AvroError(
                f"reader schema {reader.type} not compatible with writer schema {writer.type}"
            )

        if isinstance(reader, ArraySchema) and isinstance(writer, ArraySchema):
            self.compatible(reader.items, writer.items)
        elif isinstance(reader, MapSchema) and isinstance(writer, MapSchema):
            self.compatible(reader.values, writer.values)
        elif isinstance(reader, FixedSchema) and isinstance(writer, FixedSchema):
            self._check_names(reader, writer)
            if reader.size != writer.size:
                raise AvroError(f"{reader.full_name} reader and writer fixed sizes do not match")
        elif isinstance(reader, EnumSchema) and isinstance(writer, EnumSchema):
            self._check_names(reader, writer)
            for symbol in writer.symbols:
                if symbol not in reader.symbols:
                    raise AvroError(f"reader {reader.full_name} is missing symbol {symbol}")
        elif isinstance(reader, RecordSchema) and isinstance(writer, RecordSchema):
            self._check_names(reader, writer)
            self._check_record_fields(reader, writer)
        elif isinstance(writer, UnionSchema):
            for schema in writer.types:
                self.compatible(reader, schema)

    @staticmethod
    def _check_names(reader: Schema, writer: Schema) -> None:
        reader_name = getattr(reader, "full_name", "")
        writer_name = getattr(writer, "full_name", "")
        if reader_name != writer_name:
            raise AvroError(
                f"reader schema {reader_name} and writer schema {writer_name} names do not match"
            )

    def _check_record_fields(self, reader: RecordSchema, writer: RecordSchema) -> None:
        writer_fields = {field.name: field for field in writer.fields}
        for field in reader.fields:
            match = writer_fields.get(field.name)
            if match is None:
                if field.has_default:
                    continue
                raise AvroError(
                    f"reader field {field.name} is missing in writer schema and has no default"
                )
            self.compatible(field.type, match.type)