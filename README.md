# avrokit

A pure Python toolkit for Apache Avro. It can:

- parse Avro schemas from JSON text or from files, and report errors clearly
- produce canonical schema text and fingerprints (SHA256, MD5, CRC64-AVRO)
- check whether a reader schema can read data written with a writer schema
- decode Avro binary data, either value by value or as whole generic values
- talk to a Confluent-compatible schema registry over HTTP

## Installation

```
pip install avrokit
```

To run the tests as well:

```
pip install "avrokit[test]"
pytest
```

## Parsing schemas

```python
from avrokit.parse import parse, parse_files

schema = parse('{"type": "record", "name": "test", "fields": ['
               '{"name": "a", "type": "long"}, {"name": "b", "type": "string"}]}')

print(schema)                      # canonical form
print(schema.to_json())            # JSON form, with aliases, docs and defaults
print(schema.fingerprint().hex())  # SHA256 of the canonical form

from avrokit.base import FingerprintType
print(schema.fingerprint_using(FingerprintType.CRC64_AVRO).hex())

# Several files where later schemas refer to earlier ones; the last is returned.
last = parse_files("common.avsc", "event.avsc")
```

If a schema is invalid, `parse` raises `avrokit.base.AvroError`. An unknown
fingerprint algorithm raises `AvroError` too.

Named types (records, enums, fixed) are remembered in a `SchemaCache`, so other
schemas can refer to them by name. `parse` uses the shared
`avrokit.parse.DEFAULT_SCHEMA_CACHE`; to keep a separate set of names, pass your
own cache:

```python
from avrokit.base import SchemaCache
from avrokit.parse import parse_with_cache

cache = SchemaCache()
schema = parse_with_cache('"int"', "", cache)
```

Schemas can also be built directly from the classes in `avrokit.schema`
(`PrimitiveSchema`, `NullSchema`, `ArraySchema`, `MapSchema`, `UnionSchema`,
`FixedSchema`, `EnumSchema`, `RefSchema`) and `avrokit.record` (`RecordSchema`,
`Field`). A field's default is checked against its type when the field is
created.

## Reading binary data

```python
import io
from avrokit.reader import Reader
from avrokit.generic import read_next

reader = Reader(io.BytesIO(b"\x36\x06foo"), 10)
value = read_next(reader, schema)   # {"a": 27, "b": "foo"}
```

`Reader` also reads single values (`read_int`, `read_long`, `read_string`,
`read_bytes`, `read_float`, `read_double`, `read_bool`, `read_block_header`,
`read`) and skips them (`skip_int`, `skip_long`, `skip_string`, `skip_bytes`,
`skip_float`, `skip_double`, `skip_bool`, `skip_n_bytes`). To read from a bytes
object that is already in memory, use `Reader.from_bytes(data)`.

Running out of data raises `EOFError`; malformed data (an invalid boolean, an
overlong varint, a negative length, an unknown enum symbol or union branch)
raises `AvroError`.

Logical types come back as Python values: `date` and `timestamp-*` become UTC
`datetime` objects, `time-*` become `timedelta`, and `decimal` becomes a
`fractions.Fraction`. A value from a union that is not null comes back as a
one-entry dict keyed by the name of the branch type, for example
`{"string": "foo"}`.

`avrokit.generic.iter_array` and `iter_map` walk the blocks of an array or a
map, yielding each index or key so the caller can read the item.

## Schema compatibility

```python
from avrokit.compatibility import SchemaCompatibility
from avrokit.parse import parse

checker = SchemaCompatibility()
checker.compatible(parse('"long"'), parse('"int"'))    # int widens to long: no error
checker.compatible(parse('"int"'), parse('"string"'))  # raises AvroError
```

Results are cached per pair of schema fingerprints, and recursive schemas are
handled.

## Type names

`avrokit.resolver.TypeResolver` maps Avro type names such as `"int"` or
`"long.timestamp-millis"` to Python types and back; the primitive and logical
types are registered up front and more can be added with `register`.

## Schema registry client

```python
from avrokit.registry import Client, CompatibilityLevel, SchemaReference

client = Client("http://localhost:8081")
schema = client.get_schema(5)          # cached after the first fetch
subjects = client.get_subjects()
versions = client.get_versions("foobar")
info = client.get_latest_schema_info("foobar")   # SchemaInfo(schema, id, version)

schema_id, schema = client.create_schema("foobar", '["null","string","int"]')
schema_id, schema = client.is_registered("foobar", '["null","string","int"]')
schema_id, schema = client.is_registered_with_refs(
    "foobar", '["null","string","int"]', SchemaReference("other", "other-subject", 1)
)

client.set_compatibility_level("foobar", CompatibilityLevel.BACKWARD)
level = client.get_global_compatibility_level()
```

Basic authentication is supported, and a `requests.Session` of your own can be
passed as `session`:

```python
username = "user"
password = "password"
client = Client("http://localhost:8081", username=username, password=password)
```

When the registry returns an error status, the client raises
`avrokit.registry.RegistryError`, which carries the HTTP status code and the
registry's own error code and message. A failed connection raises
`ConnectionError`, and an unknown compatibility level raises `ValueError`
before any request is sent.

## What avrokit does not do

avrokit only decodes Avro data. It has no encoder for writing Avro binary, no
support for Avro object container files, and no mapping of data onto your own
classes: `read_next` returns plain dicts, lists and scalars.