import json

import pytest

from avrokit.base import (
    AvroError,
    DecimalLogicalSchema,
    FingerprintType,
    LogicalType,
    PrimitiveLogicalSchema,
    SchemaType,
)
from avrokit.schema import (
    ArraySchema,
    EnumSchema,
    FixedSchema,
    MapSchema,
    NullSchema,
    PrimitiveSchema,
    RefSchema,
    UnionSchema,
    schema_type_name,
)

NULL_SHA = bytes.fromhex("f072cbec3bf8841871d4284230c5e983dc211a56837aed862487148f947d1a1f")
STRING_SHA = bytes.fromhex("e9e5c1c9e4f6277339d1bcde0733a59bd42f8731f449da6dc13010a916930d48")
INT_SHA = bytes.fromhex("3f2b87a9fe7cc9b13835598c3981cd45e3e355309e5090aa0933d7becb6fba45")
FIXED_SHA = bytes(
    [0x8C, 0x9E, 0xCB, 0x4, 0x83, 0x2F, 0x3B, 0xA7, 0x58, 0x85, 0x9, 0x99, 0x41, 0xE, 0xBF, 0xD4,
     0x7, 0xC7, 0x87, 0x4F, 0x8A, 0x12, 0xF4, 0xD0, 0x7F, 0x45, 0xDD, 0xAA, 0x10, 0x6B, 0x2F, 0xB3]
)
UNION_SHA = bytes(
    [0xB4, 0x94, 0x95, 0xC5, 0xB1, 0xC2, 0x6F, 0x4, 0x89, 0x6A, 0x5F, 0x68, 0x65, 0xF, 0xE2, 0xB7,
     0x64, 0x23, 0x62, 0xC3, 0x41, 0x98, 0xD6, 0xBC, 0x74, 0x65, 0xA1, 0xD9, 0xF7, 0xE1, 0xAF, 0xCE]
)


def _fixed():
    return FixedSchema("test", "org.hamba.avro", 12)


def _enum():
    return EnumSchema("test", "org.hamba.avro", ["TEST"])


def _null_int():
    return UnionSchema([NullSchema(), PrimitiveSchema(SchemaType.INT)])


def test_null_schema_fingerprints():
    schema = NullSchema()
    assert schema.type == SchemaType.NULL
    assert schema.fingerprint() == NULL_SHA
    assert schema.fingerprint_using(FingerprintType.CRC64_AVRO) == bytes.fromhex("63dd24e7cc258f8a")
    assert schema.fingerprint_using(FingerprintType.MD5) == bytes.fromhex(
        "9b41ef67651c18488a8b08bb67c75699"
    )
    assert schema.fingerprint_using(FingerprintType.SHA256) == NULL_SHA


@pytest.mark.parametrize(
    "typ, want",
    [(SchemaType.STRING, STRING_SHA), (SchemaType.INT, INT_SHA)],
)
def test_primitive_fingerprint(typ, want):
    schema = PrimitiveSchema(typ)
    assert schema.type == typ
    assert schema.fingerprint() == want


@pytest.mark.parametrize(
    "factory, want",
    [
        (lambda: PrimitiveSchema(SchemaType.STRING), "8f014872634503c7"),
        (lambda: _enum(), "0cb0a2a65f9608d1"),
        (lambda: ArraySchema(PrimitiveSchema(SchemaType.INT)), "522b814fc963b4be"),
        (lambda: MapSchema(PrimitiveSchema(SchemaType.INT)), "db39e2c2534c8973"),
        (lambda: _null_int(), "d51cc0922b46b1d7"),
        (lambda: _fixed(), "017c1f7fa76da0a1"),
    ],
)
def test_crc64_fingerprints(factory, want):
    assert factory().fingerprint_using(FingerprintType.CRC64_AVRO) == bytes.fromhex(want)


def test_fingerprint_unknown_algorithm():
    with pytest.raises(AvroError):
        PrimitiveSchema(SchemaType.STRING).fingerprint_using("test")


def test_primitive_props_drop_reserved():
    schema = PrimitiveSchema(SchemaType.STRING, None, {"foo": "bar", "baz": 1, "type": "x"})
    assert schema.prop("foo") == "bar"
    assert schema.prop("baz") == 1
    assert schema.prop("type") is None


def test_primitive_logical_canonical_form():
    schema = PrimitiveSchema(SchemaType.INT, PrimitiveLogicalSchema(LogicalType.DATE))
    assert str(schema) == '{"type":"int","logicalType":"date"}'
    assert json.loads(schema.to_json()) == {"type": "int", "logicalType": "date"}


def test_primitive_decimal_round_trips_as_json():
    schema = PrimitiveSchema(SchemaType.BYTES, DecimalLogicalSchema(4, 2))
    assert json.loads(schema.to_json()) == {
        "type": "bytes", "logicalType": "decimal", "precision": 4, "scale": 2,
    }


def test_primitive_unknown_type_kept():
    schema = PrimitiveSchema("test")
    assert schema.type == "test"
    assert str(schema) == '"test"'


def test_array_and_map_equal_when_built_alike():
    assert ArraySchema(PrimitiveSchema(SchemaType.INT)) == ArraySchema(PrimitiveSchema(SchemaType.INT))
    assert MapSchema(PrimitiveSchema(SchemaType.INT)) == MapSchema(PrimitiveSchema(SchemaType.INT))
    assert ArraySchema(PrimitiveSchema(SchemaType.INT)) != ArraySchema(PrimitiveSchema(SchemaType.LONG))


def test_array_map_props_and_json():
    arr = ArraySchema(PrimitiveSchema(SchemaType.INT), {"foo": "bar", "items": "x"})
    mp = MapSchema(PrimitiveSchema(SchemaType.INT), {"foo": "bar"})
    assert arr.prop("foo") == "bar"
    assert arr.prop("items") is None
    assert mp.prop("foo") == "bar"
    assert json.loads(arr.to_json()) == {"type": "array", "items": "int"}
    assert json.loads(mp.to_json()) == {"type": "map", "values": "int"}


def test_union_fingerprint_and_string():
    schema = _null_int()
    assert schema.type == SchemaType.UNION
    assert schema.fingerprint() == UNION_SHA
    assert json.loads(schema.to_json()) == ["null", "int"]


def test_union_rejects_nested_union():
    inner = UnionSchema([PrimitiveSchema(SchemaType.STRING)])
    with pytest.raises(AvroError):
        UnionSchema([NullSchema(), inner])


def test_union_rejects_duplicate_types():
    with pytest.raises(AvroError):
        UnionSchema([PrimitiveSchema(SchemaType.STRING), PrimitiveSchema(SchemaType.STRING)])


def test_union_rejects_duplicate_names():
    with pytest.raises(AvroError):
        UnionSchema([EnumSchema("test", "", ["TEST"]), EnumSchema("test", "", ["TEST"])])


def test_union_allows_same_type_with_logical():
    schema = UnionSchema(
        [PrimitiveSchema(SchemaType.INT), PrimitiveSchema(SchemaType.INT, PrimitiveLogicalSchema(LogicalType.DATE))]
    )
    found, index = schema.get("int.date")
    assert index == 1
    assert found is schema.types[1]


def test_union_get_missing():
    assert _null_int().get("string") == (None, -1)


@pytest.mark.parametrize(
    "types, want",
    [
        ([NullSchema(), PrimitiveSchema(SchemaType.STRING)], (0, 1)),
        ([PrimitiveSchema(SchemaType.STRING), NullSchema()], (1, 0)),
        ([NullSchema(), PrimitiveSchema(SchemaType.STRING), PrimitiveSchema(SchemaType.INT)], (0, 0)),
    ],
)
def test_union_indices(types, want):
    assert UnionSchema(types).indices() == want


def test_union_nullable():
    assert _null_int().nullable() is True
    assert UnionSchema([PrimitiveSchema(SchemaType.INT), PrimitiveSchema(SchemaType.LONG)]).nullable() is False


def test_fixed_schema():
    schema = _fixed()
    assert schema.type == SchemaType.FIXED
    assert schema.full_name == "org.hamba.avro.test"
    assert schema.name == "test"
    assert schema.namespace == "org.hamba.avro"
    assert schema.size == 12
    assert schema.fingerprint() == FIXED_SHA


def test_fixed_json_includes_aliases_and_logical():
    schema = FixedSchema("test", "org.hamba.avro", 12, DecimalLogicalSchema(4, 2), ["other"], {"foo": "bar"})
    assert schema.aliases == ("org.hamba.avro.other",)
    assert schema.prop("foo") == "bar"
    assert json.loads(schema.to_json()) == {
        "name": "org.hamba.avro.test",
        "aliases": ["org.hamba.avro.other"],
        "type": "fixed",
        "size": 12,
        "logicalType": "decimal",
        "precision": 4,
        "scale": 2,
    }


@pytest.mark.parametrize(
    "name, namespace",
    [("test+", "org.hamba.avro"), ("", "org.hamba.avro"), ("test", "org.hamba.avro+"), ("0test", "")],
)
def test_named_schema_rejects_invalid_names(name, namespace):
    with pytest.raises(AvroError):
        FixedSchema(name, namespace, 12)


def test_enum_schema():
    schema = EnumSchema("test", "org.hamba.avro", ["TEST"], default="TEST", doc="hello", props={"foo": "bar"})
    assert schema.type == SchemaType.ENUM
    assert schema.full_name == "org.hamba.avro.test"
    assert schema.default == "TEST"
    assert schema.doc == "hello"
    assert schema.prop("foo") == "bar"
    assert json.loads(schema.to_json()) == {
        "name": "org.hamba.avro.test",
        "doc": "hello",
        "type": "enum",
        "symbols": ["TEST"],
        "default": "TEST",
    }


def test_enum_without_default():
    assert _enum().default == ""


@pytest.mark.parametrize(
    "symbols, default",
    [([], ""), (["TEST+"], ""), ([1], ""), (["TEST"], "foo")],
)
def test_enum_rejects_invalid(symbols, default):
    with pytest.raises(AvroError):
        EnumSchema("test", "org.hamba.avro", symbols, default=default)


def test_ref_schema_delegates():
    fixed = _fixed()
    ref = RefSchema(fixed)
    assert ref.type == SchemaType.REF
    assert ref.schema is fixed
    assert str(ref) == '"org.hamba.avro.test"'
    assert ref.to_json() == '"org.hamba.avro.test"'
    assert ref.fingerprint() == fixed.fingerprint()
    assert ref.fingerprint_using(FingerprintType.CRC64_AVRO) == fixed.fingerprint_using(
        FingerprintType.CRC64_AVRO
    )


def test_schema_type_name():
    fixed = _fixed()
    assert schema_type_name(PrimitiveSchema(SchemaType.INT)) == "int"
    assert schema_type_name(NullSchema()) == "null"
    assert schema_type_name(PrimitiveSchema(SchemaType.LONG, PrimitiveLogicalSchema(LogicalType.TIME_MICROS))) == (
        "long.time-micros"
    )
    assert schema_type_name(fixed) == "org.hamba.avro.test"
    assert schema_type_name(RefSchema(fixed)) == "org.hamba.avro.test"