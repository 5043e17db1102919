import pytest

from avrokit.base import (
    AvroError,
    DecimalLogicalSchema,
    FingerprintType,
    LogicalType,
    Name,
    PrimitiveLogicalSchema,
    Schema,
    SchemaCache,
    SchemaType,
    crc64_avro,
    validate_name,
)


class _Canonical(Schema):
    def __init__(self, text, typ=SchemaType.STRING, props=None):
        super().__init__(props)
        self._text = text
        self._typ = typ

    @property
    def type(self):
        return self._typ

    def __str__(self):
        return self._text


NULL_SHA256 = bytes(
    [0xF0, 0x72, 0xCB, 0xEC, 0x3B, 0xF8, 0x84, 0x18, 0x71, 0xD4, 0x28, 0x42, 0x30, 0xC5, 0xE9, 0x83,
     0xDC, 0x21, 0x1A, 0x56, 0x83, 0x7A, 0xED, 0x86, 0x24, 0x87, 0x14, 0x8F, 0x94, 0x7D, 0x1A, 0x1F]
)


def test_crc64_null():
    assert crc64_avro(b'"null"') == bytes([0x63, 0xDD, 0x24, 0xE7, 0xCC, 0x25, 0x8F, 0x8A])


def test_crc64_string():
    assert crc64_avro(b'"string"') == bytes([0x8F, 0x01, 0x48, 0x72, 0x63, 0x45, 0x03, 0xC7])


def test_crc64_length():
    assert len(crc64_avro(b"anything at all")) == 8


def test_fingerprint_sha256():
    schema = _Canonical('"null"', SchemaType.NULL)
    assert Schema.fingerprint(schema) == NULL_SHA256


def test_fingerprint_using_md5():
    schema = _Canonical('"null"', SchemaType.NULL)
    assert Schema.fingerprint_using(schema, FingerprintType.MD5) == bytes(
        [0x9B, 0x41, 0xEF, 0x67, 0x65, 0x1C, 0x18, 0x48, 0x8A, 0x8B, 0x08, 0xBB, 0x67, 0xC7, 0x56, 0x99]
    )


def test_fingerprint_using_string_name():
    schema = _Canonical('"int"', SchemaType.INT)
    assert Schema.fingerprint_using(schema, "SHA256") == Schema.fingerprint(schema)
    assert Schema.fingerprint(schema)[:4] == bytes([0x3F, 0x2B, 0x87, 0xA9])


def test_fingerprint_using_unknown():
    schema = _Canonical('"string"')
    with pytest.raises(AvroError):
        Schema.fingerprint_using(schema, "test")


def test_props_filter_reserved():
    schema = _Canonical('"string"', props={"foo": "bar", "doc": "x", "type": "string"})
    assert Schema.prop(schema, "foo") == "bar"
    assert Schema.prop(schema, "doc") is None
    assert schema.props == {"foo": "bar"}


def test_schema_equality():
    assert Schema.__eq__(_Canonical('"string"'), _Canonical('"string"')) is True
    assert Schema.__eq__(_Canonical('"string"'), _Canonical('"bytes"')) is False


@pytest.mark.parametrize("name", ["test", "_x", "A1_b"])
def test_validate_name_ok(name):
    assert validate_name(name) is None


@pytest.mark.parametrize("name", ["", "0test", "test+", "a.b"])
def test_validate_name_invalid(name):
    with pytest.raises(AvroError):
        validate_name(name)


def test_name_with_namespace():
    n = Name("test", "org.hamba.avro", ["alias"])
    assert n.name == "test"
    assert n.namespace == "org.hamba.avro"
    assert n.full_name == "org.hamba.avro.test"
    assert n.aliases == ("org.hamba.avro.alias",)


def test_name_dotted_overrides_namespace():
    n = Name("a.b.c", "ignored", ["d.e", "f"])
    assert n.namespace == "a.b"
    assert n.name == "c"
    assert n.full_name == "a.b.c"
    assert n.aliases == ("d.e", "a.b.f")


def test_name_without_namespace():
    n = Name("test", "", ["other"])
    assert n.full_name == "test"
    assert n.aliases == ("other",)


@pytest.mark.parametrize(
    "args",
    [("0test", "org"), ("test+", "org"), ("test", "org.hamba.avro+"), ("", "")],
)
def test_name_invalid(args):
    with pytest.raises(AvroError):
        Name(*args, [])


def test_name_invalid_alias():
    with pytest.raises(AvroError):
        Name("test", "org", ["test+"])


def test_primitive_logical_schema_str():
    ls = PrimitiveLogicalSchema(LogicalType.DATE)
    assert ls.type is LogicalType.DATE
    assert str(ls) == '"logicalType":"date"'


def test_decimal_logical_schema_str():
    dec = DecimalLogicalSchema(4, 2)
    assert dec.type is LogicalType.DECIMAL
    assert (dec.precision, dec.scale) == (4, 2)
    assert str(dec) == '"logicalType":"decimal","precision":4,"scale":2'


def test_decimal_logical_schema_no_scale():
    assert str(DecimalLogicalSchema(4, 0)) == '"logicalType":"decimal","precision":4'


def test_schema_cache():
    cache = SchemaCache()
    schema = _Canonical('"string"')
    cache.add("org.test", schema)
    assert cache.get("org.test") is schema
    assert cache.get("missing") is None


def test_enum_values():
    assert SchemaType("<ref>") is SchemaType.REF
    assert FingerprintType("CRC64-AVRO") is FingerprintType.CRC64_AVRO
    assert str(LogicalType.TIMESTAMP_MICROS) == "timestamp-micros"