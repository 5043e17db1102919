import datetime
from fractions import Fraction

import pytest

from avrokit.base import AvroError
from avrokit.resolver import TypeResolver


@pytest.mark.parametrize(
    "name, want",
    [
        ("null", type(None)),
        ("int", int),
        ("long", int),
        ("float", float),
        ("double", float),
        ("string", str),
        ("bytes", bytes),
        ("boolean", bool),
        ("int.date", datetime.datetime),
        ("int.time-millis", datetime.timedelta),
        ("long.timestamp-millis", datetime.datetime),
        ("long.timestamp-micros", datetime.datetime),
        ("long.time-micros", datetime.timedelta),
        ("bytes.decimal", Fraction),
    ],
)
def test_builtin_types(name, want):
    assert TypeResolver().type(name) is want


def test_name_lists_every_registration_in_order():
    resolver = TypeResolver()
    assert resolver.name(int) == ["int", "long"]
    assert resolver.name(float) == ["float", "double"]


def test_name_accepts_instances():
    assert TypeResolver().name("some text") == ["string"]


def test_unknown_name_raises():
    with pytest.raises(AvroError):
        TypeResolver().type("org.example.Missing")


def test_unknown_type_raises():
    class Unregistered:
        pass

    with pytest.raises(AvroError):
        TypeResolver().name(Unregistered)


def test_register_custom_type_round_trip():
    class Point:
        pass

    resolver = TypeResolver()
    resolver.register("org.example.Point", Point)
    assert resolver.type("org.example.Point") is Point
    assert resolver.name(Point()) == ["org.example.Point"]


def test_resolvers_are_independent():
    class Thing:
        pass

    first = TypeResolver()
    first.register("thing", Thing)
    with pytest.raises(AvroError):
        TypeResolver().type("thing")


def test_name_returns_copy():
    resolver = TypeResolver()
    resolver.name(int).append("mutated")
    assert resolver.name(int) == ["int", "long"]