"""Unit Tests for primitive coercion of decrypted text

Run: pytest tests/secure/
"""
import math

import pytest

from secure_serialization.secure.classification import ValueKind
from secure_serialization.secure.coercion import ABSENT, coerce_text, to_wire_text
from secure_serialization.secure.errors import CoercionError


@pytest.mark.parametrize("kind, text, expected", [
    (ValueKind.BOOLEAN, "true", True),
    (ValueKind.BOOLEAN, "TRUE", True),
    (ValueKind.BOOLEAN, "false", False),
    (ValueKind.BOOLEAN, "nope", False),
    (ValueKind.BYTE, "-128", -128),
    (ValueKind.SHORT, "+32767", 32767),
    (ValueKind.INT, "42", 42),
    (ValueKind.LONG, "9223372036854775807", 9223372036854775807),
    (ValueKind.FLOAT, "1.5", 1.5),
    (ValueKind.DOUBLE, "-2.5e3", -2500.0),
    (ValueKind.DOUBLE, ".5", 0.5),
    (ValueKind.DOUBLE, "Infinity", math.inf),
    (ValueKind.CHAR, "xyz", "x"),
    (ValueKind.STRING, "", ""),
    (ValueKind.STRING, "anything", "anything"),
])
def test_coerce_text_parses(kind, text, expected):
    assert coerce_text(kind, text) == expected


@pytest.mark.parametrize("kind, text", [
    (ValueKind.BYTE, "128"),
    (ValueKind.SHORT, "-32769"),
    (ValueKind.INT, "2147483648"),
    (ValueKind.LONG, "9223372036854775808"),
    (ValueKind.INT, "4.2"),
    (ValueKind.INT, " 42"),
    (ValueKind.INT, "1_000"),
    (ValueKind.INT, "٤٢"),
    (ValueKind.DOUBLE, "abc"),
    (ValueKind.DOUBLE, "1,5"),
    (ValueKind.DOUBLE, "inf"),
    (ValueKind.CHAR, ""),
    (ValueKind.OTHER, "value"),
])
def test_coerce_text_failures_are_absent(kind, text):
    assert coerce_text(kind, text) is ABSENT


def test_coerce_nan():
    assert math.isnan(coerce_text(ValueKind.DOUBLE, "NaN"))


def test_coerce_none_is_absent():
    assert coerce_text(ValueKind.STRING, None) is ABSENT


def test_strict_booleans():
    assert coerce_text(ValueKind.BOOLEAN, "False", strict_booleans=True) is False
    with pytest.raises(CoercionError):
        coerce_text(ValueKind.BOOLEAN, "1", strict_booleans=True)


def test_to_wire_text():
    assert to_wire_text(ValueKind.BOOLEAN, True) == "true"
    assert to_wire_text(ValueKind.BOOLEAN, False) == "false"
    assert to_wire_text(ValueKind.INT, 30) == "30"
    assert to_wire_text(ValueKind.DOUBLE, 30.0) == "30.0"
    assert to_wire_text(ValueKind.DOUBLE, -math.inf) == "-Infinity"
    assert to_wire_text(ValueKind.STRING, "John") == "John"


@pytest.mark.parametrize("kind, value", [
    (ValueKind.BYTE, 128),
    (ValueKind.SHORT, -32769),
    (ValueKind.INT, 2 ** 31),
    (ValueKind.LONG, 2 ** 63),
])
def test_to_wire_text_rejects_out_of_range_integers(kind, value):
    with pytest.raises(CoercionError):
        to_wire_text(kind, value)


def test_absent_is_falsy_singleton():
    assert not ABSENT
    assert type(ABSENT)() is ABSENT
    assert repr(ABSENT) == "ABSENT"
