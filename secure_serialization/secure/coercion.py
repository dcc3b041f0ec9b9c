"""Primitive Coercion - Decrypted text back to a field's value kind

Self-Explanatory: to_wire_text() before encrypt, coerce_text() after decrypt.
Why: Ciphertext is always a string; the record needs its native types back.
How: Deterministic, locale-free parsing. Parse failures return ABSENT so the
serializer's nullability/default check decides whether that is an error.

Note: booleans are lenient by default (anything but "true" is False), which
matches older payloads but hides garbage. Pass strict_booleans=True to get a
CoercionError instead.
"""
import math
import re
from typing import Any

from secure_serialization.secure.classification import FLOATING_KINDS, INTEGER_KINDS, ValueKind
from secure_serialization.secure.errors import CoercionError


class _Absent:
    """Marks "no value" as distinct from an explicit None"""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "ABSENT"

    def __bool__(self) -> bool:
        return False


ABSENT = _Absent()

INTEGER_BITS = {
    ValueKind.BYTE: 8,
    ValueKind.SHORT: 16,
    ValueKind.INT: 32,
    ValueKind.LONG: 64,
}

_INTEGER_RE = re.compile(r"[+-]?[0-9]+")
_DECIMAL_RE = re.compile(r"[+-]?([0-9]+\.?[0-9]*|\.[0-9]+)([eE][+-]?[0-9]+)?")
_SPECIAL_FLOATS = {"NaN": math.nan, "Infinity": math.inf, "+Infinity": math.inf, "-Infinity": -math.inf}


def fits_integer(kind: ValueKind, value: int) -> bool:
    bits = INTEGER_BITS[kind]
    return -(1 << (bits - 1)) <= value < (1 << (bits - 1))


def to_wire_text(kind: ValueKind, value: Any) -> str:
    """Natural string form of a primitive value

    Raises:
        CoercionError: an integer outside its kind's width, which could
            never be read back
    """
    if isinstance(value, bool):
        return "true" if value else "false"
    if kind in INTEGER_KINDS and isinstance(value, int) and not fits_integer(kind, value):
        raise CoercionError(f"{value} does not fit in a {kind.value}")
    if kind in FLOATING_KINDS and isinstance(value, float):
        if math.isnan(value):
            return "NaN"
        if math.isinf(value):
            return "Infinity" if value > 0 else "-Infinity"
    return str(value)


def parse_integer(kind: ValueKind, text: str) -> Any:
    if not _INTEGER_RE.fullmatch(text):
        return ABSENT
    value = int(text)
    return value if fits_integer(kind, value) else ABSENT


def parse_decimal(text: str) -> Any:
    if text in _SPECIAL_FLOATS:
        return _SPECIAL_FLOATS[text]
    if not _DECIMAL_RE.fullmatch(text):
        return ABSENT
    return float(text)


def parse_boolean(text: str, strict: bool = False) -> bool:
    lowered = text.lower()
    if lowered == "true":
        return True
    if strict and lowered != "false":
        raise CoercionError(f"Not a boolean literal: {text!r}")
    return False


def coerce_text(kind: ValueKind, text: Any, strict_booleans: bool = False) -> Any:
    """Convert decrypted text to kind; ABSENT when it does not parse

    OTHER is not handled here and always yields ABSENT.
    """
    if text is None or text is ABSENT:
        return ABSENT
    if kind == ValueKind.STRING:
        return text
    if kind == ValueKind.BOOLEAN:
        return parse_boolean(text, strict=strict_booleans)
    if kind in INTEGER_KINDS:
        return parse_integer(kind, text)
    if kind in FLOATING_KINDS:
        return parse_decimal(text)
    if kind == ValueKind.CHAR:
        return text[0] if text else ABSENT
    return ABSENT
