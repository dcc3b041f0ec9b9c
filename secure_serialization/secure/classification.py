"""Field Classification - Declarative per-record-type field metadata

Self-Explanatory: Which fields exist, which are sensitive, which one carries
the IV, and whether the record type is decrypt-only.
Why: The codec must not inspect record types at runtime; every record type
registers its fields explicitly, once.
How: classify(User).field(...).sensitive(...).iv(...).build() produces a
frozen FieldClassification that serializers turn into a RecordShape.

Usage:
    USER_FIELDS = (
        classify(User)
        .field("id", int)
        .sensitive("first_name", str, wire_name="firstname", nullable=True)
        .iv("e2e_iv")
        .build()
    )
"""
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional, Tuple, Union

import structlog

from secure_serialization.secure.errors import ShapeError

logger = structlog.get_logger()


class ValueKind(str, Enum):
    BOOLEAN = "boolean"
    BYTE = "byte"
    SHORT = "short"
    INT = "int"
    LONG = "long"
    FLOAT = "float"
    DOUBLE = "double"
    CHAR = "char"
    STRING = "string"
    OTHER = "other"


INTEGER_KINDS = (ValueKind.BYTE, ValueKind.SHORT, ValueKind.INT, ValueKind.LONG)
FLOATING_KINDS = (ValueKind.FLOAT, ValueKind.DOUBLE)

# Static lookup, not introspection: only these Python types have an implied kind.
# Python ints default to the widest integer kind; narrower ones must be explicit.
PYTHON_KINDS: Dict[type, ValueKind] = {
    bool: ValueKind.BOOLEAN,
    int: ValueKind.LONG,
    float: ValueKind.DOUBLE,
    str: ValueKind.STRING,
}

KindLike = Union[ValueKind, type, str]


def to_kind(kind: KindLike) -> ValueKind:
    if isinstance(kind, ValueKind):
        return kind
    if isinstance(kind, str):
        return ValueKind(kind)
    return PYTHON_KINDS.get(kind, ValueKind.OTHER)


@dataclass(frozen=True)
class FieldSpec:
    """One declared field of a record type"""
    name: str
    kind: ValueKind
    wire_name: Optional[str] = None
    sensitive: bool = False
    nullable: bool = False
    has_default: bool = False
    transient: bool = False
    is_iv: bool = False

    @property
    def resolved_wire_name(self) -> str:
        return self.wire_name or self.name


@dataclass(frozen=True)
class FieldClassification:
    record_type: type
    fields: Tuple[FieldSpec, ...]
    decrypt_only: bool = False

    @property
    def record_name(self) -> str:
        return self.record_type.__name__

    @property
    def has_sensitive_fields(self) -> bool:
        return any(f.sensitive and not f.transient for f in self.fields)


class ClassificationBuilder:
    """Chained builder for FieldClassification"""

    def __init__(self, record_type: type, decrypt_only: bool = False):
        self.record_type = record_type
        self.decrypt_only = decrypt_only
        self._fields: list = []

    def field(
        self,
        name: str,
        kind: KindLike = ValueKind.OTHER,
        wire_name: Optional[str] = None,
        nullable: bool = False,
        has_default: bool = False,
    ) -> "ClassificationBuilder":
        self._fields.append(FieldSpec(
            name=name,
            kind=to_kind(kind),
            wire_name=wire_name,
            nullable=nullable,
            has_default=has_default,
        ))
        return self

    def sensitive(
        self,
        name: str,
        kind: KindLike = ValueKind.STRING,
        wire_name: Optional[str] = None,
        nullable: bool = False,
        has_default: bool = False,
    ) -> "ClassificationBuilder":
        """Declare a field that is encrypted on output and decrypted on input"""
        self._fields.append(FieldSpec(
            name=name,
            kind=to_kind(kind),
            wire_name=wire_name,
            sensitive=True,
            nullable=nullable,
            has_default=has_default,
        ))
        return self

    def iv(self, name: str, wire_name: Optional[str] = None) -> "ClassificationBuilder":
        """Declare the IV-carrying field (always a nullable string with a default)

        Without a wire_name it is written under the serializer's configured
        IV attribute name.
        """
        self._fields.append(FieldSpec(
            name=name,
            kind=ValueKind.STRING,
            wire_name=wire_name,
            nullable=True,
            has_default=True,
            is_iv=True,
        ))
        return self

    def transient(self, name: str) -> "ClassificationBuilder":
        """Declare a field that never goes over the wire (record must default it)"""
        self._fields.append(FieldSpec(name=name, kind=ValueKind.OTHER, transient=True, has_default=True))
        return self

    def build(self) -> FieldClassification:
        record = self.record_type.__name__
        names = [f.name for f in self._fields]
        duplicates = {n for n in names if names.count(n) > 1}
        if duplicates:
            raise ShapeError(f"{record}: fields declared more than once: {sorted(duplicates)}")

        iv_fields = [f.name for f in self._fields if f.is_iv]
        if len(iv_fields) > 1:
            raise ShapeError(f"{record}: more than one IV field declared: {iv_fields}")

        # Unflagged IV slots are matched by wire name in derive_shape; they must be plain strings
        has_sensitive = any(f.sensitive and not f.transient for f in self._fields)
        iv_candidates = [
            f for f in self._fields
            if f.is_iv or (f.kind == ValueKind.STRING and not f.sensitive and not f.transient)
        ]
        if has_sensitive and not iv_candidates:
            raise ShapeError(f"{record}: declares sensitive fields but no IV field")

        # IV wire names may still depend on serializer config; checked in derive_shape
        wire_names = [
            f.resolved_wire_name for f in self._fields
            if not f.transient and not (f.is_iv and f.wire_name is None)
        ]
        clashes = {w for w in wire_names if wire_names.count(w) > 1}
        if clashes:
            raise ShapeError(f"{record}: wire names used by more than one field: {sorted(clashes)}")

        classification = FieldClassification(
            record_type=self.record_type,
            fields=tuple(self._fields),
            decrypt_only=self.decrypt_only,
        )
        logger.debug(
            "Field classification built",
            record=record,
            fields=len(self._fields),
            sensitive=sum(1 for f in self._fields if f.sensitive),
            decrypt_only=self.decrypt_only,
        )
        return classification


def classify(record_type: type, decrypt_only: bool = False) -> ClassificationBuilder:
    """Start a classification for record_type"""
    return ClassificationBuilder(record_type, decrypt_only=decrypt_only)
