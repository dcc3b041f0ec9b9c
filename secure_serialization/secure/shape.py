"""Record Shape - Immutable wire layout derived from a field classification

Self-Explanatory: Resolved wire names, companion slots and the IV slot.
Why: Encode/decode consult a precomputed table instead of re-deriving names.
How: derive_shape() runs once per serializer with its IV attribute and
prefix; the result also describes the wire schema to outside tools.

Wire layout for a record with a sensitive "email" field:
    {"id": 1, "e2e_email": "<ciphertext>", "e2e_iv": "<iv>"}
or, without a key:
    {"id": 1, "email": "john@test.com", "e2e_iv": null}
"""
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

from secure_serialization.secure.classification import (
    FLOATING_KINDS,
    INTEGER_KINDS,
    FieldClassification,
    FieldSpec,
    ValueKind,
)
from secure_serialization.secure.errors import ShapeError

JSON_TYPES = {
    ValueKind.BOOLEAN: "boolean",
    ValueKind.CHAR: "string",
    ValueKind.STRING: "string",
}


@dataclass(frozen=True)
class ShapeField:
    spec: FieldSpec
    wire_name: str
    companion_name: Optional[str] = None
    is_iv: bool = False

    @property
    def name(self) -> str:
        return self.spec.name

    @property
    def kind(self) -> ValueKind:
        return self.spec.kind

    @property
    def sensitive(self) -> bool:
        return self.spec.sensitive

    @property
    def nullable(self) -> bool:
        return self.spec.nullable

    @property
    def has_default(self) -> bool:
        return self.spec.has_default

    @property
    def optional(self) -> bool:
        return self.spec.nullable or self.spec.has_default


@dataclass(frozen=True)
class WireSlot:
    """One key of the wire map"""
    name: str
    kind: ValueKind
    optional: bool
    field: str
    encrypted: bool = False


@dataclass(frozen=True)
class RecordShape:
    record_name: str
    fields: Tuple[ShapeField, ...]
    iv_field: Optional[ShapeField]
    decrypt_only: bool
    iv_attr: str
    prefix: str

    def wire_slots(self) -> List[WireSlot]:
        """Every slot a wire map of this record may carry, in field order"""
        slots = []
        for f in self.fields:
            slots.append(WireSlot(
                name=f.wire_name,
                kind=f.kind,
                optional=f.optional or f.sensitive,
                field=f.name,
            ))
            if f.companion_name:
                slots.append(WireSlot(
                    name=f.companion_name,
                    kind=ValueKind.STRING,
                    optional=f.optional,
                    field=f.name,
                    encrypted=True,
                ))
        return slots

    def json_schema(self) -> Dict[str, Any]:
        """JSON Schema of the wire object; unknown slots stay allowed"""
        properties: Dict[str, Any] = {}
        for slot in self.wire_slots():
            properties[slot.name] = _slot_schema(slot)
        # A sensitive field is satisfied by either its plain or its companion slot
        required = [
            slot.name for slot in self.wire_slots()
            if not slot.optional and not slot.encrypted
        ]
        return {
            "title": self.record_name,
            "type": "object",
            "properties": properties,
            "required": required,
            "additionalProperties": True,
        }


def _slot_schema(slot: WireSlot) -> Dict[str, Any]:
    if slot.kind in INTEGER_KINDS:
        json_type = "integer"
    elif slot.kind in FLOATING_KINDS:
        json_type = "number"
    else:
        json_type = JSON_TYPES.get(slot.kind)
    schema: Dict[str, Any] = {}
    if json_type is not None:
        schema["type"] = [json_type, "null"] if slot.optional else json_type
    if slot.kind == ValueKind.CHAR:
        schema["maxLength"] = 1
    if slot.encrypted:
        schema["contentEncoding"] = "ciphertext"
    return schema


def derive_shape(classification: FieldClassification, iv_attr: str, prefix: str) -> RecordShape:
    """Resolve wire names for a classification under one serializer config

    Raises:
        ShapeError: sensitive fields without an IV slot, or clashing wire names
    """
    record = classification.record_name
    if not prefix:
        raise ShapeError(f"{record}: sensitive attribute prefix must not be empty")

    flagged = [f for f in classification.fields if f.is_iv and not f.transient]
    shape_fields: List[ShapeField] = []
    for spec in classification.fields:
        if spec.transient:
            continue
        if flagged:
            is_iv = spec.is_iv
        else:
            is_iv = spec.resolved_wire_name == iv_attr
        if is_iv:
            wire_name = spec.wire_name or (iv_attr if spec.is_iv else spec.name)
            if spec.sensitive:
                raise ShapeError(f"{record}: IV field '{spec.name}' cannot be sensitive")
            shape_fields.append(ShapeField(spec=spec, wire_name=wire_name, is_iv=True))
            continue
        wire_name = spec.resolved_wire_name
        companion = f"{prefix}{wire_name}" if spec.sensitive else None
        shape_fields.append(ShapeField(spec=spec, wire_name=wire_name, companion_name=companion))

    iv_fields = [f for f in shape_fields if f.is_iv]
    if len(iv_fields) > 1:
        raise ShapeError(f"{record}: more than one field uses the IV slot '{iv_attr}'")
    iv_field = iv_fields[0] if iv_fields else None

    if iv_field is None and classification.has_sensitive_fields:
        raise ShapeError(
            f"{record}: declares sensitive fields but no IV field (expected '{iv_attr}')"
        )

    seen: Dict[str, str] = {}
    for f in shape_fields:
        for slot_name in filter(None, (f.wire_name, f.companion_name)):
            if slot_name in seen:
                raise ShapeError(
                    f"{record}: wire name '{slot_name}' used by both "
                    f"'{seen[slot_name]}' and '{f.name}'"
                )
            seen[slot_name] = f.name

    return RecordShape(
        record_name=record,
        fields=tuple(shape_fields),
        iv_field=iv_field,
        decrypt_only=classification.decrypt_only,
        iv_attr=iv_field.wire_name if iv_field else iv_attr,
        prefix=prefix,
    )
