"""Secure Serializer - Selective field encryption for record <-> wire maps

Self-Explanatory: encode() turns a record into a flat wire dict with its
sensitive fields encrypted and renamed; decode() reverses it and also accepts
plain (legacy, unencrypted) wire dicts.
Why: Sensitive values must never reach the wire in clear text when a key is
available, while old plain payloads keep decoding.
How: A RecordShape is derived once in __init__. Each call takes one key
snapshot from the KeyProvider; each encode asks the CryptoEngine for exactly
one fresh IV (never cached, never shared between calls).

Serialization Format (key present):
    {"id": 1, "e2e_name": "<ciphertext>", "age": 30, "e2e_iv": "<iv>"}
Without a key, or for decrypt-only record types:
    {"id": 1, "name": "John", "age": 30, "e2e_iv": null}

Thread safety: no mutable state besides metrics, so one instance can be
shared across threads as long as the key provider and engine are safe too.
"""
from typing import Any, Dict, List, Mapping, Optional

import structlog

from secure_serialization.config import CodecSettings
from secure_serialization.secure.classification import FieldClassification, ValueKind
from secure_serialization.secure.coercion import ABSENT, coerce_text, to_wire_text
from secure_serialization.secure.crypto_engine import CryptoEngine
from secure_serialization.secure.errors import DecryptionError, MissingFieldError
from secure_serialization.secure.key_provider import KeyProvider
from secure_serialization.secure.shape import RecordShape, ShapeField, WireSlot, derive_shape
from secure_serialization.utils.metrics import (
    record_coercion_failure,
    record_decryption_failure,
    record_field_decrypted,
    record_field_encrypted,
    record_operation,
    track_codec_time,
)

logger = structlog.get_logger()


class SecureSerializer:
    """Encodes/decodes one record type with selective field encryption

    Args:
        classification: Field classification of the record type
        key_provider: Source of the current key (None disables encryption)
        crypto_engine: IV generation and string encrypt/decrypt
        iv_attr: Wire name of the IV slot
        prefix: Prefix of companion (ciphertext) slots
        strict_booleans: Raise CoercionError for decrypted booleans that are
            neither "true" nor "false" instead of reading them as False

    Raises:
        ShapeError: if the classification cannot be laid out on the wire
    """

    def __init__(
        self,
        classification: FieldClassification,
        key_provider: KeyProvider,
        crypto_engine: CryptoEngine,
        iv_attr: str = "e2e_iv",
        prefix: str = "e2e_",
        strict_booleans: bool = False,
    ):
        self.classification = classification
        self.key_provider = key_provider
        self.crypto_engine = crypto_engine
        self.strict_booleans = strict_booleans
        self.shape: RecordShape = derive_shape(classification, iv_attr=iv_attr, prefix=prefix)
        self._known_slots = frozenset(slot.name for slot in self.shape.wire_slots())
        logger.info(
            "Secure serializer initialized",
            record=self.record_name,
            fields=len(self.shape.fields),
            sensitive=sum(1 for f in self.shape.fields if f.sensitive),
            decrypt_only=self.shape.decrypt_only,
        )

    @classmethod
    def from_settings(
        cls,
        classification: FieldClassification,
        key_provider: KeyProvider,
        crypto_engine: CryptoEngine,
        settings: CodecSettings,
    ) -> "SecureSerializer":
        return cls(
            classification,
            key_provider,
            crypto_engine,
            iv_attr=settings.iv_attr,
            prefix=settings.prefix,
            strict_booleans=settings.strict_booleans,
        )

    @property
    def record_name(self) -> str:
        return self.shape.record_name

    @property
    def iv_attr(self) -> str:
        return self.shape.iv_attr

    @property
    def prefix(self) -> str:
        return self.shape.prefix

    def wire_schema(self) -> List[WireSlot]:
        """Wire slots this serializer reads and writes"""
        return self.shape.wire_slots()

    # ------------------------------------------------------------------
    # Encode
    # ------------------------------------------------------------------

    @track_codec_time("encode")
    def encode(self, record: Any) -> Dict[str, Any]:
        """Encode record into a wire map

        Sensitive fields with a value are written only as <prefix><wire_name>
        ciphertext when a key is available; otherwise (no key, decrypt-only
        record type, or a None value) they are written plain.

        Raises:
            CoercionError: an integer value does not fit its declared kind
        """
        key = self.key_provider.current_key()
        if self.shape.decrypt_only:
            key = None
        iv = self.crypto_engine.generate_iv() if key is not None else None

        wire: Dict[str, Any] = {}
        encrypted = 0
        for field in self.shape.fields:
            if field.is_iv:
                wire[field.wire_name] = iv
                continue

            value = getattr(record, field.name)
            if field.sensitive and key is not None and iv is not None and value is not None:
                plain_text = self._to_text(field, value)
                wire[field.companion_name] = self.crypto_engine.encrypt(plain_text, key, iv)
                record_field_encrypted(self.record_name)
                encrypted += 1
            else:
                wire[field.wire_name] = value

        mode = "encrypted" if iv is not None else "plain"
        record_operation(self.record_name, "encode", mode)
        logger.debug("Record encoded", record=self.record_name, mode=mode, encrypted_fields=encrypted)
        return wire

    def _to_text(self, field: ShapeField, value: Any) -> str:
        if field.kind == ValueKind.OTHER:
            return self.serialize_non_primitive(field, value)
        return to_wire_text(field.kind, value)

    def serialize_non_primitive(self, field: ShapeField, value: Any) -> str:
        """Hook: text form of a non-primitive value before encryption"""
        return str(value)

    # ------------------------------------------------------------------
    # Decode
    # ------------------------------------------------------------------

    @track_codec_time("decode")
    def decode(self, wire: Mapping[str, Any]) -> Any:
        """Decode a wire map (encrypted or plain) into a record

        Raises:
            DecryptionError: the crypto engine rejected a companion slot
            MissingFieldError: a required field has no value
        """
        values = {name: value for name, value in wire.items() if name in self._known_slots}
        ignored = len(wire) - len(values)
        if ignored:
            logger.debug("Unknown wire slots ignored", record=self.record_name, count=ignored)

        iv = self._read_iv(values)
        key = self.key_provider.current_key()
        decrypting = key is not None and iv is not None

        kwargs: Dict[str, Any] = {}
        for field in self.shape.fields:
            if field.is_iv:
                value = ABSENT if iv is None else iv
            elif field.sensitive and decrypting:
                value = self._decrypt_field(field, values, key, iv)
            else:
                value = values.get(field.wire_name, ABSENT)
            self._resolve(field, value, kwargs)

        record_operation(self.record_name, "decode", "encrypted" if decrypting else "plain")
        return self.classification.record_type(**kwargs)

    def _read_iv(self, values: Mapping[str, Any]) -> Optional[str]:
        if self.shape.iv_field is None:
            return None
        iv = values.get(self.shape.iv_field.wire_name)
        if iv is not None and not isinstance(iv, str):
            logger.warning("Non-string IV slot ignored", record=self.record_name, iv_type=type(iv).__name__)
            return None
        return iv

    def _decrypt_field(self, field: ShapeField, values: Mapping[str, Any], key: bytes, iv: str) -> Any:
        cipher_text = values.get(field.companion_name)
        if cipher_text is None:
            # Legitimately un-encrypted (e.g. the value was None on encode)
            return ABSENT
        if not isinstance(cipher_text, str):
            record_decryption_failure(self.record_name)
            raise DecryptionError(
                f"Companion slot '{field.companion_name}' is not a string",
                field=field.name,
                wire_name=field.companion_name,
            )

        plain_text = self.crypto_engine.decrypt(cipher_text, key, iv)
        if plain_text is None:
            record_decryption_failure(self.record_name)
            logger.warning("Decryption failed", record=self.record_name, field=field.name)
            raise DecryptionError(
                f"Could not decrypt '{field.companion_name}' of {self.record_name}",
                field=field.name,
                wire_name=field.companion_name,
            )
        record_field_decrypted(self.record_name)

        if field.kind == ValueKind.OTHER:
            value = self.deserialize_non_primitive(field, plain_text)
            return ABSENT if value is None else value
        value = coerce_text(field.kind, plain_text, strict_booleans=self.strict_booleans)
        if value is ABSENT:
            record_coercion_failure(self.record_name, field.kind.value)
            logger.warning("Decrypted value did not parse", record=self.record_name, field=field.name, kind=field.kind.value)
        return value

    def deserialize_non_primitive(self, field: ShapeField, value: str) -> Any:
        """Hook: build a non-primitive value from decrypted text

        Returning None leaves the field absent.

        Example:
            class OrderSerializer(SecureSerializer):
                def deserialize_non_primitive(self, field, value):
                    if field.name == "amount":
                        return Decimal(value)
                    return None
        """
        return None

    def _resolve(self, field: ShapeField, value: Any, kwargs: Dict[str, Any]):
        """Apply nullability/default rules; defaults are left to the record type"""
        if field.is_iv and (value is ABSENT or value is None):
            # Plain legacy payloads carry no IV
            if not field.has_default:
                kwargs[field.name] = None
            return
        if value is ABSENT:
            if field.has_default:
                return
            if field.nullable:
                kwargs[field.name] = None
                return
            raise MissingFieldError(field.name, self.record_name)
        if value is None:
            if field.nullable:
                kwargs[field.name] = None
                return
            if field.has_default:
                return
            raise MissingFieldError(field.name, self.record_name)
        kwargs[field.name] = value
