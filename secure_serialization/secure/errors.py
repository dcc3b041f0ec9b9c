"""Secure Serialization Errors - Typed failures surfaced by the codec

Self-Explanatory: One exception per failure class, all under a common base.
Why: Callers must tell misconfiguration apart from tampered payloads.
How: ShapeError at classification/shape build time; DecryptionError and
MissingFieldError at decode time. Nothing is retried internally.
"""
from typing import Optional


class SecureSerializationError(Exception):
    """Base class for every codec error"""


class ShapeError(SecureSerializationError):
    """Field classification cannot produce a valid record shape"""


class DecryptionError(SecureSerializationError):
    """Crypto engine rejected a companion slot value"""

    def __init__(self, message: str, field: Optional[str] = None, wire_name: Optional[str] = None):
        super().__init__(message)
        self.field = field
        self.wire_name = wire_name


class MissingFieldError(SecureSerializationError):
    """A required field resolved to no value after decode"""

    def __init__(self, field: str, record: str):
        super().__init__(f"Missing value for required field '{field}' of {record}")
        self.field = field
        self.record = record


class CoercionError(SecureSerializationError):
    """Decrypted text could not be coerced (strict mode only)"""


class KeyProviderError(SecureSerializationError):
    """Key source is misconfigured (e.g. malformed key material)"""
