"""Crypto Engines - Pluggable symmetric primitive for the codec

Self-Explanatory: generate_iv / encrypt / decrypt over strings.
Why: The serializer never picks an algorithm itself.
How: decrypt() returns None when the ciphertext is rejected (wrong key,
tampering, bad IV) instead of raising; the serializer turns that into a
DecryptionError for the field being read.
"""
import base64
import binascii
import os
from abc import ABC, abstractmethod
from typing import Optional

import structlog
from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

logger = structlog.get_logger()

NONCE_SIZE = 12  # 96-bit nonce for GCM


class CryptoEngine(ABC):
    """Symmetric string encryption with an explicit IV"""

    @abstractmethod
    def generate_iv(self) -> str:
        """Return a fresh IV; must never repeat under the same key"""

    @abstractmethod
    def encrypt(self, plain_text: str, key: bytes, iv: str) -> str:
        ...

    @abstractmethod
    def decrypt(self, cipher_text: str, key: bytes, iv: str) -> Optional[str]:
        """Return the plaintext, or None if the ciphertext is rejected"""


class AesGcmCryptoEngine(CryptoEngine):
    """AES-GCM with base64 text encoding for IVs and ciphertexts

    Args:
        associated_data: Optional AAD bound into every tag (e.g. a record type
            name); decrypt fails if it differs from the value used to encrypt.
    """

    def __init__(self, associated_data: Optional[bytes] = None):
        self.associated_data = associated_data

    def generate_iv(self) -> str:
        return base64.b64encode(os.urandom(NONCE_SIZE)).decode("utf-8")

    def encrypt(self, plain_text: str, key: bytes, iv: str) -> str:
        nonce = base64.b64decode(iv)
        sealed = AESGCM(key).encrypt(nonce, plain_text.encode("utf-8"), self.associated_data)
        return base64.b64encode(sealed).decode("utf-8")

    def decrypt(self, cipher_text: str, key: bytes, iv: str) -> Optional[str]:
        try:
            nonce = base64.b64decode(iv, validate=True)
            sealed = base64.b64decode(cipher_text, validate=True)
            plain = AESGCM(key).decrypt(nonce, sealed, self.associated_data)
            return plain.decode("utf-8")
        except (InvalidTag, binascii.Error, UnicodeDecodeError, ValueError) as e:
            # ValueError covers wrong key/nonce sizes
            logger.warning("AES-GCM decrypt rejected", error_type=type(e).__name__)
            return None
