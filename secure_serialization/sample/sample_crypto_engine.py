"""Sample Crypto Engine - Base64 stand-in for demos and tests

NOT real encryption: "ciphertext" is the Base64 of the plaintext and the IV is
always "sample-iv". Use AesGcmCryptoEngine for anything real.
"""
import base64
import binascii
from typing import Optional

from secure_serialization.secure.crypto_engine import CryptoEngine

SAMPLE_IV = "sample-iv"


class SampleCryptoEngine(CryptoEngine):

    def generate_iv(self) -> str:
        # Fixed value, demo only
        return SAMPLE_IV

    def encrypt(self, plain_text: str, key: bytes, iv: str) -> str:
        return base64.b64encode(plain_text.encode("utf-8")).decode("utf-8")

    def decrypt(self, cipher_text: str, key: bytes, iv: str) -> Optional[str]:
        try:
            return base64.b64decode(cipher_text, validate=True).decode("utf-8")
        except (binascii.Error, UnicodeDecodeError):
            return None
