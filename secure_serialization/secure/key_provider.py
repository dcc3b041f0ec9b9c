"""Key Providers - Where the codec gets its current key

Self-Explanatory: current_key() returns key bytes or None.
Why: Keeps key storage/rotation out of the serializer.
How: None means "no key available" and selects plain output; a provider may
return a different key on every call (rotation), the codec snapshots once.
"""
import base64
import binascii
import os
from abc import ABC, abstractmethod
from typing import Optional

import structlog

from secure_serialization.config import SECURE_DATA_KEY_ENV
from secure_serialization.secure.errors import KeyProviderError

logger = structlog.get_logger()


class KeyProvider(ABC):
    """Supplies the current encryption/decryption key"""

    @abstractmethod
    def current_key(self) -> Optional[bytes]:
        """Return the key to use now, or None to skip encryption"""


class StaticKeyProvider(KeyProvider):
    """Always returns the same key (or always None)"""

    def __init__(self, key: Optional[bytes] = None):
        self._key = key

    def current_key(self) -> Optional[bytes]:
        return self._key


class EnvKeyProvider(KeyProvider):
    """Reads a base64 key from the environment on every call

    Rotation is done by changing the variable; an unset or empty
    variable means no key.
    """

    def __init__(self, env_var: str = SECURE_DATA_KEY_ENV):
        self.env_var = env_var

    def current_key(self) -> Optional[bytes]:
        raw = os.getenv(self.env_var)
        if not raw:
            return None
        try:
            return base64.b64decode(raw, validate=True)
        except (binascii.Error, ValueError) as e:
            logger.error("Malformed key in environment", env_var=self.env_var, error=str(e))
            raise KeyProviderError(f"{self.env_var} is not valid base64") from e
