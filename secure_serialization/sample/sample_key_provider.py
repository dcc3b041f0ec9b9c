"""Sample Key Provider - Hardcoded demo key

DO NOT USE IN PRODUCTION. Use KMSKeyProvider or EnvKeyProvider instead.
"""
from typing import Optional

from secure_serialization.secure.key_provider import KeyProvider

SAMPLE_KEY = b"0123456789abcdef"


class SampleKeyProvider(KeyProvider):

    def current_key(self) -> Optional[bytes]:
        return SAMPLE_KEY
