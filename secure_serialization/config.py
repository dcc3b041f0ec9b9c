"""Configuration - Environment-backed defaults for the secure codec

Self-Explanatory: Module constants read once from the environment plus a
pydantic settings model.
Why: Wire names must be configurable per deployment without code changes.
How: Serializers take CodecSettings (or explicit arguments); they never read
these constants on their own.
"""
import os

from pydantic import BaseModel

# Wire format
SECURE_IV_ATTR = os.getenv("SECURE_IV_ATTR", "e2e_iv")
SECURE_ATTR_PREFIX = os.getenv("SECURE_ATTR_PREFIX", "e2e_")
SECURE_STRICT_BOOLEANS = os.getenv("SECURE_STRICT_BOOLEANS", "false").lower() == "true"

# Key sources
SECURE_DATA_KEY_ENV = os.getenv("SECURE_DATA_KEY_ENV", "SECURE_DATA_KEY")
AWS_REGION = os.getenv("AWS_REGION", "ap-south-1")
KMS_KEY_ALIAS = os.getenv("KMS_KEY_ALIAS", "alias/secure-serialization-key")

# Logging
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_JSON = os.getenv("LOG_JSON", "true").lower() == "true"


class CodecSettings(BaseModel):
    iv_attr: str = "e2e_iv"
    prefix: str = "e2e_"
    strict_booleans: bool = False

    @classmethod
    def from_env(cls) -> "CodecSettings":
        """Build settings from the environment, re-reading it on each call"""
        return cls(
            iv_attr=os.getenv("SECURE_IV_ATTR", SECURE_IV_ATTR),
            prefix=os.getenv("SECURE_ATTR_PREFIX", SECURE_ATTR_PREFIX),
            strict_booleans=os.getenv(
                "SECURE_STRICT_BOOLEANS", str(SECURE_STRICT_BOOLEANS)
            ).lower() == "true",
        )
