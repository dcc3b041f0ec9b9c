"""Secure Serialization Demo - Encode and decode a sample user

Run with: secure-serialization-demo  (or python -m secure_serialization.sample.demo)
Prints the encrypted wire JSON, the plain wire JSON produced without a key,
and the user decoded back from the encrypted form.
"""
import structlog

from secure_serialization.sample.sample_crypto_engine import SampleCryptoEngine
from secure_serialization.sample.user import USER_FIELDS, User, user_serializer
from secure_serialization.secure.json_transport import dumps, loads
from secure_serialization.secure.key_provider import StaticKeyProvider
from secure_serialization.secure.serializer import SecureSerializer
from secure_serialization.utils.logging_config import configure_logging

logger = structlog.get_logger()


def main():
    configure_logging()
    user = User(id=1, first_name="John", last_name="Doe", email="john.doe@example.com")

    encrypted = dumps(user_serializer, user)
    print(f"encrypted: {encrypted}")

    no_key = SecureSerializer(USER_FIELDS, StaticKeyProvider(None), SampleCryptoEngine())
    print(f"plain:     {dumps(no_key, user)}")

    decoded = loads(user_serializer, encrypted)
    print(f"decoded:   {decoded!r}")
    logger.info("Demo finished", record="User")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
