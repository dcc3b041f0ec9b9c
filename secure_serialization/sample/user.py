"""Sample User Record - Registering a record type with the secure codec

Self-Explanatory: A pydantic model, its field classification and its
serializer.
How: firstname, lastname and email are sensitive; e2e_iv carries the IV.

Serialized format with a key:
    {"id": 1, "e2e_firstname": "...", "e2e_lastname": "...",
     "e2e_email": "...", "e2e_iv": "sample-iv"}
"""
from typing import Optional

from pydantic import BaseModel

from secure_serialization.sample.sample_crypto_engine import SampleCryptoEngine
from secure_serialization.sample.sample_key_provider import SampleKeyProvider
from secure_serialization.secure.classification import classify
from secure_serialization.secure.serializer import SecureSerializer


class User(BaseModel):
    id: int
    first_name: Optional[str]
    last_name: Optional[str]
    email: Optional[str]
    e2e_iv: Optional[str] = None


USER_FIELDS = (
    classify(User)
    .field("id", int)
    .sensitive("first_name", str, wire_name="firstname", nullable=True)
    .sensitive("last_name", str, wire_name="lastname", nullable=True)
    .sensitive("email", str, nullable=True)
    .iv("e2e_iv")
    .build()
)

user_serializer = SecureSerializer(
    USER_FIELDS,
    key_provider=SampleKeyProvider(),
    crypto_engine=SampleCryptoEngine(),
)
