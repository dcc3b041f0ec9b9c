"""Unit Tests for key providers, crypto engines and JSON transport

Self-Explanatory: AES-GCM engine, sample engine, static/env key providers.
Why: The serializer trusts these contracts (None = no key / rejected).
Run: pytest tests/secure/
"""
import base64
import json

import pytest

from secure_serialization.config import CodecSettings
from secure_serialization.sample.sample_crypto_engine import SampleCryptoEngine
from secure_serialization.sample.sample_key_provider import SAMPLE_KEY, SampleKeyProvider
from secure_serialization.sample.user import User, user_serializer
from secure_serialization.secure.crypto_engine import AesGcmCryptoEngine
from secure_serialization.secure.errors import KeyProviderError
from secure_serialization.secure.json_transport import dumps, loads
from secure_serialization.secure.key_provider import EnvKeyProvider, StaticKeyProvider

KEY = bytes(range(32))


def test_aes_gcm_round_trip():
    engine = AesGcmCryptoEngine()
    iv = engine.generate_iv()

    cipher_text = engine.encrypt("john@test.com", KEY, iv)

    assert cipher_text != "john@test.com"
    assert engine.decrypt(cipher_text, KEY, iv) == "john@test.com"
    assert len(base64.b64decode(iv)) == 12


def test_aes_gcm_ivs_are_unique():
    engine = AesGcmCryptoEngine()
    assert len({engine.generate_iv() for _ in range(100)}) == 100


def test_aes_gcm_rejections_return_none():
    engine = AesGcmCryptoEngine()
    iv = engine.generate_iv()
    cipher_text = engine.encrypt("secret", KEY, iv)

    assert engine.decrypt(cipher_text, bytes(32), iv) is None
    assert engine.decrypt(cipher_text, KEY, engine.generate_iv()) is None
    assert engine.decrypt("not base64!", KEY, iv) is None
    assert engine.decrypt(cipher_text, b"short", iv) is None


def test_aes_gcm_associated_data_must_match():
    iv = AesGcmCryptoEngine().generate_iv()
    cipher_text = AesGcmCryptoEngine(associated_data=b"User").encrypt("secret", KEY, iv)

    assert AesGcmCryptoEngine(associated_data=b"User").decrypt(cipher_text, KEY, iv) == "secret"
    assert AesGcmCryptoEngine(associated_data=b"Order").decrypt(cipher_text, KEY, iv) is None


def test_sample_engine_is_base64():
    engine = SampleCryptoEngine()

    assert engine.generate_iv() == "sample-iv"
    assert engine.encrypt("John", SAMPLE_KEY, "sample-iv") == "Sm9obg=="
    assert engine.decrypt("Sm9obg==", SAMPLE_KEY, "sample-iv") == "John"
    assert engine.decrypt("%%%", SAMPLE_KEY, "sample-iv") is None


def test_static_and_sample_key_providers():
    assert StaticKeyProvider(KEY).current_key() == KEY
    assert StaticKeyProvider().current_key() is None
    assert SampleKeyProvider().current_key() == b"0123456789abcdef"


def test_env_key_provider_reads_on_every_call(monkeypatch):
    provider = EnvKeyProvider("TEST_SECURE_KEY")
    monkeypatch.delenv("TEST_SECURE_KEY", raising=False)
    assert provider.current_key() is None

    monkeypatch.setenv("TEST_SECURE_KEY", base64.b64encode(KEY).decode())
    assert provider.current_key() == KEY

    monkeypatch.setenv("TEST_SECURE_KEY", "")
    assert provider.current_key() is None


def test_env_key_provider_malformed_key(monkeypatch):
    monkeypatch.setenv("TEST_SECURE_KEY", "not*base64")

    with pytest.raises(KeyProviderError):
        EnvKeyProvider("TEST_SECURE_KEY").current_key()


def test_codec_settings_from_env(monkeypatch):
    monkeypatch.setenv("SECURE_IV_ATTR", "iv")
    monkeypatch.setenv("SECURE_ATTR_PREFIX", "sec_")
    monkeypatch.setenv("SECURE_STRICT_BOOLEANS", "TRUE")

    settings = CodecSettings.from_env()

    assert settings == CodecSettings(iv_attr="iv", prefix="sec_", strict_booleans=True)


def test_codec_settings_defaults():
    assert CodecSettings() == CodecSettings(iv_attr="e2e_iv", prefix="e2e_", strict_booleans=False)


def test_json_transport_round_trip():
    user = User(id=7, first_name="Ada", last_name=None, email="ada@example.com")

    text = dumps(user_serializer, user, sort_keys=True)
    payload = json.loads(text)

    assert payload["e2e_firstname"] == base64.b64encode(b"Ada").decode()
    assert payload["lastname"] is None
    assert loads(user_serializer, text).first_name == "Ada"


def test_json_transport_rejects_non_objects():
    with pytest.raises(ValueError):
        loads(user_serializer, "[1, 2]")
