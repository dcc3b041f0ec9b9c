"""Unit Tests for codec metrics and logging setup

Run: pytest tests/utils/
"""
import base64
from dataclasses import dataclass
from typing import Optional

import pytest
import structlog
from prometheus_client import REGISTRY

from secure_serialization.sample.sample_crypto_engine import SampleCryptoEngine
from secure_serialization.sample.sample_key_provider import SampleKeyProvider
from secure_serialization.secure.classification import classify
from secure_serialization.secure.errors import DecryptionError
from secure_serialization.secure.serializer import SecureSerializer
from secure_serialization.utils.logging_config import configure_logging
from secure_serialization.utils.metrics import get_metrics_text


@dataclass
class MetricsRecord:
    secret: Optional[str]
    e2e_iv: Optional[str] = None


FIELDS = classify(MetricsRecord).sensitive("secret", str, nullable=True).iv("e2e_iv").build()


def sample(name, **labels):
    return REGISTRY.get_sample_value(name, labels) or 0.0


def test_encode_and_decode_are_counted():
    serializer = SecureSerializer(FIELDS, SampleKeyProvider(), SampleCryptoEngine())
    encrypted_before = sample("secure_fields_encrypted_total", record="MetricsRecord")
    decoded_before = sample("secure_codec_operations_total", record="MetricsRecord", operation="decode", mode="encrypted")

    serializer.decode(serializer.encode(MetricsRecord(secret="s")))

    assert sample("secure_fields_encrypted_total", record="MetricsRecord") == encrypted_before + 1
    assert sample(
        "secure_codec_operations_total", record="MetricsRecord", operation="decode", mode="encrypted"
    ) == decoded_before + 1
    assert sample("secure_codec_duration_seconds_count", record="MetricsRecord", operation="encode") >= 1


def test_decryption_failures_are_counted():
    serializer = SecureSerializer(FIELDS, SampleKeyProvider(), SampleCryptoEngine())
    before = sample("secure_decryption_failures_total", record="MetricsRecord")

    with pytest.raises(DecryptionError):
        serializer.decode({"e2e_iv": "sample-iv", "e2e_secret": "***"})

    assert sample("secure_decryption_failures_total", record="MetricsRecord") == before + 1
    assert b"secure_decryption_failures_total" in get_metrics_text()


def test_coercion_failures_are_counted():
    @dataclass
    class Counted:
        hits: Optional[int]
        e2e_iv: Optional[str] = None

    serializer = SecureSerializer(
        classify(Counted).sensitive("hits", int, nullable=True).iv("e2e_iv").build(),
        SampleKeyProvider(),
        SampleCryptoEngine(),
    )
    before = sample("secure_coercion_failures_total", record="Counted", kind="long")

    serializer.decode({"e2e_iv": "sample-iv", "e2e_hits": base64.b64encode(b"x").decode()})

    assert sample("secure_coercion_failures_total", record="Counted", kind="long") == before + 1


def test_configure_logging_console_renderer():
    configure_logging(json=False, level="DEBUG")
    try:
        assert isinstance(structlog.get_config()["processors"][-1], structlog.dev.ConsoleRenderer)
    finally:
        structlog.reset_defaults()
