"""Prometheus Metrics - Observability for the secure codec

Self-Explanatory: Counters and histograms for encode/decode traffic.
Why: Decryption failures are the first sign of a wrong key or tampering.
How: prometheus_client default registry; exposition via get_metrics_text().

Metrics Categories:
1. Operations: encodes/decodes by record type and mode (encrypted/plain)
2. Fields: sensitive fields encrypted and decrypted
3. Failures: decryption rejections, coercion fallbacks to "absent"
4. Performance: encode/decode latency
"""

import time
from functools import wraps
from typing import Callable

from prometheus_client import (
    Counter,
    Histogram,
    generate_latest,
    REGISTRY,
)

# ============================================================================
# OPERATION METRICS
# ============================================================================

codec_operations_total = Counter(
    "secure_codec_operations_total",
    "Total encode/decode calls",
    ["record", "operation", "mode"],
)

codec_duration_seconds = Histogram(
    "secure_codec_duration_seconds",
    "Time spent in one encode/decode call",
    ["record", "operation"],
    buckets=[0.0001, 0.0005, 0.001, 0.005, 0.01, 0.05, 0.1, 0.5, 1.0],
)

# ============================================================================
# FIELD METRICS
# ============================================================================

fields_encrypted_total = Counter(
    "secure_fields_encrypted_total",
    "Sensitive fields written as ciphertext",
    ["record"],
)

fields_decrypted_total = Counter(
    "secure_fields_decrypted_total",
    "Sensitive fields read back from ciphertext",
    ["record"],
)

# ============================================================================
# FAILURE METRICS
# ============================================================================

decryption_failures_total = Counter(
    "secure_decryption_failures_total",
    "Companion slots the crypto engine rejected",
    ["record"],
)

coercion_failures_total = Counter(
    "secure_coercion_failures_total",
    "Decrypted values that did not parse as their field kind",
    ["record", "kind"],
)


# ============================================================================
# DECORATORS
# ============================================================================


def track_codec_time(operation: str):
    """Decorator to track serializer method duration

    The wrapped method's instance must expose record_name.
    """
    def decorator(func: Callable) -> Callable:
        @wraps(func)
        def wrapper(self, *args, **kwargs):
            start_time = time.time()
            try:
                return func(self, *args, **kwargs)
            finally:
                duration = time.time() - start_time
                codec_duration_seconds.labels(
                    record=self.record_name,
                    operation=operation
                ).observe(duration)
        return wrapper
    return decorator


# ============================================================================
# HELPER FUNCTIONS
# ============================================================================


def record_operation(record: str, operation: str, mode: str):
    """Record one encode/decode call"""
    codec_operations_total.labels(record=record, operation=operation, mode=mode).inc()


def record_field_encrypted(record: str):
    fields_encrypted_total.labels(record=record).inc()


def record_field_decrypted(record: str):
    fields_decrypted_total.labels(record=record).inc()


def record_decryption_failure(record: str):
    decryption_failures_total.labels(record=record).inc()


def record_coercion_failure(record: str, kind: str):
    coercion_failures_total.labels(record=record, kind=kind).inc()


def get_metrics_text() -> bytes:
    """Get Prometheus metrics in text format

    Returns:
        Metrics in Prometheus exposition format
    """
    return generate_latest(REGISTRY)
