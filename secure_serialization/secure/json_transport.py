"""JSON Transport - Optional JSON binding for wire maps

Why: Most callers ship wire maps as JSON; the serializer itself stays
transport-agnostic.
"""
import json
from typing import Any

from secure_serialization.secure.serializer import SecureSerializer


def dumps(serializer: SecureSerializer, record: Any, **json_kwargs) -> str:
    return json.dumps(serializer.encode(record), **json_kwargs)


def loads(serializer: SecureSerializer, text: str) -> Any:
    """Decode a JSON object; top-level must be an object"""
    payload = json.loads(text)
    if not isinstance(payload, dict):
        raise ValueError(f"Expected a JSON object for {serializer.record_name}, got {type(payload).__name__}")
    return serializer.decode(payload)
