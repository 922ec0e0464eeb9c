"""Canonical JSON for validation reports.

Two runs over the same schema and data set must produce byte-identical
reports. Canonical form: sorted keys, compact separators, ASCII only,
bytes as standard base64, enums by value. Non-finite floats are rejected.
"""

from __future__ import annotations

import base64
import hashlib
import json
import math
from collections.abc import Mapping
from enum import Enum
from typing import Any

HASH_ALGORITHMS = ("blake2b", "sha256")


def _normalize(value: Any) -> Any:
    if isinstance(value, float):
        if not math.isfinite(value):
            raise ValueError(f"Cannot canonicalize non-finite float: {value}")
        return 0.0 if value == 0 else value
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (bytes, bytearray, memoryview)):
        return base64.b64encode(bytes(value)).decode("ascii")
    if isinstance(value, Mapping):
        return {str(k): _normalize(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_normalize(v) for v in value]
    if hasattr(value, "to_dict"):
        return _normalize(value.to_dict())
    return value


def canonical_json(data: Any) -> str:
    """Serialize ``data`` canonically.

    Raises:
        ValueError: If data contains NaN or Infinity
    """
    return json.dumps(
        _normalize(data),
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=True,
        allow_nan=False,
    )


def canonical_hash(data: Any, algorithm: str = "blake2b", digest_size: int = 16) -> str:
    """Hex digest of the canonical form of ``data``."""
    if algorithm == "blake2b":
        hasher = hashlib.blake2b(digest_size=digest_size)
    elif algorithm == "sha256":
        hasher = hashlib.sha256()
    else:
        raise ValueError(f"Unsupported algorithm: {algorithm} (expected one of {HASH_ALGORITHMS})")
    hasher.update(canonical_json(data).encode("ascii"))
    return hasher.hexdigest()
