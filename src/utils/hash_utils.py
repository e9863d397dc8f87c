"""Utility helpers for generating deterministic content hashes.

Provides stable hashing for cache keys, poll response integrity and
change detection during sync.
"""

from __future__ import annotations

import base64
import hashlib
import json
from typing import Any


def _normalized_json(payload: Any) -> str:
    """Serialize payload to a deterministic JSON string."""
    return json.dumps(
        payload,
        sort_keys=True,
        ensure_ascii=False,
        separators=(",", ":"),
        default=str,
    )


def calculate_hash(payload: Any) -> str:
    """Produce a SHA-256 hash for the given payload."""
    normalized = _normalized_json(payload)
    return hashlib.sha256(normalized.encode("utf-8")).hexdigest()


def generate_filters_hash(filters: dict[str, Any]) -> str:
    """
    Short, URL-safe fingerprint of a filter dict for cache keys.

    Base64 of the SHA-256 digest of the key-sorted JSON, with padding and
    ``+``/``/`` removed, truncated to 16 characters.
    """
    digest = hashlib.sha256(_normalized_json(filters).encode("utf-8")).digest()
    encoded = base64.b64encode(digest).decode("ascii")
    return encoded.translate(str.maketrans("", "", "=+/"))[:16]


def compute_response_hash(user_id: str, poll_id: str, response_data: Any) -> str:
    """Integrity hash stored alongside a poll response."""
    payload = f"{user_id}:{poll_id}:{_normalized_json(response_data)}"
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()
