"""
Canonical event serialization and identifier helpers.

The event identifier is the SHA-256 of the compact JSON array
``[0, pubkey, created_at, kind, tags, content]`` encoded as UTF-8 without
ASCII escaping, so any client computing it over the same fields gets the
same id.
"""

from __future__ import annotations

import hashlib
import json
import re
from typing import Any, Sequence

_HEX64 = re.compile(r"[0-9a-f]{64}")
_HEX128 = re.compile(r"[0-9a-f]{128}")


def canonicalize(
    pubkey: str,
    created_at: int,
    kind: int,
    tags: Sequence[Sequence[str]],
    content: str,
) -> bytes:
    """Produce the deterministic byte string that is hashed into the id."""
    payload: list[Any] = [0, pubkey, created_at, kind, [list(t) for t in tags], content]
    serialized = json.dumps(payload, separators=(",", ":"), ensure_ascii=False)
    return serialized.encode("utf-8")


def compute_event_id(
    pubkey: str,
    created_at: int,
    kind: int,
    tags: Sequence[Sequence[str]],
    content: str,
) -> str:
    return hashlib.sha256(canonicalize(pubkey, created_at, kind, tags, content)).hexdigest()


def is_event_id(value: str) -> bool:
    """True for a lowercase 64-character hex string."""
    return bool(_HEX64.fullmatch(value))


def is_signature(value: str) -> bool:
    return bool(_HEX128.fullmatch(value))
