"""
Signing capability and secret key loading.

The rest of orbi only sees the ``Signer`` protocol: a public identity and a
``sign(digest)`` operation returning a hex Schnorr signature. The concrete
``NostrKeySigner`` delegates the curve work to ``nostr_sdk``.
"""

from __future__ import annotations

import importlib
import os
import re
from pathlib import Path
from typing import Any, Protocol

from .errors import ConfigurationError

SECRET_PATH_ENV_VAR = "NOSTR_SECRET_PATH"

_HEX_KEY = re.compile(r"[0-9a-fA-F]{64}")


class Signer(Protocol):
    """Protocol for the author's signing key."""

    @property
    def public_key(self) -> str:
        """Hex-encoded x-only public key."""

    def sign(self, digest: bytes) -> str:
        """Schnorr-sign a 32-byte digest, returning 128 hex characters."""


def resolve_secret_path(configured: str) -> Path:
    """``$NOSTR_SECRET_PATH`` wins over the configured location."""
    raw = os.getenv(SECRET_PATH_ENV_VAR) or configured
    return Path(raw).expanduser().resolve()


def parse_secret_key(text: str) -> str:
    """Validate key material: a bech32 ``nsec1`` string or 64 hex characters."""
    value = text.strip()
    if not value:
        raise ConfigurationError("secret key is empty")
    if value.startswith("nsec1") or _HEX_KEY.fullmatch(value):
        return value
    raise ConfigurationError("invalid key format: expected nsec1... or 64 hex characters")


def load_secret_key(path: str | Path) -> str:
    p = Path(path)
    try:
        text = p.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigurationError(
            f"failed to read secret key: {exc}", path=str(p), cause=exc
        ) from exc
    return parse_secret_key(text)


class NostrKeySigner:
    """Signer backed by ``nostr_sdk.Keys``."""

    def __init__(self, secret: str, *, keys: Any | None = None) -> None:
        if keys is None:
            nostr_sdk = importlib.import_module("nostr_sdk")
            try:
                keys = nostr_sdk.Keys.parse(parse_secret_key(secret))
            except ConfigurationError:
                raise
            except Exception as exc:
                raise ConfigurationError(
                    f"could not decode secret key: {exc}", cause=exc
                ) from exc
        self._keys = keys
        self._public_key: str = keys.public_key().to_hex()

    @property
    def public_key(self) -> str:
        return self._public_key

    def sign(self, digest: bytes) -> str:
        return str(self._keys.sign_schnorr(digest))

    @classmethod
    def from_file(cls, path: str | Path) -> NostrKeySigner:
        return cls(load_secret_key(path))
