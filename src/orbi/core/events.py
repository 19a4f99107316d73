"""
Version event construction.

Builders here are pure: they turn file content, chain pointers and an
optional message into an ``UnsignedEvent``. Only ``finalize_event`` talks to
a signer, and it is the only way to obtain a ``SignedEvent``.
"""

from __future__ import annotations

import re
import time
from dataclasses import dataclass, field
from enum import IntEnum
from typing import TYPE_CHECKING, Any, Iterable, Sequence

from .canonical import compute_event_id, is_event_id, is_signature
from .errors import ConfigurationError

if TYPE_CHECKING:
    from .signing import Signer


class EventKind(IntEnum):
    FILE_VERSION = 4444
    CONFLUENCE = 4445


# Tag names
TAG_FILE = "f"
TAG_EVENT = "e"
TAG_MESSAGE = "m"
MARKER_ROOT = "root"
MARKER_REPLY = "reply"

_REFERENCE_ID = re.compile(r"[0-9a-fA-F]{64}")

Tag = tuple[str, ...]


@dataclass(frozen=True)
class UnsignedEvent:
    pubkey: str
    kind: EventKind
    created_at: int
    content: str
    tags: tuple[Tag, ...] = field(default_factory=tuple)

    def compute_id(self) -> str:
        return compute_event_id(
            self.pubkey, self.created_at, int(self.kind), self.tags, self.content
        )

    def tag_values(self, name: str) -> list[Tag]:
        return [t for t in self.tags if t and t[0] == name]

    def file_name(self) -> str | None:
        found = self.tag_values(TAG_FILE)
        return found[0][1] if found else None

    def _marked(self, marker: str) -> str | None:
        for t in self.tag_values(TAG_EVENT):
            if len(t) >= 4 and t[3] == marker:
                return t[1]
        return None

    def chain_root(self) -> str | None:
        return self._marked(MARKER_ROOT)

    def chain_parent(self) -> str | None:
        return self._marked(MARKER_REPLY)

    def message(self) -> str | None:
        found = self.tag_values(TAG_MESSAGE)
        return found[0][1] if found else None


@dataclass(frozen=True)
class SignedEvent(UnsignedEvent):
    id: str = ""
    sig: str = ""

    def to_wire(self) -> dict[str, Any]:
        """JSON-ready representation sent to relays."""
        return {
            "id": self.id,
            "pubkey": self.pubkey,
            "created_at": self.created_at,
            "kind": int(self.kind),
            "tags": tags_as_lists(self.tags),
            "content": self.content,
            "sig": self.sig,
        }


def tags_as_lists(tags: Sequence[Tag]) -> list[list[str]]:
    return [list(t) for t in tags]


def _now() -> int:
    return int(time.time())


def decode_content(content: bytes) -> str:
    """File bytes as event content; undecodable bytes become U+FFFD."""
    return content.decode("utf-8", errors="replace")


def build_file_version(
    content: bytes,
    filename: str,
    *,
    pubkey: str,
    root_id: str | None = None,
    parent_id: str | None = None,
    message: str | None = None,
    created_at: int | None = None,
) -> UnsignedEvent:
    """Build a FileVersion event.

    Chain tags are added only when ``root_id`` is given; a first publish
    passes no root and so carries none. ``parent_id`` defaults to the root.
    """
    tags: list[Tag] = [(TAG_FILE, filename)]
    if root_id:
        tags.append((TAG_EVENT, root_id, "", MARKER_ROOT))
        tags.append((TAG_EVENT, parent_id or root_id, "", MARKER_REPLY))
    if message:
        tags.append((TAG_MESSAGE, message))
    return UnsignedEvent(
        pubkey=pubkey,
        kind=EventKind.FILE_VERSION,
        created_at=created_at if created_at is not None else _now(),
        content=decode_content(content),
        tags=tuple(tags),
    )


def classify_reference(reference: str) -> Tag:
    """A 64-character hex string references an event, anything else a file."""
    if _REFERENCE_ID.fullmatch(reference):
        return (TAG_EVENT, reference.lower())
    return (TAG_FILE, reference)


def build_confluence(
    references: Iterable[str],
    message: str,
    *,
    pubkey: str,
    created_at: int | None = None,
) -> UnsignedEvent:
    return UnsignedEvent(
        pubkey=pubkey,
        kind=EventKind.CONFLUENCE,
        created_at=created_at if created_at is not None else _now(),
        content=message,
        tags=tuple(classify_reference(r) for r in references),
    )


def finalize_event(event: UnsignedEvent, signer: Signer) -> SignedEvent:
    """Compute the id, sign it and return the complete event.

    Raises ``ConfigurationError`` when the signer belongs to another
    identity or hands back a malformed signature.
    """
    if event.pubkey != signer.public_key:
        raise ConfigurationError(
            "event author does not match signing key",
            pubkey=event.pubkey,
        )
    event_id = event.compute_id()
    sig = signer.sign(bytes.fromhex(event_id))
    if not is_event_id(event_id) or not is_signature(sig):
        raise ConfigurationError("signer returned a malformed signature")
    return SignedEvent(
        pubkey=event.pubkey,
        kind=event.kind,
        created_at=event.created_at,
        content=event.content,
        tags=event.tags,
        id=event_id,
        sig=sig,
    )

