"""
Version chain resolution.

Per tracked file the chain moves ``Untracked -> Published(root) ->
Committed(root, latest)``:

- ``publish`` creates the root: no chain tags, refused if a root exists.
- ``commit`` replies to the root. Every commit uses the root as both its
  chain root and its parent, so the lineage is a flat, root-anchored fan
  rather than a linked list; ordering among commits is by ``created_at``.
- ``confluence`` references several events or files and writes no local
  state.

Preconditions are checked before the signer or any relay is touched. Local
pointers are written only after a broadcast succeeded.
"""

from __future__ import annotations

import asyncio
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Sequence

from . import diagnostics
from .broadcast import BroadcastResult, RelayBroadcaster
from .chain_store import ChainPointers, ChainStore, normalize_filename
from .errors import ChainStateError, OrbiError, StorageError
from .events import (
    SignedEvent,
    UnsignedEvent,
    build_confluence,
    build_file_version,
    finalize_event,
)
from .signing import Signer


@dataclass(frozen=True)
class PublishOutcome:
    """What a successful publish, commit or confluence produced."""

    event: SignedEvent
    broadcast: BroadcastResult
    filename: str | None = None
    root: str | None = None
    head: str | None = None
    warnings: list[str] = field(default_factory=list)

    @property
    def event_id(self) -> str:
        return self.event.id

    @property
    def accepted(self) -> list[str]:
        return self.broadcast.accepted


async def tracked_status(store: ChainStore) -> list[ChainPointers]:
    """Pointers of every tracked file, in tracking order."""
    return [await store.pointers(name) for name in await store.list_tracked()]


async def advance_head(
    store: ChainStore, path: str | os.PathLike[str], event_id: str
) -> None:
    """Explicitly move the head pointer of a published file.

    Commits never do this on their own.
    """
    name = normalize_filename(path)
    if await store.read_root(name) is None:
        raise ChainStateError(f"{name} not yet published", filename=name)
    await store.write_head(name, event_id)


async def read_source(path: str | os.PathLike[str]) -> bytes:
    p = Path(path)
    try:
        return await asyncio.to_thread(p.read_bytes)
    except OSError as exc:
        raise StorageError(
            f"cannot read {p}: {exc}", path=str(p), cause=exc
        ) from exc


class VersionChain:
    """Drives the store, builder, signer and broadcaster for one project."""

    def __init__(
        self,
        store: ChainStore,
        signer: Signer,
        broadcaster: RelayBroadcaster,
        relays: Sequence[str],
    ) -> None:
        self._store = store
        self._signer = signer
        self._broadcaster = broadcaster
        self._relays = list(relays)

    @property
    def store(self) -> ChainStore:
        return self._store

    async def publish(
        self, path: str | os.PathLike[str], *, message: str | None = None
    ) -> PublishOutcome:
        """Publish the first version of a file and record its root."""
        name = normalize_filename(path)
        existing = await self._store.read_root(name)
        if existing is not None:
            raise ChainStateError(
                f"{name} is already published (root {existing}); use commit",
                filename=name,
            )
        content = await read_source(path)
        unsigned = build_file_version(
            content, name, pubkey=self._signer.public_key, message=message
        )
        event, result = await self._sign_and_broadcast(unsigned)

        # The root is on the critical path; tracking is best-effort.
        await self._store.write_root(name, event.id)
        warnings = await self._track(name)
        return PublishOutcome(
            event=event,
            broadcast=result,
            filename=name,
            root=event.id,
            warnings=warnings,
        )

    async def commit(
        self, path: str | os.PathLike[str], *, message: str | None = None
    ) -> PublishOutcome:
        """Publish a new version replying to the file's root."""
        name = normalize_filename(path)
        root = await self._store.read_root(name)
        if root is None:
            raise ChainStateError(
                f"{name} not yet published; run publish first", filename=name
            )
        head = await self._store.read_head(name)
        diagnostics.debug("chain", "committing", file=name, root=root, head=head)

        content = await read_source(path)
        unsigned = build_file_version(
            content,
            name,
            pubkey=self._signer.public_key,
            root_id=root,
            parent_id=root,
            message=message,
        )
        event, result = await self._sign_and_broadcast(unsigned)
        warnings = await self._track(name)
        return PublishOutcome(
            event=event,
            broadcast=result,
            filename=name,
            root=root,
            head=head,
            warnings=warnings,
        )

    async def confluence(
        self, references: Sequence[str] | None = None, *, message: str = ""
    ) -> PublishOutcome:
        """Publish an event referencing several events or files.

        Without explicit references the tracked-file set is used.
        """
        refs = list(references or [])
        if not refs:
            refs = await self._store.list_tracked()
        if not refs:
            raise ChainStateError("no references given and no tracked files")
        unsigned = build_confluence(refs, message, pubkey=self._signer.public_key)
        event, result = await self._sign_and_broadcast(unsigned)
        return PublishOutcome(event=event, broadcast=result)

    async def set_head(self, path: str | os.PathLike[str], event_id: str) -> None:
        await advance_head(self._store, path, event_id)

    async def status(self) -> list[ChainPointers]:
        return await tracked_status(self._store)

    async def _sign_and_broadcast(
        self, unsigned: UnsignedEvent
    ) -> tuple[SignedEvent, BroadcastResult]:
        event = finalize_event(unsigned, self._signer)
        result = await self._broadcaster.publish(event, self._relays)
        return event, result

    async def _track(self, name: str) -> list[str]:
        try:
            await self._store.track_file(name)
        except OrbiError as exc:
            diagnostics.warn(
                "chain", "could not record tracked file", file=name, error=exc.message
            )
            return [f"could not record {name} as tracked: {exc.message}"]
        return []
