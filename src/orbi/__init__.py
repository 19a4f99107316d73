"""
orbi: publish file versions as signed, root-anchored event chains to relays.

Typical use goes through the ``orbi`` command; the pieces are importable for
embedding::

    from orbi import ChainStore, RelayBroadcaster, VersionChain
    from orbi.plugins.relays import WebsocketRelayClient

    chain = VersionChain(
        ChainStore("."),
        signer,
        RelayBroadcaster(WebsocketRelayClient()),
        relays=["wss://nos.lol"],
    )
    outcome = await chain.publish("draft.md")
"""

from __future__ import annotations

from ._version import __version__
from .core import (
    BroadcastError,
    BroadcastResult,
    ChainPointers,
    ChainStateError,
    ChainStore,
    ConfigurationError,
    EventKind,
    OrbiError,
    PublishOutcome,
    RelayBroadcaster,
    RelayError,
    Settings,
    SignedEvent,
    StorageError,
    VersionChain,
)

VERSION = __version__

__all__ = [
    "BroadcastError",
    "BroadcastResult",
    "ChainPointers",
    "ChainStateError",
    "ChainStore",
    "ConfigurationError",
    "EventKind",
    "OrbiError",
    "PublishOutcome",
    "RelayBroadcaster",
    "RelayError",
    "Settings",
    "SignedEvent",
    "StorageError",
    "VersionChain",
    "VERSION",
    "__version__",
]
