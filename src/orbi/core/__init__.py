"""
Core chain model and broadcast protocol for orbi.
"""

from .broadcast import BroadcastResult, RelayBroadcaster, RelayOutcome
from .chain import PublishOutcome, VersionChain
from .chain_store import ChainPointers, ChainStore, normalize_filename
from .errors import (
    BroadcastError,
    ChainStateError,
    ConfigurationError,
    ErrorCategory,
    ErrorContext,
    ErrorSeverity,
    OrbiError,
    RelayError,
    StorageError,
)
from .events import (
    EventKind,
    SignedEvent,
    UnsignedEvent,
    build_confluence,
    build_file_version,
    classify_reference,
    finalize_event,
)
from .settings import DEFAULT_RELAYS, Settings
from .signing import NostrKeySigner, Signer, load_secret_key, parse_secret_key

__all__ = [
    # Chain model
    "ChainPointers",
    "ChainStore",
    "PublishOutcome",
    "VersionChain",
    "normalize_filename",
    # Events
    "EventKind",
    "SignedEvent",
    "UnsignedEvent",
    "build_confluence",
    "build_file_version",
    "classify_reference",
    "finalize_event",
    # Broadcast
    "BroadcastResult",
    "RelayBroadcaster",
    "RelayOutcome",
    # Signing
    "NostrKeySigner",
    "Signer",
    "load_secret_key",
    "parse_secret_key",
    # Settings
    "DEFAULT_RELAYS",
    "Settings",
    # Errors
    "BroadcastError",
    "ChainStateError",
    "ConfigurationError",
    "ErrorCategory",
    "ErrorContext",
    "ErrorSeverity",
    "OrbiError",
    "RelayError",
    "StorageError",
]
