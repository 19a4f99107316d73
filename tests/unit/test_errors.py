from __future__ import annotations

import pytest

from orbi.core.broadcast import RelayOutcome
from orbi.core.errors import (
    BroadcastError,
    ChainStateError,
    ConfigurationError,
    ErrorCategory,
    ErrorSeverity,
    OrbiError,
    RelayError,
    StorageError,
)


@pytest.mark.parametrize(
    ("error", "category"),
    [
        (ConfigurationError("bad key"), ErrorCategory.CONFIG),
        (ChainStateError("already published", filename="a.md"), ErrorCategory.STATE),
        (StorageError("disk full", path="/x"), ErrorCategory.IO),
        (RelayError("refused", relay="wss://a.test"), ErrorCategory.NETWORK),
        (BroadcastError("none", event_id="ab" * 32), ErrorCategory.NETWORK),
    ],
)
def test_default_categories(error: OrbiError, category: ErrorCategory) -> None:
    assert isinstance(error, OrbiError)
    assert error.context.category is category


def test_metadata_and_attributes() -> None:
    err = ChainStateError("draft.md not yet published", filename="draft.md")
    assert err.filename == "draft.md"
    assert err.context.metadata == {"filename": "draft.md"}
    assert str(err) == "draft.md not yet published"


def test_cause_is_chained_and_serialized() -> None:
    cause = OSError("permission denied")
    err = StorageError("failed to write", path="/x", cause=cause)
    assert err.__cause__ is cause
    data = err.to_dict()
    assert data["error_type"] == "StorageError"
    assert data["cause"] == "OSError: permission denied"
    assert data["context"]["category"] == "io"
    assert data["context"]["timestamp"].endswith("Z")


def test_severity_override() -> None:
    err = RelayError("slow", relay="wss://a.test", severity=ErrorSeverity.MEDIUM)
    assert err.context.severity is ErrorSeverity.MEDIUM


def test_broadcast_error_keeps_outcomes() -> None:
    outcomes = [
        RelayOutcome(relay="wss://a.test", ok=False, error="refused"),
        RelayOutcome(relay="wss://b.test", ok=False, error="timed out"),
    ]
    err = BroadcastError("no relay accepted the event", event_id="cd" * 32, outcomes=outcomes)
    assert err.outcomes == outcomes
    assert err.context.metadata["relay_count"] == 2
    assert err.context.severity is ErrorSeverity.CRITICAL


def test_error_ids_are_unique() -> None:
    assert OrbiError("a").context.error_id != OrbiError("a").context.error_id
