"""
Error hierarchy for orbi.

Every failure surfaced to the driver is an ``OrbiError`` carrying an
``ErrorContext`` (category, severity, id, timestamp and free-form fields)
so the CLI can report it and tests can assert on it without string matching.

Categories map onto how the driver reacts:

- CONFIG: key material or settings unusable; nothing touched the network
- STATE: chain precondition violated (publish twice, commit before publish)
- IO: local pointer storage unreadable or unwritable
- NETWORK: a relay failed, or every relay failed
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Sequence


class ErrorCategory(str, Enum):
    CONFIG = "config"
    STATE = "state"
    IO = "io"
    NETWORK = "network"
    SYSTEM = "system"


class ErrorSeverity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


@dataclass
class ErrorContext:
    """Structured context attached to every ``OrbiError``."""

    category: ErrorCategory = ErrorCategory.SYSTEM
    severity: ErrorSeverity = ErrorSeverity.MEDIUM
    error_id: str = field(default_factory=lambda: uuid.uuid4().hex)
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "category": self.category.value,
            "severity": self.severity.value,
            "error_id": self.error_id,
            "timestamp": self.timestamp.isoformat().replace("+00:00", "Z"),
            "metadata": dict(self.metadata),
        }


class OrbiError(Exception):
    """Base class for all orbi errors."""

    default_category: ErrorCategory = ErrorCategory.SYSTEM
    default_severity: ErrorSeverity = ErrorSeverity.MEDIUM

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        severity: ErrorSeverity | None = None,
        cause: BaseException | None = None,
        **metadata: Any,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.context = ErrorContext(
            category=category or self.default_category,
            severity=severity or self.default_severity,
            metadata=metadata,
        )
        if cause is not None:
            self.__cause__ = cause

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "error_type": type(self).__name__,
            "message": self.message,
            "context": self.context.to_dict(),
        }
        if self.__cause__ is not None:
            data["cause"] = f"{type(self.__cause__).__name__}: {self.__cause__}"
        return data


class ConfigurationError(OrbiError):
    """Key material or settings are missing or malformed."""

    default_category = ErrorCategory.CONFIG
    default_severity = ErrorSeverity.HIGH


class ChainStateError(OrbiError):
    """A chain precondition does not hold for the requested command."""

    default_category = ErrorCategory.STATE
    default_severity = ErrorSeverity.HIGH

    def __init__(self, message: str, *, filename: str | None = None, **kw: Any) -> None:
        super().__init__(message, filename=filename, **kw)
        self.filename = filename


class StorageError(OrbiError):
    """Local pointer storage could not be read or written."""

    default_category = ErrorCategory.IO
    default_severity = ErrorSeverity.HIGH

    def __init__(self, message: str, *, path: str | None = None, **kw: Any) -> None:
        super().__init__(message, path=path, **kw)
        self.path = path


class RelayError(OrbiError):
    """A single relay refused or failed to take an event."""

    default_category = ErrorCategory.NETWORK
    default_severity = ErrorSeverity.LOW

    def __init__(self, message: str, *, relay: str, **kw: Any) -> None:
        super().__init__(message, relay=relay, **kw)
        self.relay = relay


class BroadcastError(OrbiError):
    """No relay accepted the event."""

    default_category = ErrorCategory.NETWORK
    default_severity = ErrorSeverity.CRITICAL

    def __init__(
        self,
        message: str,
        *,
        event_id: str,
        outcomes: Sequence[Any] = (),
        **kw: Any,
    ) -> None:
        super().__init__(message, event_id=event_id, relay_count=len(outcomes), **kw)
        self.event_id = event_id
        self.outcomes = list(outcomes)


__all__ = [
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
