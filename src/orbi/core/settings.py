"""
Configuration models for orbi using Pydantic v2 Settings.

Values come from ``ORBI_*`` environment variables (nested groups use
``__``, e.g. ``ORBI_RELAYS__TIMEOUT_SECONDS=5``) and are overridden by CLI
flags at the boundary.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import (  # type: ignore[import-not-found]
    BaseSettings,
    SettingsConfigDict,
)

DEFAULT_RELAYS: tuple[str, ...] = (
    "wss://relay.damus.io",
    "wss://relay.primal.net",
    "wss://nos.lol",
)


class RelaySettings(BaseModel):
    """Relay fan-out settings."""

    urls: list[str] = Field(
        default_factory=lambda: list(DEFAULT_RELAYS),
        description="Relay endpoints; an empty list falls back to the defaults",
    )
    timeout_seconds: float = Field(
        default=10.0,
        gt=0.0,
        description="Per-relay publish timeout",
    )
    deadline_slack_seconds: float = Field(
        default=5.0,
        ge=0.0,
        description="Fixed slack added to the overall broadcast deadline",
    )
    open_timeout_seconds: float = Field(
        default=10.0,
        gt=0.0,
        description="Websocket opening handshake timeout",
    )
    require_ack: bool = Field(
        default=True,
        description=(
            "Count a relay as successful only after an OK acknowledgment; "
            "when False a completed send is enough"
        ),
    )

    @field_validator("urls", mode="before")
    @classmethod
    def _default_when_empty(cls, value: object) -> object:
        if value is None:
            return list(DEFAULT_RELAYS)
        if isinstance(value, str):
            value = [part for part in value.split(",")]
        if isinstance(value, (list, tuple)):
            cleaned = [str(v).strip() for v in value if str(v).strip()]
            return cleaned or list(DEFAULT_RELAYS)
        return value


class StoreSettings(BaseModel):
    """Local chain pointer storage."""

    base_dir: str | None = Field(
        default=None,
        description="Project directory holding the store; current directory when unset",
    )
    dir_name: str = Field(default=".orbi", description="Hidden store directory name")

    @field_validator("dir_name")
    @classmethod
    def _ensure_dir_name(cls, value: str) -> str:
        value = value.strip()
        if not value or "/" in value or value in (".", ".."):
            raise ValueError("dir_name must be a single directory name")
        return value


class KeySettings(BaseModel):
    """Where the author's secret key lives."""

    secret_path: str = Field(
        default="~/.nostr/secret",
        description="Secret key file (NOSTR_SECRET_PATH takes precedence)",
    )


class CoreSettings(BaseModel):
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="WARNING",
        description="Level for internal diagnostics",
    )
    enable_metrics: bool = Field(
        default=False,
        description="Enable Prometheus-compatible metrics",
    )


class Settings(BaseSettings):
    """Top-level configuration model."""

    core: CoreSettings = Field(default_factory=CoreSettings)
    relays: RelaySettings = Field(default_factory=RelaySettings)
    store: StoreSettings = Field(default_factory=StoreSettings)
    keys: KeySettings = Field(default_factory=KeySettings)

    model_config = SettingsConfigDict(
        env_prefix="ORBI_",
        env_nested_delimiter="__",
        extra="ignore",
        case_sensitive=False,
    )

    def deadline_for(self, relay_count: int) -> float:
        """Overall broadcast deadline: every relay's worst case plus slack."""
        return relay_count * self.relays.timeout_seconds + self.relays.deadline_slack_seconds

    def to_dict(self) -> dict[str, object]:
        return dict(self.model_dump(exclude_none=True))
