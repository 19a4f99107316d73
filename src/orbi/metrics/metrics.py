"""
Broadcast metrics for orbi.

Minimal Prometheus-compatible counters and a latency histogram for relay
publish attempts. In-memory counters are always tracked so tests can assert
on them with metrics disabled; the Prometheus collectors live in an isolated
registry and are only created when enabled.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any

from prometheus_client import CollectorRegistry, Counter, Histogram


@dataclass
class BroadcastMetrics:
    """Captured counters for quick assertions in tests."""

    relays_accepted: int = 0
    relays_failed: int = 0
    broadcasts_succeeded: int = 0
    broadcasts_failed: int = 0


class MetricsCollector:
    """Process-local async metrics collector; no-op exporters when disabled."""

    def __init__(self, *, enabled: bool = False) -> None:
        self._enabled = bool(enabled)
        self._lock = asyncio.Lock()
        self._state = BroadcastMetrics()

        self._c_relay: Any | None = None
        self._c_broadcast: Any | None = None
        self._h_publish_latency: Any | None = None
        self._registry: CollectorRegistry | None = None

        if self._enabled:
            self._registry = CollectorRegistry()
            self._c_relay = Counter(
                "orbi_relay_publish_total",
                "Relay publish attempts by outcome",
                ["outcome"],
                registry=self._registry,
            )
            self._c_broadcast = Counter(
                "orbi_broadcasts_total",
                "Broadcasts by aggregate result",
                ["result"],
                registry=self._registry,
            )
            self._h_publish_latency = Histogram(
                "orbi_relay_publish_seconds",
                "Latency of a single relay publish attempt, connect to close",
                buckets=(0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0),
                registry=self._registry,
            )

    @property
    def is_enabled(self) -> bool:
        return self._enabled

    @property
    def registry(self) -> CollectorRegistry | None:
        return self._registry

    async def record_relay_attempt(
        self, *, accepted: bool, duration_seconds: float | None = None
    ) -> None:
        async with self._lock:
            if accepted:
                self._state.relays_accepted += 1
            else:
                self._state.relays_failed += 1
        if not self._enabled:
            return
        if self._c_relay is not None:
            self._c_relay.labels(outcome="accepted" if accepted else "failed").inc()
        if duration_seconds is not None and self._h_publish_latency is not None:
            self._h_publish_latency.observe(duration_seconds)

    async def record_broadcast(self, *, succeeded: bool) -> None:
        async with self._lock:
            if succeeded:
                self._state.broadcasts_succeeded += 1
            else:
                self._state.broadcasts_failed += 1
        if self._enabled and self._c_broadcast is not None:
            self._c_broadcast.labels(result="ok" if succeeded else "failed").inc()

    async def snapshot(self) -> BroadcastMetrics:
        async with self._lock:
            return BroadcastMetrics(
                relays_accepted=self._state.relays_accepted,
                relays_failed=self._state.relays_failed,
                broadcasts_succeeded=self._state.broadcasts_succeeded,
                broadcasts_failed=self._state.broadcasts_failed,
            )
