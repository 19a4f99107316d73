"""
Concurrent relay broadcast.

One task per relay endpoint is launched for a signed event and all of them
are joined before the call returns; there is no early exit on the first
success. Each attempt produces its own ``RelayOutcome`` so aggregation is a
plain fold over finished tasks with no shared mutable state.

Timeouts:

- connect is bounded only by the shared deadline
- publish is bounded by the per-relay timeout
- the shared deadline is ``relay_count * relay_timeout + slack`` so one hung
  relay cannot starve the others; when it passes, every still-pending
  attempt is cancelled at once

Connections are always closed, including after a failed publish.
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Iterable

from . import diagnostics
from .errors import BroadcastError, ConfigurationError
from .events import SignedEvent

if TYPE_CHECKING:
    from ..metrics.metrics import MetricsCollector
    from ..plugins.relays import RelayClient

DEADLINE_EXCEEDED = "deadline exceeded"


@dataclass(frozen=True)
class RelayOutcome:
    relay: str
    ok: bool
    error: str | None = None
    duration_seconds: float = 0.0


@dataclass(frozen=True)
class BroadcastResult:
    event_id: str
    accepted: list[str] = field(default_factory=list)
    outcomes: list[RelayOutcome] = field(default_factory=list)

    @property
    def failed(self) -> list[RelayOutcome]:
        return [o for o in self.outcomes if not o.ok]


class RelayBroadcaster:
    """Fan a signed event out to relays and judge the aggregate outcome."""

    def __init__(
        self,
        client: RelayClient,
        *,
        relay_timeout: float = 10.0,
        deadline_slack: float = 5.0,
        metrics: MetricsCollector | None = None,
    ) -> None:
        if relay_timeout <= 0:
            raise ValueError("relay_timeout must be > 0")
        if deadline_slack < 0:
            raise ValueError("deadline_slack must be >= 0")
        self._client = client
        self._relay_timeout = relay_timeout
        self._deadline_slack = deadline_slack
        self._metrics = metrics

    @property
    def relay_timeout(self) -> float:
        return self._relay_timeout

    def deadline_for(self, relay_count: int) -> float:
        return relay_count * self._relay_timeout + self._deadline_slack

    async def publish(
        self, event: SignedEvent, relays: Iterable[str]
    ) -> BroadcastResult:
        """Deliver ``event`` to every relay in ``relays``.

        Returns the relays that accepted it, in relay-list order. Raises
        ``BroadcastError`` when none did.
        """
        urls = list(relays)
        if not urls:
            raise ConfigurationError("no relays configured")
        if not event.id or not event.sig:
            raise ValueError("refusing to broadcast an unsigned event")

        tasks = [
            asyncio.create_task(self._attempt(url, event), name=f"orbi-relay-{i}")
            for i, url in enumerate(urls)
        ]
        try:
            await asyncio.wait(tasks, timeout=self.deadline_for(len(urls)))
        finally:
            stragglers = [t for t in tasks if not t.done()]
            for t in stragglers:
                t.cancel()
            if stragglers:
                await asyncio.gather(*stragglers, return_exceptions=True)

        outcomes = [self._collect(url, task) for url, task in zip(urls, tasks)]
        accepted = [o.relay for o in outcomes if o.ok]
        if self._metrics is not None:
            await self._metrics.record_broadcast(succeeded=bool(accepted))
        if not accepted:
            raise BroadcastError(
                "no relay accepted the event",
                event_id=event.id,
                outcomes=outcomes,
            )
        diagnostics.info(
            "broadcast",
            "event accepted",
            event_id=event.id,
            accepted=len(accepted),
            relays=len(urls),
        )
        return BroadcastResult(event_id=event.id, accepted=accepted, outcomes=outcomes)

    def _collect(self, url: str, task: asyncio.Task[RelayOutcome]) -> RelayOutcome:
        if task.done() and not task.cancelled():
            return task.result()
        diagnostics.warn("broadcast", "relay attempt cancelled", relay=url)
        return RelayOutcome(relay=url, ok=False, error=DEADLINE_EXCEEDED)

    async def _attempt(self, url: str, event: SignedEvent) -> RelayOutcome:
        started = time.perf_counter()
        handle: Any = None
        error: str | None = None
        try:
            handle = await self._client.connect(url)
            await asyncio.wait_for(
                self._client.publish(handle, event), timeout=self._relay_timeout
            )
        except asyncio.TimeoutError:
            error = f"publish timed out after {self._relay_timeout}s"
        except Exception as exc:
            error = str(exc) or type(exc).__name__
        finally:
            if handle is not None:
                await self._close(url, handle)

        elapsed = time.perf_counter() - started
        if error is None:
            diagnostics.debug("broadcast", "published", relay=url)
        else:
            diagnostics.warn("broadcast", "relay failed", relay=url, error=error)
        if self._metrics is not None:
            await self._metrics.record_relay_attempt(
                accepted=error is None, duration_seconds=elapsed
            )
        return RelayOutcome(
            relay=url, ok=error is None, error=error, duration_seconds=elapsed
        )

    async def _close(self, url: str, handle: Any) -> None:
        try:
            await asyncio.wait_for(
                self._client.close(handle), timeout=self._relay_timeout
            )
        except Exception as exc:
            diagnostics.debug(
                "broadcast", "close failed", relay=url, error=type(exc).__name__
            )
