from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

from ...core.events import SignedEvent


@runtime_checkable
class RelayClient(Protocol):
    """Relay transport interface.

    ``connect`` returns an opaque handle for one fresh connection;
    ``publish`` must raise on refusal or transport failure; ``close`` must be
    safe to call after a failed publish.
    """

    async def connect(self, url: str) -> Any: ...

    async def publish(self, handle: Any, event: SignedEvent) -> None: ...

    async def close(self, handle: Any) -> None: ...


from .websocket import WebsocketRelayClient  # noqa: E402

__all__ = [
    "RelayClient",
    "WebsocketRelayClient",
]
