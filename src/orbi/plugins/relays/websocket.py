"""
Websocket relay client.

Speaks the relay message framing: the client sends ``["EVENT", <event>]``
and, when acknowledgments are required, waits for ``["OK", <id>, <bool>,
<message>]``. ``NOTICE`` frames and frames about other events are logged
and skipped.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any

import websockets

from ...core import diagnostics
from ...core.errors import RelayError
from ...core.events import SignedEvent

__all__ = ["RelayConnection", "WebsocketRelayClient"]


@dataclass
class RelayConnection:
    url: str
    socket: Any


class WebsocketRelayClient:
    """Relay client over ``websockets`` with optional OK acknowledgment."""

    name = "websocket"

    def __init__(
        self,
        *,
        require_ack: bool = True,
        open_timeout: float = 10.0,
        connect: Any = None,
    ) -> None:
        self._require_ack = require_ack
        self._open_timeout = open_timeout
        self._connect = connect or websockets.connect

    @property
    def require_ack(self) -> bool:
        return self._require_ack

    async def connect(self, url: str) -> RelayConnection:
        try:
            socket = await self._connect(url, open_timeout=self._open_timeout)
        except Exception as exc:
            raise RelayError(f"connect failed: {exc}", relay=url, cause=exc) from exc
        return RelayConnection(url=url, socket=socket)

    async def publish(self, handle: RelayConnection, event: SignedEvent) -> None:
        frame = json.dumps(["EVENT", event.to_wire()], ensure_ascii=False)
        try:
            await handle.socket.send(frame)
        except Exception as exc:
            raise RelayError(
                f"send failed: {exc}", relay=handle.url, cause=exc
            ) from exc
        if self._require_ack:
            await self._await_ok(handle, event.id)

    async def _await_ok(self, handle: RelayConnection, event_id: str) -> None:
        while True:
            try:
                raw = await handle.socket.recv()
            except Exception as exc:
                raise RelayError(
                    f"connection lost before acknowledgment: {exc}",
                    relay=handle.url,
                    cause=exc,
                ) from exc
            try:
                frame = json.loads(raw)
            except (TypeError, ValueError):
                diagnostics.debug("relay", "ignoring non-JSON frame", relay=handle.url)
                continue
            if not isinstance(frame, list) or not frame:
                continue
            if frame[0] == "NOTICE":
                diagnostics.info(
                    "relay", "relay notice", relay=handle.url, notice=frame[1:]
                )
                continue
            if frame[0] != "OK" or len(frame) < 3 or frame[1] != event_id:
                continue
            if frame[2] is True:
                return
            reason = frame[3] if len(frame) > 3 else ""
            raise RelayError(f"relay rejected event: {reason}", relay=handle.url)

    async def close(self, handle: RelayConnection) -> None:
        try:
            await handle.socket.close()
        except Exception as exc:
            diagnostics.debug(
                "relay", "close failed", relay=handle.url, error=type(exc).__name__
            )
