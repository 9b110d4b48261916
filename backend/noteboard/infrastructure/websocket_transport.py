"""WebSocket Transport — Starlette WebSocket adapted to core Transport.

Invariants:
    - is_open is False once either side has closed
    - close() after the peer vanished raises; ConnectionRegistry.evict absorbs it
"""

from fastapi import WebSocket
from starlette.websockets import WebSocketState


class WebSocketTransport:
    """Wraps an accepted WebSocket for the ConnectionRegistry."""

    def __init__(self, websocket: WebSocket):
        self.websocket = websocket

    @property
    def is_open(self) -> bool:
        return (
            self.websocket.application_state == WebSocketState.CONNECTED
            and self.websocket.client_state == WebSocketState.CONNECTED
        )

    async def send_text(self, data: str) -> None:
        await self.websocket.send_text(data)

    async def close(self, code: int = 1000, reason: str = "") -> None:
        await self.websocket.close(code=code, reason=reason)
