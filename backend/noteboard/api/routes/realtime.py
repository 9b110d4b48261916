"""Realtime Channel — WebSocket endpoint feeding the broadcast hub.

Invariants:
    - Handshakes from origins outside cors_origins are refused before accept (1008);
      a missing Origin header is allowed
    - Every accepted socket is registered through hub.join and always released via hub.leave
    - Inbound frames: {"type": "pong"} marks alive; {"type": "ping"} marks alive and
      is answered with pong; anything else gets an error frame
    - Frames over ws_max_payload_bytes close the socket (1009)
    - An unexpected error closes this connection (1011), never the process

Design Decisions:
    - Replies go through registry.send, so they share the outbound queue with
      broadcasts and never interleave writes on the socket
"""

import json
import logging

from fastapi import APIRouter, WebSocket
from starlette.websockets import WebSocketDisconnect

from noteboard.core.broadcast_hub import BroadcastHub
from noteboard.core.connection_registry import (
    CLOSE_INTERNAL_ERROR, CLOSE_POLICY_VIOLATION, ConnectionRegistry,
)
from noteboard.core.domain_types import ConnectionId, FrameType
from noteboard.core.errors import (
    ErrorCategory, ErrorSeverity, NoteboardError, StorageUnavailableError,
)
from noteboard.infrastructure.websocket_transport import WebSocketTransport

logger = logging.getLogger(__name__)
router = APIRouter(tags=["realtime"])

CLOSE_MESSAGE_TOO_BIG = 1009


def _bad_frame(message: str) -> dict:
    return NoteboardError(
        message, "BAD_REQUEST", ErrorCategory.VALIDATION,
        ErrorSeverity.WARNING, http_status=400,
    ).to_ws_event()


@router.websocket("/ws")
async def realtime_channel(websocket: WebSocket):
    """Join the broadcast feed."""
    settings = websocket.app.state.settings
    hub: BroadcastHub = websocket.app.state.hub

    origin = websocket.headers.get("origin")
    if origin and origin not in settings.cors_origins:
        logger.warning("Blocked websocket origin", extra={"reason": origin})
        await websocket.close(code=CLOSE_POLICY_VIOLATION)
        return

    await websocket.accept()
    try:
        handle = await hub.join(WebSocketTransport(websocket))
    except StorageUnavailableError:
        # hub already evicted and closed the socket
        return

    try:
        await _receive_loop(
            websocket, hub.registry, handle, settings.ws_max_payload_bytes,
        )
    except WebSocketDisconnect:
        pass
    except Exception as e:
        logger.error(
            f"Realtime session failed: {e}",
            exc_info=True, extra={"connection_id": str(handle)},
        )
        await hub.registry.evict(
            handle, reason="internal error", code=CLOSE_INTERNAL_ERROR,
        )
    finally:
        await hub.leave(handle)


async def _receive_loop(
    websocket: WebSocket,
    registry: ConnectionRegistry,
    handle: ConnectionId,
    max_payload: int,
) -> None:
    while True:
        message = await websocket.receive()
        if message["type"] == "websocket.disconnect":
            return

        raw = message.get("text")
        if raw is None:
            raw_bytes = message.get("bytes") or b""
            size = len(raw_bytes)
        else:
            size = len(raw.encode("utf-8"))
        if size > max_payload:
            await registry.evict(
                handle, reason="frame too large", code=CLOSE_MESSAGE_TOO_BIG,
            )
            return
        if raw is None:
            await registry.send(handle, _bad_frame("binary frames are not supported"))
            continue

        try:
            frame = json.loads(raw)
        except json.JSONDecodeError:
            await registry.send(handle, _bad_frame("invalid json"))
            continue

        frame_type = frame.get("type") if isinstance(frame, dict) else None
        if frame_type == FrameType.PONG.value:
            registry.mark_alive(handle)
        elif frame_type == FrameType.PING.value:
            registry.mark_alive(handle)
            await registry.send(handle, {"type": FrameType.PONG.value})
        else:
            await registry.send(handle, _bad_frame(f"unknown type: {frame_type}"))
