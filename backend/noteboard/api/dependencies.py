"""API Dependencies — resolve lifespan-owned services from app.state.

Invariants:
    - Hub and settings live on app.state, created once per app instance
    - Missing hub means the lifespan never ran: fail loudly, not with a stale global
"""

from fastapi import Request

from noteboard.config import Settings
from noteboard.core.broadcast_hub import BroadcastHub


def get_hub(request: Request) -> BroadcastHub:
    """FastAPI dependency for the broadcast hub."""
    hub = getattr(request.app.state, "hub", None)
    if hub is None:
        raise RuntimeError("Broadcast hub not initialized")
    return hub


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings
