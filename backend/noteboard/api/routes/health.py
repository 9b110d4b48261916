"""Health & Readiness Probes — liveness and readiness endpoints for container orchestration.

Invariants:
    - GET /api/health/ always returns 200 if process is up (liveness)
    - GET /api/health/ready returns 503 if the note store is unreachable (readiness)

Design Decisions:
    - Separate liveness/readiness: liveness restarts, readiness removes from load balancer
"""

import logging

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from noteboard.api.dependencies import get_app_settings, get_hub
from noteboard.config import Settings
from noteboard.core.broadcast_hub import BroadcastHub

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/health", tags=["health"])


@router.get("/", status_code=status.HTTP_200_OK)
async def health_check():
    """Basic liveness probe. Returns 200 if the process is up."""
    return {
        "status": "healthy",
        "service": "noteboard-api",
        "version": "1.0.0",
    }


@router.get("/ready")
async def readiness_check(
    hub: BroadcastHub = Depends(get_hub),
    settings: Settings = Depends(get_app_settings),
):
    """Readiness probe — includes note store connectivity."""
    store_ok = await hub.store.health_check()
    if not store_ok:
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={
                "status": "not_ready",
                "reason": "storage_unavailable",
            },
        )
    return {
        "status": "ready",
        "checks": {"storage": "healthy"},
        "connections": len(hub.registry),
        "snapshot_policy": settings.snapshot_policy.value,
    }
