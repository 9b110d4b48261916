"""Noteboard API — FastAPI application entry point.

Invariants:
    - Routes registered explicitly (no auto-discovery)
    - Global error handlers map NoteboardError → structured JSON responses
    - CORS configured from settings (not hardcoded)
    - Store, registry, hub and heartbeat created in the lifespan and torn down in
      reverse order; no module-global connection state
    - Startup with an unreachable store raises StorageUnavailableError, so the
      server aborts instead of serving without a store

Design Decisions:
    - Lifespan over @app.on_event: FastAPI recommended pattern, cleaner cleanup
    - create_app factory: tests inject a store and settings; `app` below is the
      default instance for `uvicorn noteboard.main:app`
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from noteboard.api.error_handlers import register_error_handlers
from noteboard.api.middleware import register_middleware
from noteboard.api.routes import health, realtime, sticky_notes
from noteboard.config import Settings, get_settings
from noteboard.core.broadcast_hub import BroadcastHub
from noteboard.core.connection_registry import ConnectionRegistry
from noteboard.core.errors import StorageUnavailableError
from noteboard.core.heartbeat import HeartbeatMonitor
from noteboard.core.rate_limit import FixedWindowRateLimiter
from noteboard.core.repository_protocols import NoteStore
from noteboard.infrastructure.database import DatabaseSessionManager
from noteboard.infrastructure.note_store import InMemoryNoteStore, SqlNoteStore
from noteboard.infrastructure.observability import setup_logging

logger = logging.getLogger(__name__)


async def open_note_store(
    settings: Settings,
) -> tuple[NoteStore, DatabaseSessionManager | None]:
    """Build the configured store. Raises StorageUnavailableError if unreachable."""
    if settings.storage_backend == "memory":
        logger.warning("Using in-memory note store; notes are lost on restart")
        return InMemoryNoteStore(timeout=settings.storage_timeout_seconds), None

    manager = DatabaseSessionManager(
        settings.database_url,
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
    )
    try:
        if settings.database_create_schema:
            await manager.create_schema()
        if not await manager.health_check():
            raise StorageUnavailableError("database unreachable", "connect")
    except StorageUnavailableError:
        await manager.dispose()
        logger.critical("Note store unreachable at startup; refusing to serve")
        raise
    return SqlNoteStore(manager, timeout=settings.storage_timeout_seconds), manager


def create_app(
    settings: Settings | None = None, store: NoteStore | None = None,
) -> FastAPI:
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Startup/shutdown lifecycle."""
        setup_logging(settings.log_level, settings.log_format)
        manager = None
        note_store = store
        if note_store is None:
            note_store, manager = await open_note_store(settings)

        registry = ConnectionRegistry(
            queue_size=settings.connection_queue_size,
            send_timeout=settings.send_timeout_seconds,
        )
        app.state.hub = BroadcastHub(
            note_store,
            registry,
            snapshot_policy=settings.snapshot_policy,
            snapshot_limit=settings.notes_list_limit,
        )
        heartbeat = HeartbeatMonitor(registry, settings.heartbeat_interval_seconds)
        app.state.heartbeat = heartbeat
        heartbeat.start()
        logger.info("Noteboard API started")
        try:
            yield
        finally:
            logger.info("Noteboard API shutting down")
            await heartbeat.stop()
            await registry.close_all()
            if manager is not None:
                await manager.dispose()
                logger.info("Database connection closed")

    app = FastAPI(title="Noteboard API", version="1.0.0", lifespan=lifespan)
    app.state.settings = settings
    app.state.rate_limiter = FixedWindowRateLimiter(
        settings.rate_limit_max, settings.rate_limit_window_seconds,
    )

    register_middleware(app, app.state.rate_limiter, settings.max_body_bytes)
    # CORS outermost so 413/429 rejections still carry CORS headers
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type"],
    )

    app.include_router(health.router)
    app.include_router(sticky_notes.router)
    app.include_router(realtime.router)

    register_error_handlers(app)
    return app


app = create_app()
