"""Database Session Manager — async engine, session scope and health checks.

Invariants:
    - A session that raises is rolled back before it is closed
    - SQLAlchemy errors escaping a session surface as StorageUnavailableError
    - IntegrityError inside the store is handled there (duplicate signature), so
      one reaching this layer means an unexpected constraint failure

Design Decisions:
    - Manager created in the lifespan and handed to SqlNoteStore: no global engine
    - expire_on_commit=False: committed rows are turned into Notes after commit
    - Pool sizing only for server databases; SQLite keeps SQLAlchemy's default pool
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from sqlalchemy import text
from sqlalchemy.exc import (
    DBAPIError, IntegrityError, OperationalError, SQLAlchemyError,
)
from sqlalchemy.ext.asyncio import (
    AsyncSession, async_sessionmaker, create_async_engine,
)

from noteboard.core.errors import StorageUnavailableError
from noteboard.db.base import Base

logger = logging.getLogger(__name__)

# Most specific first: IntegrityError and OperationalError are DBAPIErrors.
_FAILURE_OPERATIONS: tuple[tuple[type[SQLAlchemyError], str, str], ...] = (
    (IntegrityError, "commit", "Unexpected constraint violation"),
    (OperationalError, "execute", "Database unreachable"),
    (DBAPIError, "query", "Database driver error"),
    (SQLAlchemyError, "unknown", "Database operation failed"),
)


def _to_storage_error(exc: SQLAlchemyError) -> StorageUnavailableError:
    for exc_type, operation, message in _FAILURE_OPERATIONS:
        if isinstance(exc, exc_type):
            return StorageUnavailableError(message, operation)
    return StorageUnavailableError("Database operation failed", "unknown")


class DatabaseSessionManager:
    """Owns the async engine for the configured database URL."""

    def __init__(
        self, database_url: str, pool_size: int = 20, max_overflow: int = 10,
    ):
        options: dict = {"pool_pre_ping": True}
        if not database_url.startswith("sqlite"):
            options.update(
                pool_size=pool_size, max_overflow=max_overflow, pool_recycle=3600,
            )
        self.engine = create_async_engine(database_url, **options)
        self._sessions = async_sessionmaker(
            self.engine, class_=AsyncSession, expire_on_commit=False,
        )

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        async with self._sessions() as session:
            try:
                yield session
            except SQLAlchemyError as e:
                await session.rollback()
                logger.error(f"Database error ({type(e).__name__}): {e}")
                raise _to_storage_error(e) from e

    async def create_schema(self) -> None:
        """Create missing tables. Production deployments run Alembic instead."""
        import noteboard.models  # noqa: F401  (populate Base.metadata)
        try:
            async with self.engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
        except SQLAlchemyError as e:
            logger.error(f"Schema creation failed: {e}")
            raise StorageUnavailableError("Schema creation failed", "connect") from e

    async def health_check(self) -> bool:
        """SELECT 1 round trip; False on any failure."""
        try:
            async with self.session() as db:
                await db.execute(text("SELECT 1"))
        except Exception as e:
            logger.error(f"DB health check failed: {e}")
            return False
        return True

    async def dispose(self) -> None:
        await self.engine.dispose()
