"""Database Infrastructure — SQLAlchemy declarative Base.

Invariants:
    - The engine is owned by DatabaseSessionManager, created in the app lifespan
    - All sessions are async (AsyncSession)

Design Decisions:
    - asyncpg driver for PostgreSQL, aiosqlite for local development and tests
"""
