"""Alembic environment — async migrations for the sticky_notes schema.

Design Decisions:
    - URL resolved through noteboard.config.Settings, so NOTEBOARD_DATABASE_URL and
      the postgresql:// → postgresql+asyncpg:// rewrite behave exactly like the app
    - alembic.ini's sqlalchemy.url only used when the environment sets nothing
    - NullPool: a migration run is one short-lived connection
"""

import asyncio
import os
from logging.config import fileConfig

from sqlalchemy import pool
from sqlalchemy.ext.asyncio import async_engine_from_config

from alembic import context

from noteboard.config import Settings
from noteboard.db.base import Base
import noteboard.models  # noqa: F401  (registers sticky_notes on Base.metadata)

config = context.config
if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata


def _resolve_url() -> str:
    if os.environ.get("NOTEBOARD_DATABASE_URL"):
        return Settings().database_url
    return config.get_main_option("sqlalchemy.url")


def _configure_and_run(**options) -> None:
    context.configure(target_metadata=target_metadata, **options)
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_offline() -> None:
    """Emit SQL to stdout instead of executing it."""
    _configure_and_run(
        url=_resolve_url(),
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )


async def run_migrations_online() -> None:
    section = config.get_section(config.config_ini_section, {})
    section["sqlalchemy.url"] = _resolve_url()
    engine = async_engine_from_config(
        section, prefix="sqlalchemy.", poolclass=pool.NullPool,
    )
    try:
        async with engine.connect() as connection:
            await connection.run_sync(
                lambda sync_conn: _configure_and_run(connection=sync_conn),
            )
    finally:
        await engine.dispose()


if context.is_offline_mode():
    run_migrations_offline()
else:
    asyncio.run(run_migrations_online())
