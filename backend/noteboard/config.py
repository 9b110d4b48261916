"""Application Configuration — environment-driven settings via pydantic-settings.

Invariants:
    - Every setting overridable by NOTEBOARD_<NAME> environment variables or .env
    - get_settings() is cached (lru_cache): single instance per process

Design Decisions:
    - pydantic-settings over raw os.environ: validation, type coercion, .env file support
    - Defaults work out-of-the-box with a local SQLite file
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from noteboard.core.domain_types import NOTES_LIST_LIMIT, SnapshotPolicy


class Settings(BaseSettings):
    """Application settings from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env", env_prefix="NOTEBOARD_", case_sensitive=False,
    )

    # Storage
    storage_backend: Literal["database", "memory"] = "database"
    database_url: str = "sqlite+aiosqlite:///./noteboard.db"

    @field_validator("database_url", mode="before")
    @classmethod
    def convert_postgres_url(cls, v: str) -> str:
        """Hosting providers hand out postgresql:// but asyncpg needs postgresql+asyncpg://."""
        if isinstance(v, str) and v.startswith("postgresql://"):
            return v.replace("postgresql://", "postgresql+asyncpg://", 1)
        return v

    database_pool_size: int = 20
    database_max_overflow: int = 10
    database_create_schema: bool = True
    storage_timeout_seconds: float = Field(5.0, gt=0)

    # Notes
    notes_list_limit: int = Field(NOTES_LIST_LIMIT, ge=1, le=NOTES_LIST_LIMIT)

    # Realtime
    heartbeat_interval_seconds: float = Field(30.0, gt=0)
    snapshot_policy: SnapshotPolicy = SnapshotPolicy.PUSH
    connection_queue_size: int = Field(64, ge=1)
    send_timeout_seconds: float = Field(10.0, gt=0)
    ws_max_payload_bytes: int = 16 * 1024

    # API
    cors_origins: list[str] = ["http://localhost:3000"]
    max_body_bytes: int = 16 * 1024
    rate_limit_window_seconds: float = 15 * 60
    rate_limit_max: int = 100

    # Observability
    log_level: str = "INFO"
    log_format: str = "json"


@lru_cache
def get_settings() -> Settings:
    return Settings()
