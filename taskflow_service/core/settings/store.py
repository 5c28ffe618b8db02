"""Document store configuration settings."""

from __future__ import annotations

from typing import Literal

from pydantic import Field, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict

StoreBackend = Literal["memory", "sql"]


class StoreSettings(BaseSettings):
    """Configuration for the document store backend.

    Environment variables use STORE_ prefix.
    Example: STORE_BACKEND=sql, STORE_DATABASE_URL=postgresql+asyncpg://...
    """

    backend: StoreBackend = Field(
        default="sql",
        description="Document store backend (memory|sql)",
    )
    database_url: str = Field(
        default="sqlite+aiosqlite:///./taskflow.db",
        description="SQLAlchemy async URL for the sql backend",
    )
    echo: bool = Field(
        default=False,
        description="Log every SQL statement",
    )
    pool_size: int = Field(
        default=5,
        ge=1,
        le=100,
        description="Connection pool size (ignored by SQLite)",
    )
    max_overflow: int = Field(
        default=10,
        ge=0,
        le=100,
        description="Connections allowed above pool_size (ignored by SQLite)",
    )
    pool_pre_ping: bool = Field(
        default=True,
        description="Check connections before handing them out",
    )

    @computed_field
    @property
    def is_sqlite(self) -> bool:
        """Whether the configured URL targets SQLite."""
        return self.database_url.startswith("sqlite")

    model_config = SettingsConfigDict(
        env_prefix="STORE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        frozen=True,
        extra="ignore",
    )


__all__ = ["StoreBackend", "StoreSettings"]
