"""Notification scheduling and retry settings.

Controls the reminder lead times, the retry/dead-letter policy and the
candidate limits used by the periodic jobs.
"""

from __future__ import annotations

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class NotificationSettings(BaseSettings):
    """Configuration for reminder planning and delivery jobs."""

    # Planning
    default_offsets_minutes: list[int] = Field(
        default_factory=lambda: [1440, 60, 15],
        description="Lead times (minutes before due time) used when none are given",
    )

    # Retry policy
    max_retries: int = Field(
        default=3,
        ge=1,
        le=10,
        description="Failed attempts after which a notification is dead-lettered",
    )
    retry_delay_minutes: int = Field(
        default=5,
        ge=1,
        le=1440,
        description="Fixed delay before a failed notification becomes due again",
    )

    # Job candidate limits
    process_batch_limit: int = Field(
        default=100,
        ge=1,
        le=500,
        description="Maximum due notifications handled per process_due run",
    )
    cleanup_batch_limit: int = Field(
        default=1000,
        ge=1,
        le=10000,
        description="Maximum sent notifications deleted per cleanup_sent run",
    )
    retention_days: int = Field(
        default=30,
        ge=1,
        le=365,
        description="Days a sent notification is kept before cleanup",
    )

    # Timeouts
    endpoint_lookup_timeout_seconds: float = Field(
        default=10.0,
        gt=0,
        le=120.0,
        description="Timeout for resolving one user's device endpoints",
    )
    send_timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        le=300.0,
        description="Timeout for one multicast send to the push provider",
    )

    # Delivery fan-out
    delivery_concurrency: int = Field(
        default=10,
        ge=1,
        le=100,
        description="Due notifications delivered at the same time by process_due",
    )
    process_deadline_seconds: float = Field(
        default=300.0,
        gt=0,
        le=3600.0,
        description=(
            "Wall-clock bound on the delivery phase of process_due; must stay below "
            "the scheduler lease TTL"
        ),
    )

    @field_validator("default_offsets_minutes")
    @classmethod
    def _positive_offsets(cls, v: list[int]) -> list[int]:
        if any(offset <= 0 for offset in v):
            raise ValueError("Reminder offsets must be positive minutes")
        return v

    model_config = SettingsConfigDict(
        env_prefix="NOTIFY_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        frozen=True,
        extra="ignore",
    )


__all__ = ["NotificationSettings"]
