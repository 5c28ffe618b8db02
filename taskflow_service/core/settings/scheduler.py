"""Periodic job scheduling settings.

Cadences mirror the production deployment: due notifications every five
minutes, overdue marking hourly, cleanup and stats recomputation nightly.
"""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class SchedulerSettings(BaseSettings):
    """Configuration for the APScheduler job runner."""

    process_due_interval_minutes: int = Field(
        default=5,
        ge=1,
        le=60,
        description="Interval between process_due runs (minutes)",
    )
    mark_overdue_interval_hours: int = Field(
        default=1,
        ge=1,
        le=24,
        description="Interval between mark_overdue runs (hours)",
    )
    cleanup_hour: int = Field(default=2, ge=0, le=23, description="UTC hour for cleanup_sent")
    cleanup_minute: int = Field(default=0, ge=0, le=59, description="Minute for cleanup_sent")
    stats_hour: int = Field(
        default=3, ge=0, le=23, description="UTC hour for recompute_user_stats"
    )
    stats_minute: int = Field(
        default=0, ge=0, le=59, description="Minute for recompute_user_stats"
    )
    misfire_grace_seconds: int = Field(
        default=60,
        ge=1,
        le=3600,
        description="Delay tolerated before a scheduled run counts as missed",
    )

    # Lease guarding against concurrent runs from several processes
    lease_enabled: bool = Field(
        default=True,
        description="Acquire a lease document before running a job",
    )
    lease_ttl_seconds: int = Field(
        default=600,
        ge=10,
        le=86400,
        description="Lease lifetime; an expired lease can be taken over",
    )

    metrics_port: int | None = Field(
        default=None,
        ge=1,
        le=65535,
        description="Expose Prometheus metrics on this port while the scheduler runs",
    )

    model_config = SettingsConfigDict(
        env_prefix="SCHEDULER_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        frozen=True,
        extra="ignore",
    )


__all__ = ["SchedulerSettings"]
