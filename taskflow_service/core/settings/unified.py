"""Unified settings composition for convenient access.

Usage:
    from taskflow_service.core.settings import get_settings

    settings = get_settings()
    print(settings.notifications.max_retries)
    print(settings.scheduler.process_due_interval_minutes)

Each nested settings class still loads from its own environment prefix
(NOTIFY_, PUSH_, STORE_, SCHEDULER_, LOG_).
"""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .logs import LoggingSettings
from .notifications import NotificationSettings
from .push import PushSettings
from .scheduler import SchedulerSettings
from .store import StoreSettings


class Settings(BaseSettings):
    """Unified settings composing all domain settings.

    Example:
        settings = Settings()
        assert settings.notifications.retention_days == 30
    """

    model_config = SettingsConfigDict(
        frozen=True,
        extra="ignore",
    )

    notifications: NotificationSettings = Field(default_factory=NotificationSettings)
    push: PushSettings = Field(default_factory=PushSettings)
    store: StoreSettings = Field(default_factory=StoreSettings)
    scheduler: SchedulerSettings = Field(default_factory=SchedulerSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    @model_validator(mode="after")
    def _deadline_within_lease(self) -> Settings:
        # the lease must outlive delivery
        if (
            self.scheduler.lease_enabled
            and self.notifications.process_deadline_seconds >= self.scheduler.lease_ttl_seconds
        ):
            raise ValueError(
                "NOTIFY_PROCESS_DEADLINE_SECONDS must be below SCHEDULER_LEASE_TTL_SECONDS "
                f"({self.notifications.process_deadline_seconds} >= "
                f"{self.scheduler.lease_ttl_seconds})"
            )
        return self


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get unified settings instance (cached).

    Returns:
        Settings: Unified settings with all domain configurations.
    """
    return Settings()
