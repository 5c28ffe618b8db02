"""LRU-cached settings loaders.

Settings are loaded and validated once, then cached for the lifetime of the process.

Usage:
    from taskflow_service.core.settings.loader import get_notification_settings

    settings = get_notification_settings()  # First call: loads and validates
    settings = get_notification_settings()  # Subsequent calls: cached instance

Testing:
    In tests, clear the cache to force reload:
    get_notification_settings.cache_clear()

    Or construct settings directly:
    settings = NotificationSettings(max_retries=5)
"""

from __future__ import annotations

from functools import lru_cache

from .logs import LoggingSettings
from .notifications import NotificationSettings
from .push import PushSettings
from .scheduler import SchedulerSettings
from .store import StoreSettings


@lru_cache(maxsize=1)
def get_logging_settings() -> LoggingSettings:
    """Get cached logging settings.

    Returns:
        Validated and frozen LoggingSettings instance.
    """
    return LoggingSettings()


@lru_cache(maxsize=1)
def get_notification_settings() -> NotificationSettings:
    """Get cached notification settings.

    Returns:
        Validated and frozen NotificationSettings instance.
    """
    return NotificationSettings()


@lru_cache(maxsize=1)
def get_push_settings() -> PushSettings:
    """Get cached push provider settings.

    Returns:
        Validated and frozen PushSettings instance.
    """
    return PushSettings()


@lru_cache(maxsize=1)
def get_scheduler_settings() -> SchedulerSettings:
    """Get cached scheduler settings.

    Returns:
        Validated and frozen SchedulerSettings instance.
    """
    return SchedulerSettings()


@lru_cache(maxsize=1)
def get_store_settings() -> StoreSettings:
    """Get cached document store settings.

    Returns:
        Validated and frozen StoreSettings instance.
    """
    return StoreSettings()


def clear_settings_cache() -> None:
    """Clear every cached settings instance (used by tests and the CLI)."""
    get_logging_settings.cache_clear()
    get_notification_settings.cache_clear()
    get_push_settings.cache_clear()
    get_scheduler_settings.cache_clear()
    get_store_settings.cache_clear()
