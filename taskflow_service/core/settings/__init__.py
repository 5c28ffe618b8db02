"""Modular Pydantic Settings v2 configuration.

Settings are split by domain (notifications, push, store, scheduler,
logging), each with its own environment prefix, frozen models and
SecretStr for credentials.

Import settings via cached loaders:
    from taskflow_service.core.settings import get_notification_settings

Or use unified settings for convenient access to all domains:
    from taskflow_service.core.settings import get_settings

    settings = get_settings()
    print(settings.push.provider)

Configuration precedence (highest to lowest):
    1. init kwargs (testing/overrides)
    2. Environment variables
    3. .env file
"""

from __future__ import annotations

from .loader import (
    clear_settings_cache,
    get_logging_settings,
    get_notification_settings,
    get_push_settings,
    get_scheduler_settings,
    get_store_settings,
)
from .logs import LoggingSettings
from .notifications import NotificationSettings
from .push import PushSettings
from .scheduler import SchedulerSettings
from .store import StoreSettings
from .unified import Settings, get_settings

__all__ = [
    "LoggingSettings",
    "NotificationSettings",
    "PushSettings",
    "SchedulerSettings",
    "Settings",
    "StoreSettings",
    "clear_settings_cache",
    "get_logging_settings",
    "get_notification_settings",
    "get_push_settings",
    "get_scheduler_settings",
    "get_settings",
    "get_store_settings",
]
