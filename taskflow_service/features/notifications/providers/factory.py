"""Push provider construction from settings."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import httpx

from taskflow_service.core.exceptions import ConfigurationException
from taskflow_service.features.notifications.providers.disabled import DisabledPushProvider
from taskflow_service.features.notifications.providers.fcm import FcmPushProvider

if TYPE_CHECKING:
    from taskflow_service.core.settings import PushSettings
    from taskflow_service.features.notifications.providers.base import PushProvider

logger = logging.getLogger(__name__)


def build_push_provider(
    settings: PushSettings,
    client: httpx.AsyncClient | None = None,
) -> PushProvider:
    """Create the push provider selected by `settings.provider`.

    Raises:
        ConfigurationException: If FCM is selected without a project id or token.
    """
    if settings.provider == "disabled":
        logger.info("Push provider disabled", extra={"operation": "push.build"})
        return DisabledPushProvider()

    if not settings.is_configured:
        raise ConfigurationException(
            "FCM push requires PUSH_FCM_PROJECT_ID and PUSH_FCM_ACCESS_TOKEN",
            extra={"provider": settings.provider},
        )

    logger.info(
        "Push provider configured",
        extra={
            "provider": settings.provider,
            "project_id": settings.fcm_project_id,
            "operation": "push.build",
        },
    )
    return FcmPushProvider(settings, client=client)
