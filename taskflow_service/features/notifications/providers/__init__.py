"""Multicast push providers.

Usage:
    from taskflow_service.features.notifications.providers import build_push_provider

    provider = build_push_provider(get_push_settings())
    response = await provider.send_multicast(tokens, payload)
    print(response.success_count, response.failure_count)
"""

from taskflow_service.features.notifications.providers.base import (
    PRUNABLE_ERRORS,
    MulticastResponse,
    PushErrorCode,
    PushProvider,
    TokenResult,
)
from taskflow_service.features.notifications.providers.disabled import DisabledPushProvider
from taskflow_service.features.notifications.providers.factory import build_push_provider
from taskflow_service.features.notifications.providers.fcm import FcmPushProvider

__all__ = [
    "PRUNABLE_ERRORS",
    "DisabledPushProvider",
    "FcmPushProvider",
    "MulticastResponse",
    "PushErrorCode",
    "PushProvider",
    "TokenResult",
    "build_push_provider",
]
