"""Push provider configuration settings.

Provides settings for the Firebase Cloud Messaging HTTP v1 adapter:
credentials, request timeouts, concurrency and the platform envelope.
"""

from __future__ import annotations

from typing import Literal

from pydantic import Field, SecretStr, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict

PushProviderName = Literal["fcm", "disabled"]


class PushSettings(BaseSettings):
    """Configuration for outbound push delivery.

    Environment variables use PUSH_ prefix.
    Example: PUSH_PROVIDER=fcm, PUSH_FCM_PROJECT_ID=taskflow-prod
    """

    provider: PushProviderName = Field(
        default="disabled",
        description="Push provider backend (fcm|disabled)",
    )

    # FCM credentials
    fcm_project_id: str | None = Field(
        default=None,
        description="Firebase project id used in the messages:send endpoint",
    )
    fcm_access_token: SecretStr | None = Field(
        default=None,
        description="OAuth2 bearer token for the FCM HTTP v1 API",
    )
    fcm_base_url: str = Field(
        default="https://fcm.googleapis.com",
        description="Base URL of the FCM HTTP v1 API",
    )

    # HTTP behaviour
    timeout_seconds: float = Field(
        default=10.0,
        gt=0,
        le=120.0,
        description="Timeout for a single FCM HTTP request (seconds)",
    )
    max_concurrency: int = Field(
        default=20,
        ge=1,
        le=500,
        description="Maximum concurrent FCM requests per multicast",
    )
    multicast_limit: int = Field(
        default=500,
        ge=1,
        le=500,
        description="Maximum tokens per multicast call",
    )

    # Platform envelope
    android_channel_id: str = Field(
        default="taskflow_reminders",
        description="Android notification channel",
    )
    android_icon: str = Field(
        default="ic_notification",
        description="Android notification icon resource",
    )
    web_icon: str = Field(
        default="/icons/icon-192x192.png",
        description="Web push notification icon",
    )
    web_badge: str = Field(
        default="/icons/badge-72x72.png",
        description="Web push notification badge",
    )
    web_tag: str = Field(
        default="taskflow-reminder",
        description="Web push notification tag (collapses repeated reminders)",
    )

    @computed_field
    @property
    def is_configured(self) -> bool:
        """Check whether the FCM provider has everything it needs."""
        return (
            self.provider == "fcm"
            and bool(self.fcm_project_id)
            and self.fcm_access_token is not None
        )

    model_config = SettingsConfigDict(
        env_prefix="PUSH_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        frozen=True,
        extra="ignore",
    )


__all__ = ["PushProviderName", "PushSettings"]
