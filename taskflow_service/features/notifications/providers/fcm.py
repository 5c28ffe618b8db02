"""Firebase Cloud Messaging HTTP v1 push provider."""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Sequence
from typing import TYPE_CHECKING, Any

import httpx

from taskflow_service.features.notifications.providers.base import (
    MulticastResponse,
    PushErrorCode,
    TokenResult,
)
from taskflow_service.infra.logging import get_lazy_logger

if TYPE_CHECKING:
    from taskflow_service.core.settings.push import PushSettings
    from taskflow_service.features.notifications.models import NotificationPayload

logger = logging.getLogger(__name__)
lazy_logger = get_lazy_logger(__name__)

# FCM v1 `errorCode` values (google.firebase.fcm.v1.FcmError); INVALID_ARGUMENT
# is classified by message in _invalid_argument
_FCM_ERROR_CODES = {
    "UNREGISTERED": PushErrorCode.NOT_REGISTERED,
    "SENDER_ID_MISMATCH": PushErrorCode.INVALID_TOKEN,
    "QUOTA_EXCEEDED": PushErrorCode.QUOTA_EXCEEDED,
    "UNAVAILABLE": PushErrorCode.UNAVAILABLE,
    "INTERNAL": PushErrorCode.INTERNAL,
}


class FcmPushProvider:
    """Send push notifications through the FCM HTTP v1 API.

    The v1 API takes one message per request, so a multicast fans out into
    concurrent requests bounded by a semaphore. Handles:
    - Android/APNs/WebPush envelope construction
    - Per-token error classification
    - Timeouts and transport errors (reported per token, never raised)
    """

    def __init__(
        self,
        settings: PushSettings,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the provider.

        Args:
            settings: Push settings with project id and access token
            client: Optional preconfigured client (tests inject a MockTransport)
        """
        self.settings = settings
        self._endpoint = (
            f"{settings.fcm_base_url.rstrip('/')}/v1/projects/{settings.fcm_project_id}/messages:send"
        )
        token = settings.fcm_access_token.get_secret_value() if settings.fcm_access_token else ""
        self._client = client or httpx.AsyncClient(timeout=settings.timeout_seconds)
        self._headers = {
            "Authorization": f"Bearer {token}",
            "Content-Type": "application/json; UTF-8",
        }
        self._semaphore = asyncio.Semaphore(settings.max_concurrency)
        self._owns_client = client is None

    async def aclose(self) -> None:
        """Close the HTTP client if this provider created it."""
        if self._owns_client:
            await self._client.aclose()

    def build_message(self, token: str, payload: NotificationPayload) -> dict[str, Any]:
        """Build the FCM v1 message envelope for one token."""
        notification: dict[str, Any] = {"title": payload.title, "body": payload.body}
        if payload.icon and payload.icon.startswith(("http://", "https://")):
            notification["image"] = payload.icon

        return {
            "message": {
                "token": token,
                "notification": notification,
                "data": dict(payload.data),
                "android": {
                    "priority": "high",
                    "notification": {
                        "icon": self.settings.android_icon,
                        "sound": "default",
                        "channel_id": self.settings.android_channel_id,
                    },
                },
                "apns": {
                    "payload": {
                        "aps": {
                            "alert": {"title": payload.title, "body": payload.body},
                            "sound": "default",
                        },
                    },
                },
                "webpush": {
                    "notification": {
                        "title": payload.title,
                        "body": payload.body,
                        "icon": self.settings.web_icon,
                        "badge": self.settings.web_badge,
                        "tag": self.settings.web_tag,
                        "requireInteraction": True,
                    },
                },
            }
        }

    async def send_multicast(
        self,
        tokens: Sequence[str],
        payload: NotificationPayload,
    ) -> MulticastResponse:
        """Send `payload` to every token concurrently.

        Returns:
            MulticastResponse with results in the order of `tokens`
        """
        start_time = time.time()
        results = await asyncio.gather(*(self._send_one(token, payload) for token in tokens))
        response = MulticastResponse(responses=list(results))

        logger.info(
            "FCM multicast finished",
            extra={
                "tokens": len(tokens),
                "success_count": response.success_count,
                "failure_count": response.failure_count,
                "response_time_ms": int((time.time() - start_time) * 1000),
                "operation": "fcm.send_multicast",
            },
        )
        return response

    async def _send_one(self, token: str, payload: NotificationPayload) -> TokenResult:
        async with self._semaphore:
            try:
                response = await self._client.post(
                    self._endpoint,
                    json=self.build_message(token, payload),
                    headers=self._headers,
                    timeout=self.settings.timeout_seconds,
                )
            except httpx.TimeoutException:
                logger.warning(
                    "FCM request timeout",
                    extra={
                        "timeout_seconds": self.settings.timeout_seconds,
                        "operation": "fcm.send",
                    },
                )
                return TokenResult(
                    token=token,
                    success=False,
                    error_code=PushErrorCode.UNAVAILABLE,
                    error_message=f"Request timeout after {self.settings.timeout_seconds}s",
                )
            except httpx.RequestError as e:
                logger.error(
                    "FCM request error",
                    extra={"error": str(e), "operation": "fcm.send"},
                )
                return TokenResult(
                    token=token,
                    success=False,
                    error_code=PushErrorCode.UNAVAILABLE,
                    error_message=f"Request error: {e}",
                )

        if response.is_success:
            body = _json_body(response)
            lazy_logger.debug(lambda: f"fcm.send: accepted name={body.get('name')}")
            return TokenResult(token=token, success=True, message_id=body.get("name"))

        code, message = _classify_error(response)
        return TokenResult(token=token, success=False, error_code=code, error_message=message)


def _json_body(response: httpx.Response) -> dict[str, Any]:
    try:
        body = response.json()
    except ValueError:
        return {}
    return body if isinstance(body, dict) else {}


def _classify_error(response: httpx.Response) -> tuple[PushErrorCode, str]:
    """Map an FCM error response onto a PushErrorCode."""
    error = _json_body(response).get("error") or {}
    message = error.get("message") or f"HTTP {response.status_code}"

    status = error.get("status")
    for detail in error.get("details") or []:
        fcm_code = detail.get("errorCode")
        if fcm_code == "INVALID_ARGUMENT":
            return _invalid_argument(message), message
        if fcm_code in _FCM_ERROR_CODES:
            return _FCM_ERROR_CODES[fcm_code], message

    if response.status_code == 404 or status == "NOT_FOUND":
        return PushErrorCode.NOT_REGISTERED, message
    if status == "INVALID_ARGUMENT":
        return _invalid_argument(message), message
    if response.status_code == 429:
        return PushErrorCode.QUOTA_EXCEEDED, message
    if response.status_code in (500, 502, 503, 504):
        return PushErrorCode.UNAVAILABLE, message
    return PushErrorCode.INTERNAL, message


def _invalid_argument(message: str) -> PushErrorCode:
    # INVALID_ARGUMENT also covers bad payloads; only a rejected token is prunable
    if "registration token" in message.lower():
        return PushErrorCode.INVALID_TOKEN
    return PushErrorCode.INVALID_MESSAGE
