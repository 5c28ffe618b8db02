"""Push provider used when no push backend is configured."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import TYPE_CHECKING

from taskflow_service.features.notifications.providers.base import (
    MulticastResponse,
    PushErrorCode,
    TokenResult,
)

if TYPE_CHECKING:
    from taskflow_service.features.notifications.models import NotificationPayload

logger = logging.getLogger(__name__)


class DisabledPushProvider:
    """Reports every token as unavailable without sending anything.

    Due notifications then follow the normal retry path and are
    dead-lettered once their attempts run out.
    """

    async def send_multicast(
        self,
        tokens: Sequence[str],
        payload: NotificationPayload,
    ) -> MulticastResponse:
        logger.warning(
            "Push delivery is disabled, message not sent",
            extra={"tokens": len(tokens), "operation": "push.disabled.send_multicast"},
        )
        return MulticastResponse(
            responses=[
                TokenResult(
                    token=token,
                    success=False,
                    error_code=PushErrorCode.UNAVAILABLE,
                    error_message="Push delivery is disabled",
                )
                for token in tokens
            ]
        )

    async def aclose(self) -> None:
        return None
