"""Base protocol and types for multicast push providers."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from taskflow_service.features.notifications.models import NotificationPayload


class PushErrorCode(StrEnum):
    """Provider-independent classification of a per-token failure."""

    NOT_REGISTERED = "not-registered"
    INVALID_TOKEN = "invalid-token"
    INVALID_MESSAGE = "invalid-message"
    UNAVAILABLE = "unavailable"
    QUOTA_EXCEEDED = "quota-exceeded"
    INTERNAL = "internal"


PRUNABLE_ERRORS = frozenset({PushErrorCode.NOT_REGISTERED, PushErrorCode.INVALID_TOKEN})
"""Failures meaning the token will never work again."""


@dataclass(frozen=True, slots=True)
class TokenResult:
    """Outcome of a push to one device token.

    Attributes:
        token: Device token the message was addressed to
        success: Whether the provider accepted the message
        message_id: Provider message id on success
        error_code: Failure classification
        error_message: Provider error description
    """

    token: str
    success: bool
    message_id: str | None = None
    error_code: PushErrorCode | None = None
    error_message: str | None = None


@dataclass(frozen=True, slots=True)
class MulticastResponse:
    """Per-token results of one multicast send, in request order."""

    responses: list[TokenResult] = field(default_factory=list)

    @property
    def success_count(self) -> int:
        return sum(1 for r in self.responses if r.success)

    @property
    def failure_count(self) -> int:
        return len(self.responses) - self.success_count


class PushProvider(Protocol):
    """Protocol for push delivery backends (FCM, test fakes)."""

    async def send_multicast(
        self,
        tokens: Sequence[str],
        payload: NotificationPayload,
    ) -> MulticastResponse:
        """Send one payload to many tokens.

        Args:
            tokens: Device tokens, at most the provider's multicast ceiling
            payload: Title, body, data and icon

        Returns:
            MulticastResponse with one TokenResult per token
        """
        ...

    async def aclose(self) -> None:
        """Release network resources."""
        ...
