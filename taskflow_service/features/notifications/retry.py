"""Fixed-count, fixed-delay retry and dead-letter decisions."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import TYPE_CHECKING, Any

from taskflow_service.features.notifications.metrics import (
    notification_dead_lettered_total,
    notification_retry_total,
)

if TYPE_CHECKING:
    from taskflow_service.core.settings import NotificationSettings
    from taskflow_service.features.notifications.models import ScheduledNotification


@dataclass(frozen=True, slots=True)
class RetryDecision:
    """Field updates to apply to a notification after one attempt.

    Attributes:
        updates: Document updates (camelCase fields).
        terminal: Whether the notification is now `sent=true`.
        retry_count: Attempt count after this decision.
    """

    updates: dict[str, Any]
    terminal: bool
    retry_count: int


class RetryPolicy:
    """Decide what happens to a notification after a delivery attempt.

    Success and exhaustion are both terminal (`sent=true`). A failure below
    the limit pushes `scheduledFor` out by a fixed delay so the next
    process_due run picks it up again.
    """

    def __init__(self, max_retries: int = 3, retry_delay: timedelta = timedelta(minutes=5)) -> None:
        if max_retries < 1:
            raise ValueError(f"max_retries must be at least 1, got {max_retries}")
        self.max_retries = max_retries
        self.retry_delay = retry_delay

    @classmethod
    def from_settings(cls, settings: NotificationSettings) -> RetryPolicy:
        return cls(
            max_retries=settings.max_retries,
            retry_delay=timedelta(minutes=settings.retry_delay_minutes),
        )

    def on_success(self, now: datetime) -> RetryDecision:
        return RetryDecision(
            updates={"sent": True, "sentAt": now},
            terminal=True,
            retry_count=0,
        )

    def on_failure(
        self, notification: ScheduledNotification, reason: str, now: datetime
    ) -> RetryDecision:
        """Count a failed attempt and either reschedule or dead-letter."""
        retry_count = notification.retry_count + 1
        if retry_count < self.max_retries:
            notification_retry_total.inc()
            return RetryDecision(
                updates={
                    "retryCount": retry_count,
                    "scheduledFor": now + self.retry_delay,
                    "error": reason,
                },
                terminal=False,
                retry_count=retry_count,
            )

        notification_dead_lettered_total.labels(reason="retries_exhausted").inc()
        return RetryDecision(
            updates={
                "retryCount": retry_count,
                "sent": True,
                "sentAt": now,
                "error": f"Failed after {retry_count} retries: {reason}",
            },
            terminal=True,
            retry_count=retry_count,
        )

    def terminal(self, reason: str, now: datetime, *, label: str = "processing_error") -> RetryDecision:
        """Dead-letter immediately without counting an attempt."""
        notification_dead_lettered_total.labels(reason=label).inc()
        return RetryDecision(
            updates={"sent": True, "sentAt": now, "error": reason},
            terminal=True,
            retry_count=0,
        )
