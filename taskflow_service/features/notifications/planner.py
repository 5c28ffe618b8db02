"""Reminder planning: derive notification events from a task's due time."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from datetime import timedelta
from typing import TYPE_CHECKING

from taskflow_service.core.exceptions import ValidationError
from taskflow_service.core.services.base import BaseService, Clock
from taskflow_service.features.notifications.messages import (
    REMINDER_ICON,
    REMINDER_TITLE,
    reminder_message,
)
from taskflow_service.features.notifications.metrics import (
    notification_cancelled_total,
    notification_scheduled_total,
)
from taskflow_service.features.notifications.models import (
    NotificationPayload,
    NotificationType,
    ScheduledNotification,
    notification_id,
    notifications_path,
)
from taskflow_service.infra.store import MAX_BATCH_OPERATIONS, BatchWriter, collection, where

if TYPE_CHECKING:
    from taskflow_service.features.tasks.models import Task
    from taskflow_service.infra.store import Store

DEFAULT_OFFSETS_MINUTES: tuple[int, ...] = (1440, 60, 15)


@dataclass(slots=True)
class ScheduleResult:
    """Events written by one schedule_for_task call."""

    success: bool = True
    scheduled: list[ScheduledNotification] = field(default_factory=list)

    @property
    def scheduled_count(self) -> int:
        return len(self.scheduled)

    @property
    def notification_ids(self) -> list[str]:
        return [n.id for n in self.scheduled]


@dataclass(frozen=True, slots=True)
class CancelResult:
    """Pending events deleted by one cancel_for_task call."""

    success: bool = True
    cancelled_count: int = 0


def normalize_offsets(offsets: Iterable[int]) -> list[int]:
    """Validate lead times and drop duplicates, keeping first-seen order.

    Raises:
        ValidationError: If an offset is not a positive integer.
    """
    result: list[int] = []
    for offset in offsets:
        if isinstance(offset, bool) or not isinstance(offset, int) or offset <= 0:
            raise ValidationError(
                f"Reminder offset must be a positive integer, got {offset!r}",
                extra={"field": "offsets"},
            )
        if offset not in result:
            result.append(offset)
    return result


class NotificationPlanner(BaseService):
    """Create and cancel deadline reminders for tasks.

    Reminder ids are derived from the task id and the offset, so planning
    the same task twice overwrites its events instead of duplicating them.
    """

    def __init__(
        self,
        store: Store,
        *,
        default_offsets: Sequence[int] = DEFAULT_OFFSETS_MINUTES,
        clock: Clock | None = None,
    ) -> None:
        super().__init__(clock)
        self.store = store
        self.default_offsets = normalize_offsets(default_offsets)

    def plan(self, task: Task, offsets: Sequence[int] | None = None) -> list[ScheduledNotification]:
        """Build the reminder events for `task` without writing them.

        Offsets whose reminder time is not in the future are skipped.
        """
        if not task.id or not task.user_id:
            raise ValidationError(
                "Task requires an id and a userId",
                extra={"task_id": task.id, "user_id": task.user_id},
            )
        chosen = normalize_offsets(self.default_offsets if offsets is None else offsets)
        if len(chosen) > MAX_BATCH_OPERATIONS:
            raise ValidationError(
                f"At most {MAX_BATCH_OPERATIONS} reminder offsets per task",
                extra={"field": "offsets"},
            )
        if task.due_time is None:
            return []

        now = self.now()
        planned: list[ScheduledNotification] = []
        for minutes in chosen:
            scheduled_for = task.due_time - timedelta(minutes=minutes)
            if scheduled_for <= now:
                continue
            planned.append(
                ScheduledNotification(
                    id=notification_id(task.id, minutes),
                    user_id=task.user_id,
                    task_id=task.id,
                    type=NotificationType.DEADLINE_REMINDER,
                    scheduled_for=scheduled_for,
                    payload=NotificationPayload(
                        title=REMINDER_TITLE,
                        body=reminder_message(task.title, minutes),
                        data={
                            "taskId": task.id,
                            "type": NotificationType.DEADLINE_REMINDER.value,
                            "reminderMinutes": str(minutes),
                        },
                        icon=REMINDER_ICON,
                    ),
                    created_at=now,
                )
            )
        return planned

    async def schedule_for_task(
        self, task: Task, offsets: Sequence[int] | None = None
    ) -> ScheduleResult:
        """Persist reminders for every future offset in one atomic commit.

        Args:
            task: Task with id, userId, title and optional due time.
            offsets: Lead times in minutes; defaults to the planner's offsets.

        Returns:
            ScheduleResult listing the written events (empty without a due time).

        Raises:
            ValidationError: On a missing id/userId or a non-positive offset.
            StoreError: If the commit fails; nothing is written in that case.
        """
        planned = self.plan(task, offsets)
        if not planned:
            self._lazy.debug(lambda: f"planner.schedule: nothing to plan for task={task.id}")
            return ScheduleResult()

        async with BatchWriter(self.store) as writer:
            for notification in planned:
                await writer.set(notification.path, notification.to_document())

        notification_scheduled_total.labels(
            notification_type=NotificationType.DEADLINE_REMINDER.value
        ).inc(len(planned))
        self.logger.info(
            "Scheduled task reminders",
            extra={
                "task_id": task.id,
                "user_id": task.user_id,
                "count": len(planned),
                "operation": "planner.schedule_for_task",
            },
        )
        return ScheduleResult(scheduled=planned)

    async def pending_for_task(self, user_id: str, task_id: str) -> list[str]:
        """Paths of not-yet-sent events for one task."""
        docs = await self.store.query(
            collection(
                notifications_path(user_id),
                where("taskId", "==", task_id),
                where("sent", "==", False),
            )
        )
        return [doc.path for doc in docs]

    async def cancel_for_task(self, user_id: str, task_id: str) -> CancelResult:
        """Delete every not-yet-sent event for the task.

        Sent events are terminal and are left alone.
        """
        if not user_id or not task_id:
            raise ValidationError(
                "userId and taskId are required",
                extra={"user_id": user_id, "task_id": task_id},
            )
        paths = await self.pending_for_task(user_id, task_id)
        if not paths:
            return CancelResult()

        async with BatchWriter(self.store) as writer:
            for path in paths:
                await writer.delete(path)

        notification_cancelled_total.inc(len(paths))
        self.logger.info(
            "Cancelled task reminders",
            extra={
                "task_id": task_id,
                "user_id": user_id,
                "count": len(paths),
                "operation": "planner.cancel_for_task",
            },
        )
        return CancelResult(cancelled_count=len(paths))
