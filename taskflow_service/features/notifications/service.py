"""Notification service: the entry points used by the task CRUD layer."""

from __future__ import annotations

from collections import Counter
from collections.abc import Sequence
from typing import TYPE_CHECKING

from taskflow_service.core.exceptions import NotFoundError
from taskflow_service.core.services.base import BaseService, Clock
from taskflow_service.features.notifications.devices import DeviceRegistry
from taskflow_service.features.notifications.models import (
    DeviceEndpoint,
    NotificationStats,
    NotificationType,
    notifications_path,
)
from taskflow_service.features.notifications.planner import (
    CancelResult,
    NotificationPlanner,
    ScheduleResult,
)
from taskflow_service.infra.store import collection

if TYPE_CHECKING:
    from taskflow_service.features.notifications.dispatcher import (
        DeliveryDispatcher,
        DeliveryReport,
    )
    from taskflow_service.features.notifications.models import (
        NotificationPayload,
        Platform,
    )
    from taskflow_service.features.tasks.models import Task
    from taskflow_service.infra.store import Store


class NotificationService(BaseService):
    """Facade over planning, device registration and immediate delivery.

    Example:
        service = NotificationService(store, dispatcher)
        await service.register_device_token("u1", token, "web")
        await service.schedule_for_task(task)
        stats = await service.get_notification_stats("u1")
    """

    def __init__(
        self,
        store: Store,
        dispatcher: DeliveryDispatcher,
        *,
        planner: NotificationPlanner | None = None,
        devices: DeviceRegistry | None = None,
        clock: Clock | None = None,
    ) -> None:
        super().__init__(clock)
        self.store = store
        self.dispatcher = dispatcher
        self.planner = planner or NotificationPlanner(store, clock=self._clock)
        self.devices = devices or DeviceRegistry(store, clock=self._clock)

    # Devices

    async def register_device_token(
        self, user_id: str, token: str, platform: str | Platform
    ) -> DeviceEndpoint:
        return await self.devices.register(user_id, token, platform)

    async def unregister_device_token(self, user_id: str, token: str) -> None:
        await self.devices.unregister(user_id, token)

    async def list_device_tokens(
        self, user_id: str, *, active_only: bool = True
    ) -> list[DeviceEndpoint]:
        return await self.devices.list_endpoints(user_id, active_only=active_only)

    # Scheduling

    async def schedule_for_task(
        self, task: Task, offsets: Sequence[int] | None = None
    ) -> ScheduleResult:
        return await self.planner.schedule_for_task(task, offsets)

    async def cancel_for_task(self, user_id: str, task_id: str) -> CancelResult:
        return await self.planner.cancel_for_task(user_id, task_id)

    async def reschedule_for_task(
        self, task: Task, offsets: Sequence[int] | None = None
    ) -> ScheduleResult:
        """Replace a task's pending reminders after its deadline changed.

        Offsets are validated before anything is cancelled.
        """
        self.planner.plan(task, offsets)
        await self.planner.cancel_for_task(task.user_id, task.id)
        return await self.planner.schedule_for_task(task, offsets)

    # Delivery

    async def send_immediate(self, user_id: str, payload: NotificationPayload) -> DeliveryReport:
        """Push `payload` to every active endpoint of the user now.

        Raises:
            NotFoundError: If the user has no active endpoints.
            TransientDeliveryError: If no endpoint received the payload.
        """
        tokens = await self.devices.active_tokens(user_id)
        if not tokens:
            raise NotFoundError(
                "No active device tokens for user",
                type="device-tokens-not-found",
                extra={"user_id": user_id},
            )
        self.logger.info(
            "Sending immediate notification",
            extra={
                "user_id": user_id,
                "tokens": len(tokens),
                "operation": "notifications.send_immediate",
            },
        )
        return await self.dispatcher.send(tokens, payload)

    # Stats

    async def get_notification_stats(self, user_id: str) -> NotificationStats:
        """Counts over all of the user's notification events.

        `pending` counts unsent events still in the future; `failed` counts
        terminal events carrying an error.
        """
        docs = await self.store.query(collection(notifications_path(user_id)))
        now = self.now()

        sent = pending = failed = 0
        types: Counter[str] = Counter()
        for doc in docs:
            is_sent = bool(doc.get("sent", False))
            if is_sent:
                sent += 1
                if doc.get("error"):
                    failed += 1
            else:
                scheduled_for = doc.get("scheduledFor")
                if scheduled_for is not None and scheduled_for > now:
                    pending += 1
            types[doc.get("type", "")] += 1

        return NotificationStats(
            total=len(docs),
            sent=sent,
            pending=pending,
            failed=failed,
            type_breakdown={t.value: types.get(t.value, 0) for t in NotificationType},
        )
