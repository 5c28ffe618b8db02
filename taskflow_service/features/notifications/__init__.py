"""Notification scheduling and push delivery.

Usage:
    from taskflow_service.features.notifications import NotificationService

    await service.schedule_for_task(task)
    await service.cancel_for_task(task.user_id, task.id)
"""

from taskflow_service.features.notifications.devices import DeviceRegistry
from taskflow_service.features.notifications.dispatcher import DeliveryDispatcher, DeliveryReport
from taskflow_service.features.notifications.messages import format_reminder_time, reminder_message
from taskflow_service.features.notifications.models import (
    DeviceEndpoint,
    NotificationPayload,
    NotificationStats,
    NotificationType,
    Platform,
    ScheduledNotification,
    notification_id,
)
from taskflow_service.features.notifications.planner import (
    CancelResult,
    NotificationPlanner,
    ScheduleResult,
)
from taskflow_service.features.notifications.retry import RetryDecision, RetryPolicy
from taskflow_service.features.notifications.service import NotificationService

__all__ = [
    "CancelResult",
    "DeliveryDispatcher",
    "DeliveryReport",
    "DeviceEndpoint",
    "DeviceRegistry",
    "NotificationPayload",
    "NotificationPlanner",
    "NotificationService",
    "NotificationStats",
    "NotificationType",
    "Platform",
    "RetryDecision",
    "RetryPolicy",
    "ScheduleResult",
    "ScheduledNotification",
    "format_reminder_time",
    "notification_id",
    "reminder_message",
]
