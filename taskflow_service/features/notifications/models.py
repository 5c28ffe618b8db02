"""Notification domain models and their stored document shape.

Documents use the camelCase field names of the shared store
(`scheduledFor`, `retryCount`, ...); the dataclasses use snake_case and
convert at the boundary.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum
from typing import Any

from taskflow_service.infra.store import Document


class NotificationType(StrEnum):
    """Kinds of scheduled notification."""

    DEADLINE_REMINDER = "deadline_reminder"
    OVERDUE_ALERT = "overdue_alert"
    COMPLETION_REMINDER = "completion_reminder"


class Platform(StrEnum):
    """Device platforms that can register for push delivery."""

    WEB = "web"
    ANDROID = "android"
    IOS = "ios"


NOTIFICATIONS_COLLECTION = "notifications"
DEVICE_TOKENS_COLLECTION = "deviceTokens"
USERS_COLLECTION = "users"


def notification_id(task_id: str, offset_minutes: int) -> str:
    """Deterministic id of the reminder for one task and lead time."""
    return f"notif_{task_id}_{offset_minutes}min"


def notifications_path(user_id: str) -> str:
    return f"{USERS_COLLECTION}/{user_id}/{NOTIFICATIONS_COLLECTION}"


def device_tokens_path(user_id: str) -> str:
    return f"{USERS_COLLECTION}/{user_id}/{DEVICE_TOKENS_COLLECTION}"


@dataclass(frozen=True, slots=True)
class NotificationPayload:
    """Push payload: `{title, body, data, icon?}`.

    `data` values are strings, as required by push providers.
    """

    title: str
    body: str
    data: dict[str, str] = field(default_factory=dict)
    icon: str | None = None

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "title": self.title,
            "body": self.body,
            "data": dict(self.data),
        }
        if self.icon is not None:
            result["icon"] = self.icon
        return result

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> NotificationPayload:
        return cls(
            title=str(raw.get("title", "")),
            body=str(raw.get("body", "")),
            data={str(k): str(v) for k, v in (raw.get("data") or {}).items()},
            icon=raw.get("icon"),
        )


@dataclass(slots=True)
class ScheduledNotification:
    """A persisted reminder event tied to a task and a lead-time offset."""

    id: str
    user_id: str
    task_id: str
    type: NotificationType
    scheduled_for: datetime
    payload: NotificationPayload
    sent: bool = False
    sent_at: datetime | None = None
    error: str | None = None
    retry_count: int = 0
    created_at: datetime | None = None

    @property
    def path(self) -> str:
        return f"{notifications_path(self.user_id)}/{self.id}"

    def to_document(self) -> dict[str, Any]:
        return {
            "notificationId": self.id,
            "userId": self.user_id,
            "taskId": self.task_id,
            "type": self.type.value,
            "scheduledFor": self.scheduled_for,
            "payload": self.payload.to_dict(),
            "sent": self.sent,
            "sentAt": self.sent_at,
            "error": self.error,
            "retryCount": self.retry_count,
            "createdAt": self.created_at,
        }

    @classmethod
    def from_document(cls, doc: Document) -> ScheduledNotification:
        data = doc.data
        return cls(
            id=data.get("notificationId") or doc.id,
            user_id=data["userId"],
            task_id=data["taskId"],
            type=NotificationType(data.get("type", NotificationType.DEADLINE_REMINDER)),
            scheduled_for=data["scheduledFor"],
            payload=NotificationPayload.from_dict(data.get("payload") or {}),
            sent=bool(data.get("sent", False)),
            sent_at=data.get("sentAt"),
            error=data.get("error"),
            retry_count=int(data.get("retryCount", 0)),
            created_at=data.get("createdAt"),
        )


@dataclass(slots=True)
class DeviceEndpoint:
    """A registered push destination. The token is the natural key."""

    user_id: str
    token: str
    platform: Platform
    created_at: datetime
    last_used: datetime
    is_active: bool = True

    @property
    def path(self) -> str:
        return f"{device_tokens_path(self.user_id)}/{self.token}"

    def to_document(self) -> dict[str, Any]:
        return {
            "userId": self.user_id,
            "token": self.token,
            "platform": self.platform.value,
            "createdAt": self.created_at,
            "lastUsed": self.last_used,
            "isActive": self.is_active,
        }

    @classmethod
    def from_document(cls, doc: Document) -> DeviceEndpoint:
        data = doc.data
        return cls(
            user_id=data["userId"],
            token=data.get("token") or doc.id,
            platform=Platform(data.get("platform", Platform.WEB)),
            created_at=data["createdAt"],
            last_used=data.get("lastUsed") or data["createdAt"],
            is_active=bool(data.get("isActive", False)),
        )


@dataclass(frozen=True, slots=True)
class NotificationStats:
    """Per-user notification counters."""

    total: int
    sent: int
    pending: int
    failed: int
    type_breakdown: dict[str, int]

    def to_dict(self) -> dict[str, Any]:
        return {
            "total": self.total,
            "sent": self.sent,
            "pending": self.pending,
            "failed": self.failed,
            "typeBreakdown": dict(self.type_breakdown),
        }
