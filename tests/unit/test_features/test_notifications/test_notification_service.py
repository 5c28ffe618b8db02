"""Unit tests for NotificationService."""
from __future__ import annotations

from datetime import timedelta

import pytest

from taskflow_service.core.exceptions import (
    NotFoundError,
    TransientDeliveryError,
    ValidationError,
)
from taskflow_service.features.notifications.models import NotificationPayload
from taskflow_service.features.tasks.models import Task


@pytest.mark.unit
class TestReschedule:
    """Reminders follow a changed deadline."""

    @pytest.mark.asyncio
    async def test_reschedule_replaces_pending_events(self, notification_service, store, now):
        task = Task(id="t1", user_id="u1", title="Write report", due_time=now + timedelta(days=2))
        await notification_service.schedule_for_task(task)

        moved = Task(id="t1", user_id="u1", title="Write report", due_time=now + timedelta(hours=2))
        result = await notification_service.reschedule_for_task(moved)

        assert result.notification_ids == ["notif_t1_60min", "notif_t1_15min"]
        docs = {
            path: doc for path, doc in store.snapshot().items() if "/notifications/" in path
        }
        assert sorted(docs) == [
            "users/u1/notifications/notif_t1_15min",
            "users/u1/notifications/notif_t1_60min",
        ]
        assert docs["users/u1/notifications/notif_t1_60min"]["scheduledFor"] == (
            now + timedelta(hours=1)
        )

    @pytest.mark.asyncio
    async def test_reschedule_keeps_sent_events(self, notification_service, add_notification, store, now):
        add_notification("u1", "notif_t1_1440min", sent=True, sent_at=now)
        task = Task(id="t1", user_id="u1", due_time=now + timedelta(hours=2))

        await notification_service.reschedule_for_task(task)

        assert "users/u1/notifications/notif_t1_1440min" in store.snapshot()

    @pytest.mark.asyncio
    async def test_invalid_offsets_cancel_nothing(self, notification_service, add_notification, store, now):
        add_notification("u1", "notif_t1_15min", scheduled_for=now + timedelta(hours=1))
        task = Task(id="t1", user_id="u1", due_time=now + timedelta(hours=2))

        with pytest.raises(ValidationError):
            await notification_service.reschedule_for_task(task, offsets=[-5])

        assert "users/u1/notifications/notif_t1_15min" in store.snapshot()


@pytest.mark.unit
class TestSendImmediate:
    PAYLOAD = NotificationPayload(title="Hello", body="World")

    @pytest.mark.asyncio
    async def test_sends_to_active_tokens(self, notification_service, add_device, push_provider):
        add_device("u1", "a")
        add_device("u1", "b")
        add_device("u1", "c", active=False)

        report = await notification_service.send_immediate("u1", self.PAYLOAD)

        assert report.success_count == 2
        assert sorted(push_provider.calls[0][0]) == ["a", "b"]

    @pytest.mark.asyncio
    async def test_no_active_tokens(self, notification_service, add_device, push_provider):
        add_device("u1", "c", active=False)

        with pytest.raises(NotFoundError) as exc_info:
            await notification_service.send_immediate("u1", self.PAYLOAD)

        assert exc_info.value.type == "device-tokens-not-found"
        assert push_provider.calls == []

    @pytest.mark.asyncio
    async def test_total_failure_is_transient(self, notification_service, add_device, push_provider):
        add_device("u1", "a")
        push_provider.fail("a")

        with pytest.raises(TransientDeliveryError):
            await notification_service.send_immediate("u1", self.PAYLOAD)


@pytest.mark.unit
class TestStats:
    @pytest.mark.asyncio
    async def test_counts(self, notification_service, add_notification, now):
        add_notification("u1", "n1", scheduled_for=now + timedelta(hours=1))
        add_notification("u1", "n2", sent=True, sent_at=now)
        add_notification("u1", "n3", sent=True, sent_at=now, error="Failed after 3 retries: x")
        add_notification("u1", "n4", type="overdue_alert")
        add_notification("u2", "n5")

        stats = await notification_service.get_notification_stats("u1")

        assert stats.to_dict() == {
            "total": 4,
            "sent": 2,
            "pending": 1,
            "failed": 1,
            "typeBreakdown": {
                "deadline_reminder": 3,
                "overdue_alert": 1,
                "completion_reminder": 0,
            },
        }

    @pytest.mark.asyncio
    async def test_user_without_notifications(self, notification_service):
        stats = await notification_service.get_notification_stats("nobody")

        assert stats.total == 0
        assert set(stats.type_breakdown.values()) == {0}


@pytest.mark.unit
@pytest.mark.asyncio
async def test_device_round_trip(notification_service):
    await notification_service.register_device_token("u1", "tok", "web")
    assert [e.token for e in await notification_service.list_device_tokens("u1")] == ["tok"]

    await notification_service.unregister_device_token("u1", "tok")

    assert await notification_service.list_device_tokens("u1") == []
    assert len(await notification_service.list_device_tokens("u1", active_only=False)) == 1
