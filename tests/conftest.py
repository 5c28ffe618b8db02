"""Pytest configuration and shared fixtures.

This module provides reusable fixtures for testing across the entire test suite.
Fixtures are organized by category to make them easy to discover and extend.

Organization:
    - Clock Fixtures: A controllable UTC clock
    - Store Fixtures: In-memory and SQLite-backed document stores
    - Push Fixtures: A scripted push provider
    - Service Fixtures: Planner, dispatcher, service and job runner wired together
    - Data Fixtures: Factories for stored task, device and notification documents
"""

from __future__ import annotations

import os
from collections.abc import AsyncGenerator, Callable, Sequence
from datetime import UTC, datetime, timedelta
from typing import Any

import pytest

# Ensure tests never pick up a developer's push credentials or database
os.environ.setdefault("PUSH_PROVIDER", "disabled")
os.environ.setdefault("STORE_BACKEND", "memory")
os.environ.setdefault("LOG_FILE_ENABLED", "false")

from taskflow_service.core.settings import NotificationSettings  # noqa: E402
from taskflow_service.features.notifications.dispatcher import DeliveryDispatcher  # noqa: E402
from taskflow_service.features.notifications.planner import NotificationPlanner  # noqa: E402
from taskflow_service.features.notifications.providers.base import (  # noqa: E402
    MulticastResponse,
    PushErrorCode,
    TokenResult,
)
from taskflow_service.features.notifications.retry import RetryPolicy  # noqa: E402
from taskflow_service.features.notifications.service import NotificationService  # noqa: E402
from taskflow_service.infra.store import InMemoryStore, SqlDocumentStore  # noqa: E402
from taskflow_service.jobs.runner import JobRunner  # noqa: E402

NOW = datetime(2025, 1, 15, 12, 0, tzinfo=UTC)


# ============================================================================
# Clock Fixtures
# ============================================================================


class FakeClock:
    """Callable clock whose time only moves when a test moves it."""

    def __init__(self, now: datetime = NOW) -> None:
        self.current = now

    def __call__(self) -> datetime:
        return self.current

    def advance(self, **kwargs: float) -> datetime:
        self.current += timedelta(**kwargs)
        return self.current


@pytest.fixture
def clock() -> FakeClock:
    """Clock fixed at 2025-01-15 12:00 UTC.

    Example:
        async def test_retry_delay(clock, runner):
            clock.advance(minutes=5)
    """
    return FakeClock()


@pytest.fixture
def now(clock: FakeClock) -> datetime:
    return clock()


# ============================================================================
# Store Fixtures
# ============================================================================


@pytest.fixture
def store() -> InMemoryStore:
    """Empty in-memory document store."""
    return InMemoryStore()


@pytest.fixture
async def sql_store() -> AsyncGenerator[SqlDocumentStore]:
    """SQL document store on a fresh in-memory SQLite database.

    A StaticPool keeps the single in-memory connection alive for the test.
    """
    from sqlalchemy.pool import StaticPool

    sql = SqlDocumentStore.from_url("sqlite+aiosqlite:///:memory:", poolclass=StaticPool)
    await sql.create_schema()
    yield sql
    await sql.dispose()


# ============================================================================
# Push Fixtures
# ============================================================================


class FakePushProvider:
    """Scripted push provider.

    Attributes:
        failures: Token -> error code for tokens that should fail.
        error: Exception raised by every send when set.
        delay: Seconds to sleep before answering (to exercise timeouts).
        calls: (tokens, payload) of every send.
    """

    def __init__(self) -> None:
        self.failures: dict[str, PushErrorCode] = {}
        self.error: Exception | None = None
        self.delay: float = 0.0
        self.calls: list[tuple[list[str], Any]] = []
        self.closed = False

    def fail(self, *tokens: str, code: PushErrorCode = PushErrorCode.UNAVAILABLE) -> None:
        for token in tokens:
            self.failures[token] = code

    async def send_multicast(self, tokens: Sequence[str], payload: Any) -> MulticastResponse:
        import asyncio

        self.calls.append((list(tokens), payload))
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return MulticastResponse(
            responses=[
                TokenResult(
                    token=token,
                    success=False,
                    error_code=self.failures[token],
                    error_message=f"{self.failures[token]} for {token}",
                )
                if token in self.failures
                else TokenResult(token=token, success=True, message_id=f"msg-{token}")
                for token in tokens
            ]
        )

    async def aclose(self) -> None:
        self.closed = True


@pytest.fixture
def push_provider() -> FakePushProvider:
    """Push provider that accepts every token unless told otherwise."""
    return FakePushProvider()


# ============================================================================
# Service Fixtures
# ============================================================================


@pytest.fixture
def notification_settings() -> NotificationSettings:
    return NotificationSettings(
        endpoint_lookup_timeout_seconds=1.0,
        send_timeout_seconds=1.0,
    )


@pytest.fixture
def dispatcher(store, push_provider, clock) -> DeliveryDispatcher:
    return DeliveryDispatcher(push_provider, store, send_timeout=1.0, clock=clock)


@pytest.fixture
def planner(store, clock) -> NotificationPlanner:
    return NotificationPlanner(store, clock=clock)


@pytest.fixture
def notification_service(store, dispatcher, planner, clock) -> NotificationService:
    return NotificationService(store, dispatcher, planner=planner, clock=clock)


@pytest.fixture
def runner(store, dispatcher, notification_settings, clock) -> JobRunner:
    """Job runner without leasing."""
    return JobRunner(
        store,
        dispatcher,
        settings=notification_settings,
        retry_policy=RetryPolicy.from_settings(notification_settings),
        clock=clock,
    )


# ============================================================================
# Data Fixtures
# ============================================================================


@pytest.fixture
def add_device(store, now) -> Callable[..., str]:
    """Store a device endpoint document and return its path."""

    def _add(user_id: str, token: str, *, active: bool = True, platform: str = "web") -> str:
        path = f"users/{user_id}/deviceTokens/{token}"
        store.preload(
            {
                path: {
                    "userId": user_id,
                    "token": token,
                    "platform": platform,
                    "createdAt": now,
                    "lastUsed": now,
                    "isActive": active,
                }
            }
        )
        return path

    return _add


@pytest.fixture
def add_notification(store, now) -> Callable[..., str]:
    """Store a scheduled notification document and return its path."""

    def _add(
        user_id: str,
        notification_id: str,
        *,
        task_id: str = "t1",
        scheduled_for: datetime | None = None,
        sent: bool = False,
        sent_at: datetime | None = None,
        error: str | None = None,
        retry_count: int = 0,
        type: str = "deadline_reminder",
    ) -> str:
        path = f"users/{user_id}/notifications/{notification_id}"
        store.preload(
            {
                path: {
                    "notificationId": notification_id,
                    "userId": user_id,
                    "taskId": task_id,
                    "type": type,
                    "scheduledFor": scheduled_for or now - timedelta(minutes=1),
                    "payload": {
                        "title": "Task Reminder",
                        "body": '"Write report" is due in 15 minutes! ⏰',
                        "data": {"taskId": task_id, "type": type, "reminderMinutes": "15"},
                        "icon": "📋",
                    },
                    "sent": sent,
                    "sentAt": sent_at,
                    "error": error,
                    "retryCount": retry_count,
                    "createdAt": now - timedelta(days=1),
                }
            }
        )
        return path

    return _add


@pytest.fixture
def add_task(store) -> Callable[..., str]:
    """Store a task document and return its path."""

    def _add(
        task_id: str,
        user_id: str = "u1",
        *,
        status: str = "todo",
        due_time: datetime | None = None,
        title: str = "Write report",
    ) -> str:
        path = f"tasks/{task_id}"
        data: dict[str, Any] = {"userId": user_id, "title": title, "status": status}
        if due_time is not None:
            data["dueTime"] = due_time
        store.preload({path: data})
        return path

    return _add
