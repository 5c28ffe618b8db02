"""Wiring of the store, push provider, services and job runner."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass
from datetime import timedelta
from typing import TYPE_CHECKING

from taskflow_service.core.settings import Settings, get_settings
from taskflow_service.features.notifications.dispatcher import DeliveryDispatcher
from taskflow_service.features.notifications.planner import NotificationPlanner
from taskflow_service.features.notifications.providers import build_push_provider
from taskflow_service.features.notifications.service import NotificationService
from taskflow_service.features.tasks.service import TaskStatsService
from taskflow_service.infra.store import SqlDocumentStore, build_store
from taskflow_service.jobs.lease import JobLease
from taskflow_service.jobs.runner import JobRunner

if TYPE_CHECKING:
    from taskflow_service.core.services.base import Clock
    from taskflow_service.features.notifications.providers import PushProvider
    from taskflow_service.infra.store import Store

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class EngineRuntime:
    """Everything a CLI command or the scheduler needs."""

    settings: Settings
    store: Store
    provider: PushProvider
    dispatcher: DeliveryDispatcher
    notifications: NotificationService
    task_stats: TaskStatsService
    runner: JobRunner


def build_runtime(
    settings: Settings,
    store: Store,
    provider: PushProvider,
    clock: Clock | None = None,
) -> EngineRuntime:
    """Assemble the services around an existing store and provider."""
    dispatcher = DeliveryDispatcher(
        provider,
        store,
        multicast_limit=settings.push.multicast_limit,
        send_timeout=settings.notifications.send_timeout_seconds,
        clock=clock,
    )
    planner = NotificationPlanner(
        store,
        default_offsets=settings.notifications.default_offsets_minutes,
        clock=clock,
    )
    lease = (
        JobLease(store, ttl=timedelta(seconds=settings.scheduler.lease_ttl_seconds))
        if settings.scheduler.lease_enabled
        else None
    )
    return EngineRuntime(
        settings=settings,
        store=store,
        provider=provider,
        dispatcher=dispatcher,
        notifications=NotificationService(store, dispatcher, planner=planner, clock=clock),
        task_stats=TaskStatsService(store, clock=clock),
        runner=JobRunner(
            store,
            dispatcher,
            settings=settings.notifications,
            lease=lease,
            clock=clock,
        ),
    )


@asynccontextmanager
async def engine_runtime(settings: Settings | None = None) -> AsyncIterator[EngineRuntime]:
    """Open the store and push provider for the duration of the block.

    Example:
        async with engine_runtime() as runtime:
            result = await runtime.runner.run("process_due")
    """
    settings = settings or get_settings()
    store = build_store(settings.store)
    provider = build_push_provider(settings.push)
    try:
        if isinstance(store, SqlDocumentStore):
            await store.create_schema()
        yield build_runtime(settings, store, provider)
    finally:
        await provider.aclose()
        if isinstance(store, SqlDocumentStore):
            await store.dispose()
        logger.debug("Engine runtime closed")
