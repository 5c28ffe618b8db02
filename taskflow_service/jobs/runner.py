"""The four periodic jobs of the notification engine.

Each job is a single-shot coroutine that reads its candidates, writes
through one BatchWriter and returns a JobResult. A failure fetching the
candidates or committing the writes fails the run; a failure on one
candidate is recorded and the run continues.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Awaitable, Callable
from datetime import datetime, timedelta
from typing import TYPE_CHECKING

from opentelemetry import trace
from opentelemetry.trace import SpanKind, Status, StatusCode

from taskflow_service.core.exceptions import (
    NotFoundError,
    TransientDeliveryError,
    ValidationError,
)
from taskflow_service.core.services.base import BaseService, Clock
from taskflow_service.core.settings import NotificationSettings, get_notification_settings
from taskflow_service.features.notifications.devices import DeviceRegistry
from taskflow_service.features.notifications.models import (
    NOTIFICATIONS_COLLECTION,
    ScheduledNotification,
)
from taskflow_service.features.notifications.retry import RetryDecision, RetryPolicy
from taskflow_service.features.tasks.models import (
    TASKS_COLLECTION,
    USERS_COLLECTION,
    TaskStatus,
)
from taskflow_service.features.tasks.stats import UserTaskStats
from taskflow_service.infra.logging import log_context
from taskflow_service.infra.store import BatchWriter, collection, collection_group, where
from taskflow_service.jobs.metrics import (
    job_duration_seconds,
    job_item_errors_total,
    job_items_total,
    job_runs_total,
)
from taskflow_service.jobs.results import JobResult

if TYPE_CHECKING:
    from taskflow_service.features.notifications.dispatcher import DeliveryDispatcher
    from taskflow_service.infra.store import Document, Store
    from taskflow_service.jobs.lease import JobLease

JOB_NAMES = ("process_due", "mark_overdue", "cleanup_sent", "recompute_user_stats")

NO_ACTIVE_TOKENS = "No active device tokens"
DEADLINE_EXCEEDED = "Delivery deadline exceeded"

tracer = trace.get_tracer("taskflow_service.jobs")


class JobRunner(BaseService):
    """Run the periodic jobs against a store and a delivery dispatcher.

    Example:
        runner = JobRunner(store, dispatcher, lease=JobLease(store, ttl=timedelta(minutes=10)))
        result = await runner.run("process_due")
        print(result.to_dict())
    """

    def __init__(
        self,
        store: Store,
        dispatcher: DeliveryDispatcher,
        *,
        settings: NotificationSettings | None = None,
        retry_policy: RetryPolicy | None = None,
        devices: DeviceRegistry | None = None,
        lease: JobLease | None = None,
        clock: Clock | None = None,
    ) -> None:
        super().__init__(clock)
        self.store = store
        self.dispatcher = dispatcher
        self.settings = settings or get_notification_settings()
        self.retry_policy = retry_policy or RetryPolicy.from_settings(self.settings)
        self.devices = devices or DeviceRegistry(store, clock=self._clock)
        self.lease = lease
        self._jobs: dict[str, Callable[[], Awaitable[JobResult]]] = {
            "process_due": self.process_due,
            "mark_overdue": self.mark_overdue,
            "cleanup_sent": self.cleanup_sent,
            "recompute_user_stats": self.recompute_user_stats,
        }

    # =========================================================================
    # Instrumented entry point
    # =========================================================================

    async def run(self, job: str) -> JobResult:
        """Run one job under its lease, with tracing, log context and metrics.

        Raises:
            ValidationError: If `job` is not a known job name.
            StoreError: If the job's candidate fetch or final commit fails.
        """
        job_fn = self._jobs.get(job)
        if job_fn is None:
            raise ValidationError(
                f"Unknown job: {job}",
                type="unknown-job",
                extra={"allowed": list(JOB_NAMES)},
            )

        started_at = self.now()
        if self.lease is not None and not await self.lease.acquire(job, started_at):
            job_runs_total.labels(job=job, status="skipped").inc()
            return JobResult(job=job, started_at=started_at, skipped=True)

        start_time = time.perf_counter()
        try:
            with (
                log_context(job=job),
                tracer.start_as_current_span(
                    f"job.{job}",
                    kind=SpanKind.INTERNAL,
                    attributes={"job.name": job},
                ) as span,
            ):
                self.logger.info("Job started", extra={"operation": f"jobs.{job}"})
                try:
                    result = await job_fn()
                except Exception as e:
                    span.record_exception(e)
                    span.set_status(Status(StatusCode.ERROR, str(e)))
                    job_runs_total.labels(job=job, status="failure").inc()
                    self.logger.exception(
                        "Job failed",
                        extra={
                            "duration_seconds": round(time.perf_counter() - start_time, 3),
                            "operation": f"jobs.{job}",
                        },
                    )
                    raise
                span.set_attribute("job.count", result.count)
                span.set_attribute("job.errors", len(result.errors))
                span.set_status(Status(StatusCode.OK))

                self.logger.info(
                    "Job finished",
                    extra={
                        "count": result.count,
                        "errors": len(result.errors),
                        "commits": result.commits,
                        "duration_seconds": round(result.duration_seconds, 3),
                        "operation": f"jobs.{job}",
                    },
                )
        finally:
            job_duration_seconds.labels(job=job).observe(time.perf_counter() - start_time)
            if self.lease is not None:
                await self.lease.release(job)

        job_runs_total.labels(job=job, status="success").inc()
        job_items_total.labels(job=job).inc(result.count)
        if result.errors:
            job_item_errors_total.labels(job=job).inc(len(result.errors))
        return result

    async def run_all(self) -> list[JobResult]:
        """Run every job once, in order, stopping at the first failure."""
        return [await self.run(job) for job in JOB_NAMES]

    # =========================================================================
    # ProcessDue
    # =========================================================================

    async def process_due(self) -> JobResult:
        """Deliver due notifications and apply the retry policy to each.

        Up to `delivery_concurrency` notifications are in flight at once. The
        delivery phase is bounded by `process_deadline_seconds`; anything still
        in flight then is cancelled and counted as a failed attempt, so the run
        finishes and commits while it still holds its lease.
        """
        now = self.now()
        result = JobResult(job="process_due", started_at=now)
        start_time = time.perf_counter()

        docs = await self.store.query(
            collection_group(
                NOTIFICATIONS_COLLECTION,
                where("sent", "==", False),
                where("scheduledFor", "<=", now),
                order_by="scheduledFor",
                limit=self.settings.process_batch_limit,
            )
        )
        if not docs:
            self._lazy.debug(lambda: "process_due: no notifications to process")
            result.duration_seconds = time.perf_counter() - start_time
            return result

        self.logger.info(
            "Found due notifications",
            extra={"count": len(docs), "operation": "jobs.process_due"},
        )

        user_ids = list(dict.fromkeys(doc.get("userId") for doc in docs if doc.get("userId")))
        lookups = await asyncio.gather(
            *(self._active_tokens(user_id) for user_id in user_ids),
            return_exceptions=True,
        )
        tokens_by_user: dict[str, list[str] | BaseException] = dict(
            zip(user_ids, lookups, strict=True)
        )

        semaphore = asyncio.Semaphore(self.settings.delivery_concurrency)

        async def process_one(doc: Document) -> RetryDecision:
            async with semaphore:
                return await self._process_one(doc, tokens_by_user, now, result)

        tasks = [asyncio.create_task(process_one(doc)) for doc in docs]
        try:
            _, pending = await asyncio.wait(tasks, timeout=self.settings.process_deadline_seconds)
        except asyncio.CancelledError:
            for task in tasks:
                task.cancel()
            raise
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)

        decisions: list[RetryDecision] = []
        for doc, task in zip(docs, tasks, strict=True):
            if task.cancelled():
                decisions.append(self._deadline_exceeded(doc, now, result))
            else:
                decisions.append(task.result())
        if pending:
            self.logger.warning(
                "Delivery deadline exceeded",
                extra={
                    "deadline_seconds": self.settings.process_deadline_seconds,
                    "unfinished": sum(1 for task in tasks if task.cancelled()),
                    "operation": "jobs.process_due",
                },
            )

        async with BatchWriter(self.store) as writer:
            for doc, decision in zip(docs, decisions, strict=True):
                await writer.update(doc.path, decision.updates)

        result.commits = writer.commit_count
        result.duration_seconds = time.perf_counter() - start_time
        return result

    async def _process_one(
        self,
        doc: Document,
        tokens_by_user: dict[str, list[str] | BaseException],
        now: datetime,
        result: JobResult,
    ) -> RetryDecision:
        label = doc.get("notificationId") or doc.id
        try:
            notification = ScheduledNotification.from_document(doc)
            return await self._deliver(
                notification, tokens_by_user.get(notification.user_id, []), now, result
            )
        except Exception as e:
            message = str(e) or type(e).__name__
            self.logger.exception(
                "Error processing notification",
                extra={"notification_id": label, "operation": "jobs.process_due"},
            )
            result.errors.append(f"Notification {label}: {message}")
            return self.retry_policy.terminal(message, now)

    def _deadline_exceeded(self, doc: Document, now: datetime, result: JobResult) -> RetryDecision:
        """Decision for a notification still in flight when the deadline hit."""
        label = doc.get("notificationId") or doc.id
        result.errors.append(f"Notification {label}: {DEADLINE_EXCEEDED}")
        try:
            notification = ScheduledNotification.from_document(doc)
        except (KeyError, TypeError, ValueError) as e:
            return self.retry_policy.terminal(str(e) or type(e).__name__, now)
        return self.retry_policy.on_failure(notification, DEADLINE_EXCEEDED, now)

    async def _active_tokens(self, user_id: str) -> list[str]:
        async with asyncio.timeout(self.settings.endpoint_lookup_timeout_seconds):
            return await self.devices.active_tokens(user_id)

    async def _deliver(
        self,
        notification: ScheduledNotification,
        lookup: list[str] | BaseException,
        now: datetime,
        result: JobResult,
    ) -> RetryDecision:
        """Send one notification and decide its next state."""
        if isinstance(lookup, BaseException):
            reason = (
                "Device token lookup timed out"
                if isinstance(lookup, TimeoutError)
                else f"Device token lookup failed: {lookup}"
            )
            result.errors.append(f"Notification {notification.id}: {reason}")
            return self.retry_policy.on_failure(notification, reason, now)

        if not lookup:
            self._lazy.debug(
                lambda: f"process_due: no active tokens for user={notification.user_id}"
            )
            return self.retry_policy.terminal(NO_ACTIVE_TOKENS, now, label="no_active_tokens")

        try:
            await self.dispatcher.send(lookup, notification.payload)
        except TransientDeliveryError as e:
            reason = e.detail
            result.errors.append(f"Notification {notification.id}: {reason}")
            return self.retry_policy.on_failure(notification, reason, now)
        except NotFoundError as e:
            result.errors.append(f"Notification {notification.id}: {e.detail}")
            return self.retry_policy.terminal(e.detail, now, label="no_active_tokens")

        result.count += 1
        return self.retry_policy.on_success(now)

    # =========================================================================
    # MarkOverdue
    # =========================================================================

    async def mark_overdue(self) -> JobResult:
        """Set `status=overdue` on open tasks whose due time has passed."""
        now = self.now()
        result = JobResult(job="mark_overdue", started_at=now)
        start_time = time.perf_counter()

        docs = await self.store.query(
            collection(
                TASKS_COLLECTION,
                where("status", "!=", TaskStatus.COMPLETED.value),
                where("dueTime", "<=", now),
            )
        )
        self._lazy.debug(lambda: f"mark_overdue: candidates={len(docs)}")

        async with BatchWriter(self.store) as writer:
            for doc in docs:
                if doc.get("status") == TaskStatus.OVERDUE:
                    continue
                await writer.update(
                    doc.path, {"status": TaskStatus.OVERDUE.value, "updatedAt": now}
                )
                result.count += 1

        result.commits = writer.commit_count
        result.duration_seconds = time.perf_counter() - start_time
        return result

    # =========================================================================
    # CleanupSent
    # =========================================================================

    async def cleanup_sent(self) -> JobResult:
        """Delete sent notifications older than the retention window."""
        now = self.now()
        result = JobResult(job="cleanup_sent", started_at=now)
        start_time = time.perf_counter()
        cutoff = now - timedelta(days=self.settings.retention_days)

        docs = await self.store.query(
            collection_group(
                NOTIFICATIONS_COLLECTION,
                where("sent", "==", True),
                where("sentAt", "<=", cutoff),
                limit=self.settings.cleanup_batch_limit,
            )
        )

        async with BatchWriter(self.store) as writer:
            for doc in docs:
                await writer.delete(doc.path)
                result.count += 1

        result.commits = writer.commit_count
        result.duration_seconds = time.perf_counter() - start_time
        return result

    # =========================================================================
    # RecomputeUserStats
    # =========================================================================

    async def recompute_user_stats(self) -> JobResult:
        """Rewrite every user's task counters from their tasks."""
        now = self.now()
        result = JobResult(job="recompute_user_stats", started_at=now)
        start_time = time.perf_counter()

        users = await self.store.query(collection(USERS_COLLECTION))
        self._lazy.debug(lambda: f"recompute_user_stats: users={len(users)}")

        async with BatchWriter(self.store) as writer:
            for user in users:
                try:
                    tasks = await self._user_tasks(user.id)
                except Exception as e:
                    message = "task query timed out" if isinstance(e, TimeoutError) else str(e)
                    self.logger.warning(
                        "Failed to load tasks for user",
                        extra={"user_id": user.id, "operation": "jobs.recompute_user_stats"},
                    )
                    result.errors.append(f"User {user.id}: {message}")
                    continue

                stats = UserTaskStats.from_statuses(task.get("status", "") for task in tasks)
                await writer.update(user.path, {**stats.to_updates(), "lastActiveAt": now})
                result.count += 1

        result.commits = writer.commit_count
        result.duration_seconds = time.perf_counter() - start_time
        return result

    async def _user_tasks(self, user_id: str) -> list[Document]:
        async with asyncio.timeout(self.settings.endpoint_lookup_timeout_seconds):
            return await self.store.query(
                collection(TASKS_COLLECTION, where("userId", "==", user_id))
            )
