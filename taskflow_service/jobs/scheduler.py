"""APScheduler integration for the periodic notification jobs.

APScheduler triggers each job on its cadence and the JobRunner executes it
in-process on the event loop:
    process_due          every 5 minutes
    mark_overdue         every hour
    cleanup_sent         daily at 02:00 UTC
    recompute_user_stats daily at 03:00 UTC

Run the scheduler:
    taskflow-service scheduler run
"""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger
from apscheduler.triggers.interval import IntervalTrigger

from taskflow_service.core.settings import SchedulerSettings, get_scheduler_settings

if TYPE_CHECKING:
    from taskflow_service.jobs.runner import JobRunner

logger = logging.getLogger(__name__)


def create_scheduler(settings: SchedulerSettings | None = None) -> AsyncIOScheduler:
    """Build an AsyncIOScheduler with the job defaults used for every job."""
    settings = settings or get_scheduler_settings()
    return AsyncIOScheduler(
        timezone="UTC",
        job_defaults={
            "coalesce": True,  # Combine multiple pending executions into one
            "max_instances": 1,  # Only one instance of each job at a time
            "misfire_grace_time": settings.misfire_grace_seconds,
        },
    )


scheduler = create_scheduler()


# =============================================================================
# Scheduler Job Wrappers
# =============================================================================
# Exceptions are logged and dropped so the next tick simply runs again.


async def run_job(runner: JobRunner, job: str) -> None:
    """Run one job for APScheduler."""
    try:
        result = await runner.run(job)
    except Exception:
        logger.exception("Scheduled job failed", extra={"job": job})
        return
    if result.skipped:
        logger.debug(f"Scheduled job skipped: {job}")


# =============================================================================
# Scheduler Management
# =============================================================================


def setup_scheduled_jobs(
    runner: JobRunner,
    settings: SchedulerSettings | None = None,
    target: AsyncIOScheduler | None = None,
) -> None:
    """Register the four periodic jobs with APScheduler.

    Call before start_scheduler().
    """
    settings = settings or get_scheduler_settings()
    target = target or scheduler

    logger.info("Setting up scheduled jobs with APScheduler")

    # Deliver due notifications every 5 minutes
    target.add_job(
        func=run_job,
        args=[runner, "process_due"],
        trigger=IntervalTrigger(minutes=settings.process_due_interval_minutes),
        id="process_due",
        name="Deliver due notifications",
        replace_existing=True,
    )

    # Mark overdue tasks every hour
    target.add_job(
        func=run_job,
        args=[runner, "mark_overdue"],
        trigger=IntervalTrigger(hours=settings.mark_overdue_interval_hours),
        id="mark_overdue",
        name="Mark overdue tasks",
        replace_existing=True,
    )

    # Delete old sent notifications daily at 2 AM UTC
    target.add_job(
        func=run_job,
        args=[runner, "cleanup_sent"],
        trigger=CronTrigger(hour=settings.cleanup_hour, minute=settings.cleanup_minute),
        id="cleanup_sent",
        name="Clean up sent notifications",
        replace_existing=True,
    )

    # Recompute user statistics daily at 3 AM UTC
    target.add_job(
        func=run_job,
        args=[runner, "recompute_user_stats"],
        trigger=CronTrigger(hour=settings.stats_hour, minute=settings.stats_minute),
        id="recompute_user_stats",
        name="Recompute user statistics",
        replace_existing=True,
    )

    logger.info(f"Scheduled {len(target.get_jobs())} jobs")


async def start_scheduler(target: AsyncIOScheduler | None = None) -> None:
    """Start the APScheduler.

    Call after setup_scheduled_jobs(), from inside a running event loop.
    """
    target = target or scheduler
    if not target.running:
        logger.info("Starting APScheduler")
        target.start()
        logger.info(f"APScheduler started with {len(target.get_jobs())} jobs")
    else:
        logger.warning("APScheduler is already running")


async def stop_scheduler(target: AsyncIOScheduler | None = None) -> None:
    """Stop the APScheduler gracefully."""
    target = target or scheduler
    if target.running:
        logger.info("Stopping APScheduler")
        target.shutdown(wait=True)
        logger.info("APScheduler stopped")
    else:
        logger.debug("APScheduler is not running")


# =============================================================================
# Job Management Utilities
# =============================================================================


def get_job_status(target: AsyncIOScheduler | None = None) -> list[dict]:
    """Get status of all scheduled jobs.

    Returns:
        List of job information dictionaries.
    """
    target = target or scheduler
    jobs = []
    for job in target.get_jobs():
        next_run_time = getattr(job, "next_run_time", None)
        jobs.append(
            {
                "id": job.id,
                "name": job.name,
                "next_run_time": next_run_time.isoformat() if next_run_time else None,
                "trigger": str(job.trigger),
            }
        )
    return jobs


def pause_job(job_id: str, target: AsyncIOScheduler | None = None) -> None:
    """Pause a scheduled job."""
    (target or scheduler).pause_job(job_id)
    logger.info(f"Paused job: {job_id}")


def resume_job(job_id: str, target: AsyncIOScheduler | None = None) -> None:
    """Resume a paused job."""
    (target or scheduler).resume_job(job_id)
    logger.info(f"Resumed job: {job_id}")
