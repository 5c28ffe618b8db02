"""Unit tests for APScheduler job registration."""
from __future__ import annotations

from unittest.mock import AsyncMock

import pytest

from taskflow_service.core.settings import SchedulerSettings
from taskflow_service.jobs.results import JobResult
from taskflow_service.jobs.scheduler import (
    create_scheduler,
    get_job_status,
    pause_job,
    resume_job,
    run_job,
    setup_scheduled_jobs,
)


@pytest.fixture
def settings() -> SchedulerSettings:
    return SchedulerSettings()


@pytest.mark.unit
class TestSetupScheduledJobs:
    def test_registers_four_jobs(self, runner, settings):
        target = create_scheduler(settings)

        setup_scheduled_jobs(runner, settings, target=target)

        jobs = {job["id"]: job for job in get_job_status(target)}
        assert set(jobs) == {"process_due", "mark_overdue", "cleanup_sent", "recompute_user_stats"}
        assert "interval[0:05:00]" in jobs["process_due"]["trigger"]
        assert "interval[1:00:00]" in jobs["mark_overdue"]["trigger"]
        assert "hour='2'" in jobs["cleanup_sent"]["trigger"]
        assert "hour='3'" in jobs["recompute_user_stats"]["trigger"]

    def test_setup_is_idempotent(self, runner, settings):
        target = create_scheduler(settings)

        setup_scheduled_jobs(runner, settings, target=target)
        setup_scheduled_jobs(runner, settings, target=target)

        assert len(get_job_status(target)) == 4

    def test_custom_cadence(self, runner):
        settings = SchedulerSettings(process_due_interval_minutes=1, cleanup_hour=4)
        target = create_scheduler(settings)

        setup_scheduled_jobs(runner, settings, target=target)

        jobs = {job["id"]: job for job in get_job_status(target)}
        assert "interval[0:01:00]" in jobs["process_due"]["trigger"]
        assert "hour='4'" in jobs["cleanup_sent"]["trigger"]

    @pytest.mark.asyncio
    async def test_pause_and_resume(self, runner, settings):
        target = create_scheduler(settings)
        setup_scheduled_jobs(runner, settings, target=target)
        target.start(paused=True)
        try:
            pause_job("process_due", target)
            assert target.get_job("process_due").next_run_time is None

            resume_job("process_due", target)
            assert target.get_job("process_due").next_run_time is not None
        finally:
            target.shutdown(wait=False)


@pytest.mark.unit
class TestRunJob:
    @pytest.mark.asyncio
    async def test_runs_the_job(self, now):
        runner = AsyncMock()
        runner.run.return_value = JobResult(job="process_due", started_at=now)

        await run_job(runner, "process_due")

        runner.run.assert_awaited_once_with("process_due")

    @pytest.mark.asyncio
    async def test_failure_is_swallowed(self):
        runner = AsyncMock()
        runner.run.side_effect = RuntimeError("boom")

        await run_job(runner, "process_due")

        runner.run.assert_awaited_once()
