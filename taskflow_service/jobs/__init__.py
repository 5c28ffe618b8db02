"""Periodic jobs: runner, leases, scheduling and runtime wiring.

Usage:
    from taskflow_service.jobs import engine_runtime

    async with engine_runtime() as runtime:
        result = await runtime.runner.run("mark_overdue")
"""

from taskflow_service.jobs.lease import JobLease
from taskflow_service.jobs.results import JobResult
from taskflow_service.jobs.runner import JOB_NAMES, JobRunner
from taskflow_service.jobs.runtime import EngineRuntime, build_runtime, engine_runtime

__all__ = [
    "JOB_NAMES",
    "EngineRuntime",
    "JobLease",
    "JobResult",
    "JobRunner",
    "build_runtime",
    "engine_runtime",
]
