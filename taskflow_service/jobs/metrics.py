"""Prometheus metrics for periodic job runs.

Usage:
    from taskflow_service.jobs.metrics import job_runs_total

    job_runs_total.labels(job="process_due", status="success").inc()
"""

from __future__ import annotations

from prometheus_client import Counter, Histogram

job_runs_total = Counter(
    "taskflow_job_runs_total",
    "Total number of periodic job invocations",
    labelnames=["job", "status"],
)
"""
Counter for job invocations.

Labels:
    job: process_due, mark_overdue, cleanup_sent, recompute_user_stats
    status: success, failure, skipped
"""

job_duration_seconds = Histogram(
    "taskflow_job_duration_seconds",
    "Wall-clock duration of one job invocation",
    labelnames=["job"],
    buckets=(0.1, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0, 120.0, 300.0),
)
"""
Histogram of job durations, recorded for successful and failed runs.
"""

job_items_total = Counter(
    "taskflow_job_items_total",
    "Total number of items a job wrote (delivered, marked, deleted, recomputed)",
    labelnames=["job"],
)
"""
Counter for items handled per job (JobResult.count).
"""

job_item_errors_total = Counter(
    "taskflow_job_item_errors_total",
    "Total number of per-item errors recorded by jobs",
    labelnames=["job"],
)
"""
Counter for isolated per-item failures (JobResult.errors).
"""
