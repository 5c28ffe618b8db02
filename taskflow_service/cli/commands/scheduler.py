"""Scheduler commands.

This module provides CLI commands for the APScheduler job loop:
- List the configured jobs and their triggers
- Run the scheduler in the foreground
"""

from __future__ import annotations

import asyncio

import click

from taskflow_service.cli.utils import (
    coro,
    echo_json,
    header,
    info,
    open_runtime,
    success,
    table,
)


@click.group(name="scheduler")
def scheduler() -> None:
    """Scheduled job management commands."""


@scheduler.command(name="list")
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["table", "json"]),
    default="table",
    help="Output format",
)
@click.pass_context
@coro
async def list_jobs(ctx: click.Context, output_format: str) -> None:
    """List the scheduled jobs and their triggers."""
    from taskflow_service.jobs.scheduler import (
        create_scheduler,
        get_job_status,
        setup_scheduled_jobs,
    )

    async with open_runtime(ctx) as runtime:
        target = create_scheduler(runtime.settings.scheduler)
        setup_scheduled_jobs(runtime.runner, runtime.settings.scheduler, target=target)
        jobs = get_job_status(target)

    if output_format == "json":
        echo_json(jobs)
        return

    header("Scheduled Jobs")
    table(
        [
            {
                "ID": job["id"],
                "Name": job["name"],
                "Next Run": job["next_run_time"] or "not started",
                "Trigger": job["trigger"],
            }
            for job in jobs
        ],
        ["ID", "Name", "Next Run", "Trigger"],
    )
    click.echo()
    success(f"Total: {len(jobs)} scheduled jobs")


@scheduler.command(name="run")
@click.option(
    "--metrics-port",
    type=int,
    default=None,
    help="Expose Prometheus metrics on this port (default: SCHEDULER_METRICS_PORT)",
)
@click.pass_context
@coro
async def run_scheduler(ctx: click.Context, metrics_port: int | None) -> None:
    """Run the job scheduler in the foreground until interrupted.

    \b
    Examples:
      taskflow-service scheduler run
      taskflow-service scheduler run --metrics-port 9100
    """
    from prometheus_client import start_http_server

    from taskflow_service.jobs.scheduler import (
        create_scheduler,
        setup_scheduled_jobs,
        start_scheduler,
        stop_scheduler,
    )

    async with open_runtime(ctx) as runtime:
        settings = runtime.settings.scheduler
        target = create_scheduler(settings)
        setup_scheduled_jobs(runtime.runner, settings, target=target)

        port = metrics_port or settings.metrics_port
        if port:
            start_http_server(port)
            info(f"Metrics available on :{port}/metrics")

        await start_scheduler(target)
        header("Scheduler running (Ctrl+C to stop)")
        try:
            await asyncio.Event().wait()
        finally:
            await stop_scheduler(target)
