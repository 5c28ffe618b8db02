"""Periodic job commands.

Run the engine's jobs once, outside the scheduler:
- jobs run <job>
- jobs run-all
"""

from __future__ import annotations

import sys

import click

from taskflow_service.cli.utils import (
    coro,
    echo_json,
    error,
    header,
    open_runtime,
    success,
    table,
    warning,
)
from taskflow_service.core.exceptions import AppException
from taskflow_service.jobs.results import JobResult
from taskflow_service.jobs.runner import JOB_NAMES

FORMAT_OPTION = click.option(
    "--format",
    "output_format",
    type=click.Choice(["table", "json"]),
    default="table",
    help="Output format",
)


@click.group(name="jobs")
def jobs() -> None:
    """Run periodic jobs on demand."""


def _print_results(results: list[JobResult], output_format: str) -> None:
    if output_format == "json":
        echo_json([r.to_dict() for r in results])
        return

    table(
        [
            {
                "Job": r.job,
                "Status": "skipped" if r.skipped else "ok",
                "Count": r.count,
                "Errors": len(r.errors),
                "Commits": r.commits,
                "Duration": f"{r.duration_seconds:.2f}s",
            }
            for r in results
        ],
        ["Job", "Status", "Count", "Errors", "Commits", "Duration"],
    )
    for r in results:
        if r.skipped:
            warning(f"{r.job}: lease held by another process")
        for item_error in r.errors:
            warning(f"{r.job}: {item_error}")


@jobs.command(name="run")
@click.argument("job_name", type=click.Choice(JOB_NAMES))
@FORMAT_OPTION
@click.pass_context
@coro
async def run_job(ctx: click.Context, job_name: str, output_format: str) -> None:
    """Run one job immediately.

    \b
    Examples:
      taskflow-service jobs run process_due
      taskflow-service jobs run cleanup_sent --format json
    """
    if output_format == "table":
        header(f"Running job: {job_name}")
    try:
        async with open_runtime(ctx) as runtime:
            result = await runtime.runner.run(job_name)
    except AppException as e:
        error(f"Job {job_name} failed: {e.detail}")
        sys.exit(1)

    _print_results([result], output_format)
    if output_format == "table" and not result.skipped:
        success(f"{job_name} finished: {result.count} item(s)")


@jobs.command(name="run-all")
@FORMAT_OPTION
@click.pass_context
@coro
async def run_all(ctx: click.Context, output_format: str) -> None:
    """Run every job once, in scheduling order."""
    if output_format == "table":
        header("Running all jobs")
    results: list[JobResult] = []
    failed = False
    async with open_runtime(ctx) as runtime:
        for job_name in JOB_NAMES:
            try:
                results.append(await runtime.runner.run(job_name))
            except AppException as e:
                error(f"Job {job_name} failed: {e.detail}")
                failed = True

    _print_results(results, output_format)
    if failed:
        sys.exit(1)
