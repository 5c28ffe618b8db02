"""Notification commands: schedule, cancel, stats and immediate send."""

from __future__ import annotations

import sys

import click

from taskflow_service.cli.utils import (
    coro,
    echo_json,
    error,
    info,
    open_runtime,
    success,
    table,
)
from taskflow_service.core.exceptions import AppException
from taskflow_service.features.notifications.models import NotificationPayload
from taskflow_service.features.tasks.models import Task, task_path


@click.group(name="notifications")
def notifications() -> None:
    """Reminder scheduling and delivery commands."""


@notifications.command(name="schedule")
@click.argument("task_id")
@click.option(
    "--offset",
    "offsets",
    type=int,
    multiple=True,
    help="Lead time in minutes (repeatable; default: NOTIFY_DEFAULT_OFFSETS_MINUTES)",
)
@click.option("--reschedule", is_flag=True, help="Cancel pending reminders first")
@click.pass_context
@coro
async def schedule(
    ctx: click.Context, task_id: str, offsets: tuple[int, ...], reschedule: bool
) -> None:
    """Schedule reminders for the stored task TASK_ID."""
    try:
        async with open_runtime(ctx) as runtime:
            doc = await runtime.store.get(task_path(task_id))
            if doc is None:
                error(f"Task {task_id} not found")
                sys.exit(1)
            task = Task.from_document(doc)
            service = runtime.notifications
            action = service.reschedule_for_task if reschedule else service.schedule_for_task
            result = await action(task, list(offsets) or None)
    except AppException as e:
        error(f"Failed to schedule reminders: {e.detail}")
        sys.exit(1)

    if not result.scheduled_count:
        info("No reminders scheduled (no due time, or every reminder time has passed)")
        return
    for notification in result.scheduled:
        info(f"{notification.id} at {notification.scheduled_for.isoformat()}")
    success(f"Scheduled {result.scheduled_count} reminder(s) for task {task_id}")


@notifications.command(name="cancel")
@click.argument("user_id")
@click.argument("task_id")
@click.pass_context
@coro
async def cancel(ctx: click.Context, user_id: str, task_id: str) -> None:
    """Cancel USER_ID's pending reminders for TASK_ID."""
    try:
        async with open_runtime(ctx) as runtime:
            result = await runtime.notifications.cancel_for_task(user_id, task_id)
    except AppException as e:
        error(f"Failed to cancel reminders: {e.detail}")
        sys.exit(1)
    success(f"Cancelled {result.cancelled_count} pending reminder(s)")


@notifications.command(name="stats")
@click.argument("user_id")
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["table", "json"]),
    default="table",
    help="Output format",
)
@click.pass_context
@coro
async def stats(ctx: click.Context, user_id: str, output_format: str) -> None:
    """Show notification statistics for USER_ID."""
    async with open_runtime(ctx) as runtime:
        result = await runtime.notifications.get_notification_stats(user_id)

    data = result.to_dict()
    if output_format == "json":
        echo_json(data)
        return
    table(
        [{"Metric": key, "Value": value} for key, value in data.items() if key != "typeBreakdown"]
        + [{"Metric": name, "Value": count} for name, count in data["typeBreakdown"].items()],
        ["Metric", "Value"],
    )


def _parse_data(ctx: click.Context, param: click.Parameter, values: tuple[str, ...]) -> dict[str, str]:
    data: dict[str, str] = {}
    for item in values:
        key, sep, value = item.partition("=")
        if not sep or not key:
            raise click.BadParameter(f"expected KEY=VALUE, got {item!r}")
        data[key] = value
    return data


@notifications.command(name="send")
@click.argument("user_id")
@click.option("--title", required=True, help="Notification title")
@click.option("--body", required=True, help="Notification body")
@click.option("--icon", default=None, help="Notification icon")
@click.option("--data", "data", multiple=True, callback=_parse_data, help="KEY=VALUE data entry")
@click.pass_context
@coro
async def send(
    ctx: click.Context,
    user_id: str,
    title: str,
    body: str,
    icon: str | None,
    data: dict[str, str],
) -> None:
    """Push a notification to USER_ID's devices now."""
    payload = NotificationPayload(title=title, body=body, data=data, icon=icon)
    try:
        async with open_runtime(ctx) as runtime:
            report = await runtime.notifications.send_immediate(user_id, payload)
    except AppException as e:
        error(f"Failed to send notification: {e.detail}")
        sys.exit(1)
    success(
        f"Delivered to {report.success_count} device(s), "
        f"{report.failure_count} failed, {len(report.pruned_tokens)} pruned"
    )
