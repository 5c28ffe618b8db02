"""Main CLI entry point for taskflow-service management commands."""

import click

from taskflow_service.cli.commands import db, devices, jobs, notifications, scheduler
from taskflow_service.infra.logging.config import setup_logging


@click.group()
@click.version_option(version="0.1.0", prog_name="taskflow-service")
@click.pass_context
def cli(ctx: click.Context) -> None:
    """TaskFlow Service CLI - Notification engine and periodic jobs.

    \b
    Command Groups:
      jobs           Run periodic jobs on demand
      scheduler      Run and inspect the job scheduler
      devices        Push device registration
      notifications  Reminder scheduling and delivery
      db             Document store management

    \b
    Quick Start:
      taskflow-service db init                    # Create the store schema
      taskflow-service devices register u1 TOKEN  # Register a device
      taskflow-service jobs run process_due       # Deliver due reminders
      taskflow-service scheduler run              # Run all jobs on schedule
    """
    ctx.ensure_object(dict)


cli.add_command(jobs.jobs)
cli.add_command(scheduler.scheduler)
cli.add_command(devices.devices)
cli.add_command(notifications.notifications)
cli.add_command(db.db)


def main() -> None:
    """Entry point for CLI."""
    setup_logging()
    cli(obj={})


if __name__ == "__main__":
    main()
