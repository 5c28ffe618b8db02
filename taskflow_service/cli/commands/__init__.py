"""CLI command modules."""

from taskflow_service.cli.commands import db, devices, jobs, notifications, scheduler

__all__ = [
    "db",
    "devices",
    "jobs",
    "notifications",
    "scheduler",
]
