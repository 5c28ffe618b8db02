"""Task inputs consumed by the notification engine."""

from taskflow_service.features.tasks.models import (
    ACTIVE_STATUSES,
    TASKS_COLLECTION,
    USERS_COLLECTION,
    Task,
    TaskStatus,
    task_path,
    user_path,
)
from taskflow_service.features.tasks.service import TaskStatsService
from taskflow_service.features.tasks.stats import UserTaskStats

__all__ = [
    "ACTIVE_STATUSES",
    "TASKS_COLLECTION",
    "USERS_COLLECTION",
    "Task",
    "TaskStatsService",
    "TaskStatus",
    "UserTaskStats",
    "task_path",
    "user_path",
]
