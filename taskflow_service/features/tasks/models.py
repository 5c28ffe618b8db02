"""Task and user documents consumed by the engine.

Tasks are owned by the CRUD service; the engine only reads `dueTime`,
`status` and `title`, and writes `status="overdue"`.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum

from taskflow_service.infra.store import Document

TASKS_COLLECTION = "tasks"
USERS_COLLECTION = "users"


class TaskStatus(StrEnum):
    TODO = "todo"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    OVERDUE = "overdue"


ACTIVE_STATUSES = frozenset({TaskStatus.TODO, TaskStatus.IN_PROGRESS})


def task_path(task_id: str) -> str:
    return f"{TASKS_COLLECTION}/{task_id}"


def user_path(user_id: str) -> str:
    return f"{USERS_COLLECTION}/{user_id}"


@dataclass(frozen=True, slots=True)
class Task:
    """The slice of a task the notification engine works with."""

    id: str
    user_id: str
    title: str = ""
    due_time: datetime | None = None
    status: TaskStatus | str = TaskStatus.TODO

    @classmethod
    def from_document(cls, doc: Document) -> Task:
        data = doc.data
        raw_status = data.get("status") or TaskStatus.TODO
        try:
            status: TaskStatus | str = TaskStatus(raw_status)
        except ValueError:
            # statuses added by the CRUD service pass through untouched
            status = raw_status
        return cls(
            id=doc.id,
            user_id=data.get("userId", ""),
            title=data.get("title", ""),
            due_time=data.get("dueTime"),
            status=status,
        )
