"""Per-user task statistics."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any

from taskflow_service.features.tasks.models import ACTIVE_STATUSES, TaskStatus


@dataclass(frozen=True, slots=True)
class UserTaskStats:
    """Counts written to a user's `stats` map."""

    total: int = 0
    completed: int = 0
    active: int = 0
    overdue: int = 0

    @classmethod
    def from_statuses(cls, statuses: Iterable[str]) -> UserTaskStats:
        total = completed = active = overdue = 0
        for raw in statuses:
            total += 1
            if raw == TaskStatus.COMPLETED:
                completed += 1
            elif raw == TaskStatus.OVERDUE:
                overdue += 1
            elif raw in ACTIVE_STATUSES:
                active += 1
        return cls(total=total, completed=completed, active=active, overdue=overdue)

    def to_updates(self) -> dict[str, Any]:
        """Dotted-field updates for the user document."""
        return {
            "stats.totalTasks": self.total,
            "stats.completedTasks": self.completed,
            "stats.activeTasks": self.active,
            "stats.overdueTasks": self.overdue,
        }
