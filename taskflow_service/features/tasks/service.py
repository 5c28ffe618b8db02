"""Task lifecycle hooks that keep user statistics current between nightly runs."""

from __future__ import annotations

from typing import TYPE_CHECKING

from taskflow_service.core.services.base import BaseService, Clock
from taskflow_service.features.tasks.models import Task, TaskStatus, user_path
from taskflow_service.infra.store import Increment, WriteOp

if TYPE_CHECKING:
    from taskflow_service.infra.store import Store


class TaskStatsService(BaseService):
    """Incremental user-stat updates triggered by task changes."""

    def __init__(self, store: Store, clock: Clock | None = None) -> None:
        super().__init__(clock)
        self.store = store

    async def on_task_completed(self, before: Task | None, after: Task) -> bool:
        """Bump the owner's counters when a task transitions to completed.

        Args:
            before: Task state before the change (None for a new task).
            after: Task state after the change.

        Returns:
            True if the user's stats were updated.
        """
        was_completed = before is not None and before.status == TaskStatus.COMPLETED
        if was_completed or after.status != TaskStatus.COMPLETED:
            return False

        await self.store.commit(
            [
                WriteOp.update(
                    user_path(after.user_id),
                    {
                        "stats.completedTasks": Increment(1),
                        "stats.activeTasks": Increment(-1),
                        "lastActiveAt": self.now(),
                    },
                )
            ]
        )
        self.logger.info(
            "Updated completion stats",
            extra={
                "user_id": after.user_id,
                "task_id": after.id,
                "operation": "task_stats.on_task_completed",
            },
        )
        return True
