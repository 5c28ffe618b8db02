"""Base service class for business logic."""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import UTC, datetime

from taskflow_service.infra.logging import get_lazy_logger

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    """Return the current time as an aware UTC datetime."""
    return datetime.now(UTC)


class BaseService:
    """Base class for all service classes.

    Provides loggers and the injected clock shared by the engine services.

    Loggers:
        - self.logger: Standard logger for INFO/WARNING/ERROR (always evaluated)
        - self._lazy: Lazy logger for DEBUG (zero overhead when DEBUG disabled)

    Example:
            class PlannerService(BaseService):
            def __init__(self, store: Store, clock: Clock | None = None):
                super().__init__(clock)
                self.store = store

            async def plan(self, task: Task) -> None:
                self.logger.info("Planning", extra={"task_id": task.id})
                self._lazy.debug(lambda: f"Offsets: {expensive_render()}")
    """

    def __init__(self, clock: Clock | None = None) -> None:
        """Initialize base service with loggers and clock."""
        class_name = self.__class__.__name__
        self.logger = logging.getLogger(class_name)
        self._lazy = get_lazy_logger(class_name)
        self._clock: Clock = clock or utc_now

    def now(self) -> datetime:
        """Current time according to the injected clock."""
        return self._clock()
