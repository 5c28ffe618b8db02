"""Context management for structured logging.

Fields set with set_log_context() are attached to every log record emitted
from the same asyncio task, so a job run only has to announce its name and
run id once.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any

# Each asyncio task gets its own copy automatically
_log_context: ContextVar[dict[str, Any]] = ContextVar("log_context", default={})


def set_log_context(**kwargs: Any) -> None:
    """Add fields to the logging context of the current task.

    Example:
        ```python
        set_log_context(job="process_due", run_id="3f2a")
        logger.info("Job started")  # includes job and run_id
        ```
    """
    current = _log_context.get().copy()
    current.update(kwargs)
    _log_context.set(current)


def get_log_context() -> dict[str, Any]:
    """Return a copy of the current logging context."""
    return _log_context.get().copy()


def clear_log_context() -> None:
    """Remove every field from the current logging context."""
    _log_context.set({})


@contextmanager
def log_context(**kwargs: Any) -> Iterator[None]:
    """Scope logging context fields to a block.

    Example:
        ```python
        with log_context(job="cleanup_sent"):
            await runner.cleanup_sent()
        ```
    """
    token = _log_context.set({**_log_context.get(), **kwargs})
    try:
        yield
    finally:
        _log_context.reset(token)


class ContextInjectingFilter(logging.Filter):
    """Logging filter that copies the contextvars log context onto records.

    Installed on the root queue handler by configure_logging(), so formatters
    (especially JSONFormatter) see the fields without any call-site changes.
    Existing record attributes are never overwritten.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        """Inject context into log record.

        Args:
            record: The log record to enhance with context.

        Returns:
            True (always allow the record to be logged).
        """
        for key, value in _log_context.get().items():
            if not hasattr(record, key):
                setattr(record, key, value)
        return True
