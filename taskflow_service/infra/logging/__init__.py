"""Logging infrastructure.

Provides structured logging with:
- JSONL format for log aggregation
- Automatic context injection (job, run_id, user_id, ...)
- QueueHandler + QueueListener for non-blocking I/O
- Lazy evaluation for expensive DEBUG messages
- OpenTelemetry trace correlation

Basic usage:
    import logging

    from taskflow_service.infra.logging import get_lazy_logger, set_log_context

    logger = logging.getLogger(__name__)
    set_log_context(job="process_due")
    logger.info("Processing due notifications")  # includes job=process_due

    lazy_logger = get_lazy_logger(__name__)
    lazy_logger.debug(lambda: f"Payload: {render(payload)}")
"""

from taskflow_service.infra.logging.config import (
    complete,
    configure_logging,
    setup_logging,
    shutdown,
)
from taskflow_service.infra.logging.context import (
    ContextInjectingFilter,
    clear_log_context,
    get_log_context,
    log_context,
    set_log_context,
)
from taskflow_service.infra.logging.formatters import JSONFormatter
from taskflow_service.infra.logging.lazy import LazyLoggerAdapter, get_lazy_logger

__all__ = [
    "ContextInjectingFilter",
    "JSONFormatter",
    "LazyLoggerAdapter",
    "clear_log_context",
    "complete",
    "configure_logging",
    "get_lazy_logger",
    "get_log_context",
    "log_context",
    "set_log_context",
    "setup_logging",
    "shutdown",
]
