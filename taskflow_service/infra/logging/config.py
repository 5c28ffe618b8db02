"""Logging configuration setup.

Provides logging configuration using:
- dictConfig for the root level
- QueueHandler + QueueListener for non-blocking I/O
- ContextInjectingFilter on the queue handler (job name, operation)
- All handlers on root logger (child loggers propagate)
- JSONL format for machine parsing
"""

from __future__ import annotations

import atexit
import logging
import logging.config
import time
from logging.handlers import QueueHandler, QueueListener, RotatingFileHandler
from pathlib import Path
from queue import Queue
from typing import TYPE_CHECKING, Any

_log_queue: Queue[logging.LogRecord] | None = None
_listener: QueueListener | None = None
_queue_handler: QueueHandler | None = None
logger = logging.getLogger(__name__)
_LOGGING_INITIALIZED = False

DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
PLAIN_FORMAT = "%(asctime)s - %(levelname)s - %(name)s - %(message)s"

if TYPE_CHECKING:
    from taskflow_service.core.settings.logs import LoggingSettings


def complete() -> None:
    """Wait for all queued log records to be processed.

    Blocks (at most five seconds) until the QueueListener has drained the
    queue. Called automatically by shutdown().
    """
    if _log_queue is None or _listener is None:
        return

    max_wait = 5.0
    start = time.time()

    while not _log_queue.empty() and (time.time() - start) < max_wait:
        time.sleep(0.01)

    # Give the listener a moment to write the last record
    time.sleep(0.05)


def shutdown() -> None:
    """Shutdown logging system and stop QueueListener.

    Registered with atexit, but can be called manually, e.g. at the end of
    a CLI command.
    """
    global _log_queue, _listener, _queue_handler

    if _listener is not None:
        complete()
        _listener.stop()
        _listener = None

    if _queue_handler is not None:
        logging.getLogger().removeHandler(_queue_handler)
        _queue_handler = None

    _log_queue = None


def setup_logging(
    log_settings: LoggingSettings | None = None,
    *,
    force: bool = False,
    **configure_kwargs: Any,
) -> None:
    """Ensure logging is configured once across entrypoints.

    Args:
        log_settings: Optional logging settings instance. If omitted, settings
            are loaded via get_logging_settings().
        force: Reconfigure logging even if it was already initialized.
        **configure_kwargs: Explicit overrides for configure_logging().
    """
    global _LOGGING_INITIALIZED

    if _LOGGING_INITIALIZED and not force:
        return

    settings_obj = log_settings
    if settings_obj is None:
        from taskflow_service.core.settings import get_logging_settings

        settings_obj = get_logging_settings()

    log_config = settings_obj.to_logging_kwargs()
    if configure_kwargs:
        log_config = {**log_config, **configure_kwargs}

    configure_logging(**log_config)
    _LOGGING_INITIALIZED = True


def configure_logging(
    log_level: str = "INFO",
    console_level: str | None = None,
    file_level: str | None = None,
    file_path: str | Path | None = None,
    json_logs: bool = True,
    console_enabled: bool = True,
    include_context: bool = True,
    capture_warnings: bool = True,
    file_max_bytes: int = 10 * 1024 * 1024,
    file_backup_count: int = 5,
    service_name: str = "taskflow-service",
    **kwargs: Any,
) -> None:
    """Configure logging with dictConfig and QueueHandler pattern.

    All handlers hang off a QueueListener; the root logger only gets a
    QueueHandler, so logging from the event loop never blocks on I/O.

    Args:
        log_level: Root logger level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        console_level: Console handler level. If None, uses log_level.
        file_level: File handler level. If None, uses log_level.
        file_path: Path to log file. None disables file logging.
        json_logs: Enable JSONL (JSON Lines) structured logging.
        console_enabled: Enable console/stderr logging.
        include_context: Enable ContextInjectingFilter for auto context.
        capture_warnings: Forward Python warnings to logging system.
        file_max_bytes: Maximum log file size before rotation.
        file_backup_count: Number of rotated log files to keep.
        service_name: Static "service" field of JSON records.
        **kwargs: Unused settings, logged at DEBUG.

    Example:
        from taskflow_service.core.settings import get_logging_settings
        log_settings = get_logging_settings()
        configure_logging(**log_settings.to_logging_kwargs())
    """
    if kwargs:
        logger.debug("Unused logging kwargs supplied: %s", ", ".join(sorted(kwargs.keys())))

    if capture_warnings:
        logging.captureWarnings(True)

    # Replace any previous queue setup
    shutdown()

    resolved_path = Path(file_path) if file_path else None
    if resolved_path:
        resolved_path.parent.mkdir(parents=True, exist_ok=True)

    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "root": {"level": log_level.upper(), "handlers": []},
        }
    )

    def formatter() -> logging.Formatter:
        return _make_formatter(json_logs=json_logs, service_name=service_name)

    handlers: list[logging.Handler] = []
    if console_enabled:
        console_handler = logging.StreamHandler()
        console_handler.setLevel(getattr(logging, (console_level or log_level).upper()))
        console_handler.setFormatter(formatter())
        handlers.append(console_handler)

    if resolved_path:
        file_handler = RotatingFileHandler(
            resolved_path,
            maxBytes=file_max_bytes,
            backupCount=file_backup_count,
            encoding="utf-8",
        )
        file_handler.setLevel(getattr(logging, (file_level or log_level).upper()))
        file_handler.setFormatter(formatter())
        handlers.append(file_handler)

    _start_queue(handlers, include_context=include_context)


def _make_formatter(*, json_logs: bool, service_name: str) -> logging.Formatter:
    """JSON lines, or the plain `time - level - logger - message` layout."""
    from taskflow_service.infra.logging.formatters import JSONFormatter

    if json_logs:
        return JSONFormatter(static={"service": service_name})
    return logging.Formatter(fmt=PLAIN_FORMAT, datefmt=DATE_FORMAT)


def _start_queue(handlers: list[logging.Handler], *, include_context: bool) -> None:
    """Route the root logger through a QueueHandler drained by a QueueListener.

    The context filter sits on the QueueHandler so it sees records from every
    child logger, on the thread that logged them.
    """
    global _log_queue, _listener, _queue_handler

    _log_queue = Queue()
    if handlers:
        _listener = QueueListener(_log_queue, *handlers, respect_handler_level=True)
        _listener.start()
        atexit.register(shutdown)

    _queue_handler = QueueHandler(_log_queue)
    if include_context:
        from taskflow_service.infra.logging.context import ContextInjectingFilter

        _queue_handler.addFilter(ContextInjectingFilter())
    logging.getLogger().addHandler(_queue_handler)
