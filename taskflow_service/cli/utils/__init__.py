"""CLI utilities for running async operations and formatting output."""

from taskflow_service.cli.utils.async_runner import coro
from taskflow_service.cli.utils.formatters import (
    echo_json,
    error,
    header,
    info,
    success,
    table,
    warning,
)
from taskflow_service.cli.utils.runtime import open_runtime

__all__ = [
    "coro",
    "echo_json",
    "error",
    "header",
    "info",
    "open_runtime",
    "success",
    "table",
    "warning",
]
