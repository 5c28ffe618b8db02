"""Unit tests for structured logging helpers."""
from __future__ import annotations

import json
import logging
from datetime import UTC, datetime

import pytest

from taskflow_service.infra.logging import (
    ContextInjectingFilter,
    JSONFormatter,
    clear_log_context,
    configure_logging,
    get_lazy_logger,
    get_log_context,
    log_context,
    set_log_context,
    shutdown,
)


def _record(msg: str = "Job finished", **extra) -> logging.LogRecord:
    record = logging.LogRecord("JobRunner", logging.INFO, __file__, 1, msg, None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


@pytest.mark.unit
class TestJSONFormatter:
    def test_formats_extra_fields_as_json(self):
        formatter = JSONFormatter(static={"service": "taskflow-service"})
        when = datetime(2025, 1, 15, tzinfo=UTC)

        line = formatter.format(_record(count=3, started_at=when))
        data = json.loads(line)

        assert data["level"] == "INFO"
        assert data["logger"] == "JobRunner"
        assert data["message"] == "Job finished"
        assert data["count"] == 3
        assert data["started_at"] == when.isoformat()
        assert data["service"] == "taskflow-service"
        assert data["timestamp"].endswith("Z")
        assert "trace_id" not in data

    def test_exception_is_single_line(self):
        formatter = JSONFormatter()
        try:
            raise ValueError("bad\nvalue")
        except ValueError:
            import sys

            record = _record()
            record.exc_info = sys.exc_info()

        line = formatter.format(record)

        assert "\n" not in line
        assert "ValueError" in json.loads(line)["exception"]


@pytest.mark.unit
class TestLogContext:
    def test_log_context_is_scoped(self):
        clear_log_context()
        set_log_context(run_id="r1")

        with log_context(job="cleanup_sent"):
            assert get_log_context() == {"run_id": "r1", "job": "cleanup_sent"}

        assert get_log_context() == {"run_id": "r1"}
        clear_log_context()

    def test_filter_injects_without_overwriting(self):
        record = _record(job="explicit")
        with log_context(job="from-context", user_id="u1"):
            assert ContextInjectingFilter().filter(record) is True

        assert record.job == "explicit"
        assert record.user_id == "u1"


@pytest.mark.unit
def test_lazy_logger_skips_disabled_levels(caplog):
    lazy = get_lazy_logger("taskflow.lazy.test")
    calls = []

    def build() -> str:
        calls.append(1)
        return "expensive"

    with caplog.at_level(logging.INFO, logger="taskflow.lazy.test"):
        lazy.debug(build)
    assert calls == []

    with caplog.at_level(logging.DEBUG, logger="taskflow.lazy.test"):
        lazy.debug(build)
    assert calls == [1]
    assert "expensive" in caplog.text


@pytest.mark.unit
def test_configure_logging_writes_json_lines_with_context(tmp_path):
    log_file = tmp_path / "logs" / "taskflow.log.jsonl"
    configure_logging(
        log_level="INFO",
        file_path=log_file,
        console_enabled=False,
        capture_warnings=False,
    )
    try:
        with log_context(job="cleanup_sent"):
            logging.getLogger("taskflow_service.jobs.runner").info(
                "Job finished", extra={"count": 3}
            )
        logging.getLogger("taskflow_service.jobs.runner").debug("dropped")
    finally:
        shutdown()

    lines = [json.loads(line) for line in log_file.read_text().splitlines()]
    assert len(lines) == 1
    assert lines[0]["message"] == "Job finished"
    assert lines[0]["job"] == "cleanup_sent"
    assert lines[0]["count"] == 3
    assert lines[0]["service"] == "taskflow-service"


@pytest.mark.unit
def test_configure_logging_plain_text(tmp_path):
    log_file = tmp_path / "plain.log"
    configure_logging(
        log_level="INFO",
        file_path=log_file,
        json_logs=False,
        console_enabled=False,
        capture_warnings=False,
    )
    try:
        logging.getLogger("taskflow_service.cli").warning("Lease held elsewhere")
    finally:
        shutdown()

    (line,) = log_file.read_text().splitlines()
    assert line.endswith(" - WARNING - taskflow_service.cli - Lease held elsewhere")
