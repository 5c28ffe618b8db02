"""Logging configuration settings."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class LoggingSettings(BaseSettings):
    """Logging for the engine's jobs and CLI.

    Job runs log one JSON line per event so `job`, `run_id` and the
    per-item counters stay queryable. File output is off by default; the
    scheduler process usually runs under a supervisor that collects stderr.

    Environment variables use LOG_ prefix, e.g. LOG_LEVEL=DEBUG, LOG_FILE_ENABLED=true.
    """

    service_name: str = Field(
        default="taskflow-service",
        description="Static `service` field of every JSON record",
    )
    level: LogLevel = Field(default="INFO", description="Root logger level")
    json_logs: bool = Field(
        default=True,
        alias="json",
        description="JSON Lines output; plain text when False (handy for the CLI)",
    )
    console_enabled: bool = Field(default=True, description="Log to stderr")
    console_level: LogLevel | None = Field(
        default=None, description="stderr handler level; defaults to `level`"
    )
    file_enabled: bool = Field(default=False, description="Also log to a rotating file")
    file_path: Path = Field(
        default=Path("logs/taskflow-service.log.jsonl"),
        description="Rotating log file, used when file_enabled is set",
    )
    file_level: LogLevel | None = Field(
        default=None, description="File handler level; defaults to `level`"
    )
    file_max_bytes: int = Field(
        default=10 * 1024 * 1024, ge=1024, description="Rotate after this many bytes"
    )
    file_backup_count: int = Field(default=5, ge=0, le=100, description="Rotated files kept")
    include_context: bool = Field(
        default=True,
        description="Inject job/run_id/task_id context into every record",
    )
    capture_warnings: bool = Field(
        default=True, description="Route `warnings` through logging"
    )

    @field_validator("level", "console_level", "file_level", mode="before")
    @classmethod
    def normalize_level(cls, v: str | None) -> str | None:
        return v.upper() if isinstance(v, str) else v

    def to_logging_kwargs(self) -> dict[str, Any]:
        """Keyword arguments for `configure_logging`."""
        return {
            "service_name": self.service_name,
            "log_level": self.level,
            "json_logs": self.json_logs,
            "console_enabled": self.console_enabled,
            "console_level": self.console_level or self.level,
            "file_path": str(self.file_path) if self.file_enabled else None,
            "file_level": self.file_level or self.level,
            "file_max_bytes": self.file_max_bytes,
            "file_backup_count": self.file_backup_count,
            "include_context": self.include_context,
            "capture_warnings": self.capture_warnings,
        }

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        frozen=True,
        extra="ignore",
        populate_by_name=True,
        env_ignore_empty=True,
    )


__all__ = ["LogLevel", "LoggingSettings"]
