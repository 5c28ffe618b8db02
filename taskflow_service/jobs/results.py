"""Job run summaries."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any


@dataclass(slots=True)
class JobResult:
    """Outcome of one job invocation.

    Attributes:
        job: Job name.
        success: False only when the invocation itself failed.
        count: Items the job wrote (delivered, marked, deleted, recomputed).
        errors: Isolated per-item failures.
        commits: Atomic commits performed.
        started_at: Clock time the run started.
        duration_seconds: Wall-clock duration.
        skipped: True when another process held the job's lease.
    """

    job: str
    started_at: datetime
    success: bool = True
    count: int = 0
    errors: list[str] = field(default_factory=list)
    commits: int = 0
    duration_seconds: float = 0.0
    skipped: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "job": self.job,
            "success": self.success,
            "count": self.count,
            "errors": list(self.errors),
            "commits": self.commits,
            "started_at": self.started_at.isoformat(),
            "duration_seconds": round(self.duration_seconds, 3),
            "skipped": self.skipped,
        }
