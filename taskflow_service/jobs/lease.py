"""Store-backed leases that keep one job from running twice at once."""

from __future__ import annotations

import logging
import os
import socket
from datetime import datetime, timedelta
from typing import TYPE_CHECKING
from uuid import uuid4

if TYPE_CHECKING:
    from taskflow_service.infra.store import Store

logger = logging.getLogger(__name__)


def default_holder() -> str:
    """Identity of this process: `host:pid:random`."""
    return f"{socket.gethostname()}:{os.getpid()}:{uuid4().hex[:8]}"


class JobLease:
    """Acquire and release the `_leases/{job}` document.

    A lease expires after `ttl`, so a holder that crashed mid-run blocks
    the job for at most one TTL.
    """

    def __init__(self, store: Store, *, ttl: timedelta, holder: str | None = None) -> None:
        self.store = store
        self.ttl = ttl
        self.holder = holder or default_holder()

    async def acquire(self, job: str, now: datetime) -> bool:
        acquired = await self.store.acquire_lease(job, self.holder, now=now, ttl=self.ttl)
        if not acquired:
            logger.info(
                "Job lease held elsewhere, skipping run",
                extra={"job": job, "holder": self.holder, "operation": "lease.acquire"},
            )
        return acquired

    async def release(self, job: str) -> None:
        """Release the lease. Failures are logged; the lease then simply expires."""
        try:
            await self.store.release_lease(job, self.holder)
        except Exception:
            logger.warning(
                "Failed to release job lease",
                exc_info=True,
                extra={"job": job, "holder": self.holder, "operation": "lease.release"},
            )
