"""Bounded write batching on top of a Store.

Every write made by the engine goes through a BatchWriter so that no
atomic commit ever exceeds MAX_BATCH_OPERATIONS, whatever the operation
kind.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from types import TracebackType
from typing import TYPE_CHECKING, Any, Self

from taskflow_service.infra.logging import get_lazy_logger
from taskflow_service.infra.store.ports import MAX_BATCH_OPERATIONS, WriteOp

if TYPE_CHECKING:
    from taskflow_service.infra.store.ports import Store

logger = logging.getLogger(__name__)
lazy_logger = get_lazy_logger(__name__)


class BatchWriter:
    """Accumulates write operations and commits them in bounded chunks.

    When the pending count reaches the limit a commit is forced and the
    accumulator resets; whatever remains is committed by flush(), or when
    the `async with` block exits without an exception.

    Example:
        async with BatchWriter(store) as writer:
            for doc in docs:
                await writer.update(doc.path, {"status": "overdue"})
        print(writer.commit_count, writer.operations_written)
    """

    def __init__(self, store: Store, *, max_operations: int = MAX_BATCH_OPERATIONS) -> None:
        """Initialize the writer.

        Args:
            store: Store receiving the commits.
            max_operations: Operations per commit, at most MAX_BATCH_OPERATIONS.

        Raises:
            ValueError: If max_operations is outside 1..MAX_BATCH_OPERATIONS.
        """
        if not 1 <= max_operations <= MAX_BATCH_OPERATIONS:
            raise ValueError(
                f"max_operations must be between 1 and {MAX_BATCH_OPERATIONS}, "
                f"got {max_operations}"
            )
        self._store = store
        self._max_operations = max_operations
        self._pending: list[WriteOp] = []
        self.commit_count = 0
        self.operations_written = 0

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    async def add(self, op: WriteOp) -> None:
        """Queue an operation, committing if the batch is now full."""
        self._pending.append(op)
        if len(self._pending) >= self._max_operations:
            await self.commit()

    async def set(self, path: str, data: Mapping[str, Any], *, merge: bool = False) -> None:
        await self.add(WriteOp.set(path, data, merge=merge))

    async def update(self, path: str, data: Mapping[str, Any]) -> None:
        await self.add(WriteOp.update(path, data))

    async def delete(self, path: str) -> None:
        await self.add(WriteOp.delete(path))

    async def commit(self) -> int:
        """Commit pending operations now.

        Returns:
            Number of operations committed (0 when nothing was pending).

        Raises:
            StoreError: If the store rejects the batch. Pending operations are
                kept so the caller can decide what to do.
        """
        if not self._pending:
            return 0

        batch = list(self._pending)
        await self._store.commit(batch)
        self._pending.clear()
        self.commit_count += 1
        self.operations_written += len(batch)
        lazy_logger.debug(
            lambda: f"batch.commit: ops={len(batch)}, commits={self.commit_count}"
        )
        return len(batch)

    async def flush(self) -> int:
        """Commit whatever remains at the end of a unit of work."""
        return await self.commit()

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        if exc_type is None:
            await self.flush()
        elif self._pending:
            logger.warning(
                "Discarding uncommitted batch operations",
                extra={"pending": len(self._pending), "operation": "batch.exit"},
            )
            self._pending.clear()
