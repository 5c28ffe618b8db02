"""Unit tests for BatchWriter chunking."""
from __future__ import annotations

from unittest.mock import AsyncMock

import pytest

from taskflow_service.core.exceptions import StoreError
from taskflow_service.infra.store import MAX_BATCH_OPERATIONS, BatchWriter, InMemoryStore


@pytest.mark.unit
class TestBatchWriter:
    """Test suite for bounded batch commits."""

    @pytest.mark.asyncio
    async def test_501_operations_produce_two_commits(self, store: InMemoryStore):
        """The 500th operation forces a commit; the last one is flushed."""
        async with BatchWriter(store) as writer:
            for i in range(501):
                await writer.set(f"items/i{i}", {"n": i})

        assert len(store.commits) == 2
        assert len(store.commits[0]) == 500
        assert len(store.commits[1]) == 1
        assert writer.commit_count == 2
        assert writer.operations_written == 501

    @pytest.mark.asyncio
    async def test_exactly_500_operations_is_one_commit(self, store: InMemoryStore):
        async with BatchWriter(store) as writer:
            for i in range(500):
                await writer.set(f"items/i{i}", {"n": i})

        assert [len(c) for c in store.commits] == [500]

    @pytest.mark.asyncio
    async def test_mixed_kinds_are_chunked_alike(self, store: InMemoryStore):
        store.preload({f"items/i{i}": {"n": i} for i in range(300)})

        async with BatchWriter(store, max_operations=250) as writer:
            for i in range(300):
                await writer.update(f"items/i{i}", {"n": -i})
            for i in range(200):
                await writer.delete(f"items/i{i}")

        assert [len(c) for c in store.commits] == [250, 250]
        snapshot = store.snapshot()
        assert len(snapshot) == 100
        assert snapshot["items/i250"] == {"n": -250}

    @pytest.mark.asyncio
    async def test_empty_flush_does_not_commit(self, store: InMemoryStore):
        writer = BatchWriter(store)
        assert await writer.flush() == 0
        assert store.commits == []

    @pytest.mark.parametrize("limit", [0, MAX_BATCH_OPERATIONS + 1])
    def test_invalid_limit_rejected(self, store: InMemoryStore, limit: int):
        with pytest.raises(ValueError, match="max_operations"):
            BatchWriter(store, max_operations=limit)

    @pytest.mark.asyncio
    async def test_exception_in_block_discards_pending(self, store: InMemoryStore):
        with pytest.raises(RuntimeError):
            async with BatchWriter(store) as writer:
                await writer.set("items/a", {"n": 1})
                raise RuntimeError("boom")

        assert store.commits == []
        assert await store.get("items/a") is None

    @pytest.mark.asyncio
    async def test_failed_commit_keeps_pending_operations(self):
        failing = AsyncMock()
        failing.commit.side_effect = StoreError("down")
        writer = BatchWriter(failing)
        await writer.set("items/a", {"n": 1})

        with pytest.raises(StoreError):
            await writer.commit()

        assert writer.pending_count == 1
        assert writer.commit_count == 0
