"""Unit tests for the in-memory document store."""
from __future__ import annotations

from datetime import timedelta

import pytest

from taskflow_service.core.exceptions import StoreError
from taskflow_service.infra.store import (
    Increment,
    InMemoryStore,
    WriteOp,
    collection,
    collection_group,
    where,
)


@pytest.mark.unit
class TestQueries:
    """Collection and collection-group queries."""

    @pytest.mark.asyncio
    async def test_collection_query_only_returns_direct_children(self, store: InMemoryStore):
        store.preload(
            {
                "users/u1/notifications/a": {"sent": False},
                "users/u2/notifications/b": {"sent": False},
                "users/u1": {"name": "One"},
            }
        )

        docs = await store.query(collection("users/u1/notifications"))

        assert [d.path for d in docs] == ["users/u1/notifications/a"]

    @pytest.mark.asyncio
    async def test_collection_group_spans_parents(self, store: InMemoryStore):
        store.preload(
            {
                "users/u1/notifications/a": {"sent": False, "n": 2},
                "users/u2/notifications/b": {"sent": False, "n": 1},
                "users/u2/notifications/c": {"sent": True, "n": 0},
                "users/u2/deviceTokens/tok": {"sent": False},
            }
        )

        docs = await store.query(
            collection_group("notifications", where("sent", "==", False), order_by="n")
        )

        assert [d.id for d in docs] == ["b", "a"]

    @pytest.mark.asyncio
    async def test_limit_and_range_filters(self, store: InMemoryStore, now):
        store.preload(
            {f"tasks/t{i}": {"dueTime": now - timedelta(hours=i)} for i in range(5)}
        )

        docs = await store.query(
            collection("tasks", where("dueTime", "<", now), order_by="dueTime", limit=2)
        )

        assert [d.id for d in docs] == ["t4", "t3"]

    @pytest.mark.asyncio
    async def test_missing_field_never_matches(self, store: InMemoryStore):
        store.preload({"tasks/a": {"status": "todo"}, "tasks/b": {}})

        docs = await store.query(collection("tasks", where("status", "!=", "completed")))

        assert [d.id for d in docs] == ["a"]

    @pytest.mark.asyncio
    async def test_in_filter(self, store: InMemoryStore):
        store.preload({"tasks/a": {"status": "todo"}, "tasks/b": {"status": "completed"}})

        docs = await store.query(collection("tasks", where("status", "in", ["todo", "overdue"])))

        assert [d.id for d in docs] == ["a"]


@pytest.mark.unit
class TestCommit:
    """Atomic write batches."""

    @pytest.mark.asyncio
    async def test_update_applies_dotted_fields_and_increments(self, store: InMemoryStore):
        store.preload({"users/u1": {"stats": {"completedTasks": 2, "activeTasks": 3}}})

        await store.commit(
            [
                WriteOp.update(
                    "users/u1",
                    {"stats.completedTasks": Increment(1), "stats.activeTasks": Increment(-1)},
                )
            ]
        )

        doc = await store.get("users/u1")
        assert doc.data == {"stats": {"completedTasks": 3, "activeTasks": 2}}

    @pytest.mark.asyncio
    async def test_update_of_missing_document_fails_whole_batch(self, store: InMemoryStore):
        with pytest.raises(StoreError) as exc_info:
            await store.commit(
                [
                    WriteOp.set("tasks/a", {"status": "todo"}),
                    WriteOp.update("tasks/missing", {"status": "overdue"}),
                ]
            )

        assert exc_info.value.type == "document-not-found"
        assert await store.get("tasks/a") is None
        assert store.commits == []

    @pytest.mark.asyncio
    async def test_set_merge_keeps_other_fields(self, store: InMemoryStore):
        store.preload({"users/u1": {"name": "One", "stats": {"totalTasks": 1}}})

        await store.commit(
            [WriteOp.set("users/u1", {"stats": {"overdueTasks": 2}}, merge=True)]
        )

        doc = await store.get("users/u1")
        assert doc.data == {"name": "One", "stats": {"totalTasks": 1, "overdueTasks": 2}}

    @pytest.mark.asyncio
    async def test_oversized_batch_rejected(self, store: InMemoryStore):
        with pytest.raises(StoreError):
            await store.commit([WriteOp.delete(f"items/i{i}") for i in range(501)])

    @pytest.mark.asyncio
    async def test_delete_is_idempotent(self, store: InMemoryStore):
        await store.commit([WriteOp.delete("items/nothing")])
        assert store.write_count == 1

    def test_write_op_rejects_collection_path(self):
        with pytest.raises(ValueError):
            WriteOp.delete("users/u1/notifications")


@pytest.mark.unit
class TestCapabilities:
    """Token deactivation and leases."""

    @pytest.mark.asyncio
    async def test_find_and_deactivate_token_across_users(self, store: InMemoryStore, add_device):
        add_device("u1", "tok-a")
        add_device("u2", "tok-a")
        add_device("u2", "tok-b")

        count = await store.find_and_deactivate_token("tok-a")

        assert count == 2
        snapshot = store.snapshot()
        assert snapshot["users/u1/deviceTokens/tok-a"]["isActive"] is False
        assert snapshot["users/u2/deviceTokens/tok-a"]["isActive"] is False
        assert snapshot["users/u2/deviceTokens/tok-b"]["isActive"] is True

    @pytest.mark.asyncio
    async def test_lease_excludes_other_holders_until_expiry(self, store: InMemoryStore, now):
        ttl = timedelta(minutes=10)

        assert await store.acquire_lease("process_due", "a", now=now, ttl=ttl)
        assert not await store.acquire_lease("process_due", "b", now=now, ttl=ttl)
        assert await store.acquire_lease("process_due", "a", now=now, ttl=ttl)
        assert await store.acquire_lease(
            "process_due", "b", now=now + timedelta(minutes=11), ttl=ttl
        )

    @pytest.mark.asyncio
    async def test_release_only_by_holder(self, store: InMemoryStore, now):
        ttl = timedelta(minutes=10)
        await store.acquire_lease("cleanup_sent", "a", now=now, ttl=ttl)

        await store.release_lease("cleanup_sent", "b")
        assert await store.get("_leases/cleanup_sent") is not None

        await store.release_lease("cleanup_sent", "a")
        assert await store.get("_leases/cleanup_sent") is None
