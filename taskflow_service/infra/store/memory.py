"""In-memory document store.

Same semantics as the SQL backend, kept in a dict guarded by an
asyncio.Lock. Used by the test-suite, by `STORE_BACKEND=memory`, and as
the reference for how filters, updates and leases behave.
"""

from __future__ import annotations

import asyncio
import copy
from collections.abc import Mapping, Sequence
from datetime import datetime, timedelta
from typing import Any

from taskflow_service.core.exceptions import StoreError
from taskflow_service.infra.store.fields import (
    apply_updates,
    matches,
    materialize,
    merge_data,
    sort_key,
)
from taskflow_service.infra.store.paths import collection_id_of, split_path
from taskflow_service.infra.store.ports import (
    DEVICE_TOKENS_COLLECTION,
    LEASES_COLLECTION,
    MAX_BATCH_OPERATIONS,
    Document,
    Query,
    WriteKind,
    WriteOp,
    collection_group,
    where,
)


class InMemoryStore:
    """Dict-backed implementation of the Store protocol.

    Attributes:
        commits: Every committed batch, in order (inspected by tests).
    """

    def __init__(self, documents: Mapping[str, Mapping[str, Any]] | None = None) -> None:
        self._docs: dict[str, dict[str, Any]] = {}
        self._lock = asyncio.Lock()
        self.commits: list[list[WriteOp]] = []
        if documents:
            self.preload(documents)

    def preload(self, documents: Mapping[str, Mapping[str, Any]]) -> None:
        """Insert documents directly, bypassing batches and commit history."""
        for path, data in documents.items():
            split_path(path)
            self._docs[path] = materialize(data)

    def snapshot(self) -> dict[str, dict[str, Any]]:
        """Deep copy of every stored document keyed by path."""
        return copy.deepcopy(self._docs)

    @property
    def write_count(self) -> int:
        """Total operations committed so far."""
        return sum(len(batch) for batch in self.commits)

    async def get(self, path: str) -> Document | None:
        split_path(path)
        data = self._docs.get(path)
        if data is None:
            return None
        return Document(path=path, data=copy.deepcopy(data))

    async def query(self, query: Query) -> list[Document]:
        results: list[Document] = []
        for path in sorted(self._docs):
            parent_collection, _ = split_path(path)
            if query.group:
                if collection_id_of(parent_collection) != query.collection:
                    continue
            elif parent_collection != query.collection.strip("/"):
                continue

            data = self._docs[path]
            if all(matches(data, f) for f in query.filters):
                results.append(Document(path=path, data=copy.deepcopy(data)))

        if query.order_by:
            key = sort_key(query.order_by)
            results.sort(key=lambda doc: key(doc.data))
        if query.limit is not None:
            results = results[: query.limit]
        return results

    async def commit(self, ops: Sequence[WriteOp]) -> None:
        if len(ops) > MAX_BATCH_OPERATIONS:
            raise StoreError(
                f"Batch of {len(ops)} operations exceeds the limit of {MAX_BATCH_OPERATIONS}",
                extra={"operations": len(ops)},
            )

        async with self._lock:
            # Apply to a working copy so a failing op leaves nothing behind
            staged = dict(self._docs)
            for op in ops:
                self._apply(staged, op)
            self._docs = staged
            self.commits.append(list(ops))

    @staticmethod
    def _apply(docs: dict[str, dict[str, Any]], op: WriteOp) -> None:
        data = op.data or {}
        if op.kind is WriteKind.SET:
            existing = docs.get(op.path)
            if op.merge and existing is not None:
                docs[op.path] = merge_data(existing, data)
            else:
                docs[op.path] = materialize(data)
        elif op.kind is WriteKind.UPDATE:
            existing = docs.get(op.path)
            if existing is None:
                raise StoreError(
                    f"No document to update: {op.path}",
                    type="document-not-found",
                    extra={"path": op.path},
                )
            docs[op.path] = apply_updates(existing, data)
        else:
            docs.pop(op.path, None)

    async def find_and_deactivate_token(self, token: str) -> int:
        found = await self.query(
            collection_group(DEVICE_TOKENS_COLLECTION, where("token", "==", token))
        )
        if not found:
            return 0
        await self.commit([WriteOp.update(doc.path, {"isActive": False}) for doc in found])
        return len(found)

    async def acquire_lease(
        self, name: str, holder: str, *, now: datetime, ttl: timedelta
    ) -> bool:
        path = f"{LEASES_COLLECTION}/{name}"
        async with self._lock:
            current = self._docs.get(path)
            if (
                current is not None
                and current.get("holder") != holder
                and current.get("expiresAt") is not None
                and current["expiresAt"] > now
            ):
                return False
            self._docs[path] = {
                "holder": holder,
                "acquiredAt": now,
                "expiresAt": now + ttl,
            }
            return True

    async def release_lease(self, name: str, holder: str) -> None:
        path = f"{LEASES_COLLECTION}/{name}"
        async with self._lock:
            current = self._docs.get(path)
            if current is not None and current.get("holder") == holder:
                del self._docs[path]
