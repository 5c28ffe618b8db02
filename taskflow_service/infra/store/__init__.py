"""Document store: capability interface, write batching and backends.

Usage:
    from taskflow_service.infra.store import BatchWriter, InMemoryStore, collection_group, where

    store = InMemoryStore()
    due = await store.query(
        collection_group("notifications", where("sent", "==", False), limit=100)
    )
    async with BatchWriter(store) as writer:
        for doc in due:
            await writer.update(doc.path, {"sent": True})
"""

from taskflow_service.infra.store.batch import BatchWriter
from taskflow_service.infra.store.factory import build_store
from taskflow_service.infra.store.memory import InMemoryStore
from taskflow_service.infra.store.paths import document_path, split_path
from taskflow_service.infra.store.ports import (
    MAX_BATCH_OPERATIONS,
    Document,
    FieldFilter,
    FilterOp,
    Increment,
    Query,
    Store,
    WriteKind,
    WriteOp,
    collection,
    collection_group,
    where,
)
from taskflow_service.infra.store.sql import SqlDocumentStore

__all__ = [
    "MAX_BATCH_OPERATIONS",
    "BatchWriter",
    "Document",
    "FieldFilter",
    "FilterOp",
    "InMemoryStore",
    "Increment",
    "Query",
    "SqlDocumentStore",
    "Store",
    "WriteKind",
    "WriteOp",
    "build_store",
    "collection",
    "collection_group",
    "document_path",
    "split_path",
    "where",
]
