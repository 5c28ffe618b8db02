"""SQLAlchemy async implementation of the document store.

All documents live in one `documents` table. Field filters are pushed down
as JSON-path comparisons, so the same code runs on SQLite (aiosqlite) and
PostgreSQL (asyncpg).
"""

from __future__ import annotations

import logging
import operator
from collections.abc import Callable, Sequence
from datetime import UTC, datetime, timedelta
from typing import Any

from sqlalchemy import ColumnElement, false, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from taskflow_service.core.exceptions import StoreError
from taskflow_service.infra.logging import get_lazy_logger
from taskflow_service.infra.store.codec import (
    decode_document,
    encode_document,
    encode_timestamp,
)
from taskflow_service.infra.store.fields import apply_updates, materialize, merge_data
from taskflow_service.infra.store.models import Base, DocumentRow
from taskflow_service.infra.store.paths import collection_id_of, parent_of, split_path
from taskflow_service.infra.store.ports import (
    DEVICE_TOKENS_COLLECTION,
    LEASES_COLLECTION,
    MAX_BATCH_OPERATIONS,
    Document,
    FieldFilter,
    FilterOp,
    Query,
    WriteKind,
    WriteOp,
    collection_group,
    where,
)

logger = logging.getLogger(__name__)
lazy_logger = get_lazy_logger(__name__)

_OPERATORS: dict[FilterOp, Callable[[Any, Any], ColumnElement[bool]]] = {
    FilterOp.EQ: operator.eq,
    FilterOp.NE: operator.ne,
    FilterOp.LT: operator.lt,
    FilterOp.LE: operator.le,
    FilterOp.GT: operator.gt,
    FilterOp.GE: operator.ge,
}


def _json_element(field: str) -> Any:
    parts = field.split(".")
    return DocumentRow.data[parts[0] if len(parts) == 1 else tuple(parts)]


def _typed(field: str, sample: Any) -> tuple[Any, Callable[[Any], Any]]:
    """Pick the JSON accessor and value converter matching the filter value type."""
    element = _json_element(field)
    if isinstance(sample, bool):
        return element.as_boolean(), bool
    if isinstance(sample, int | float):
        return element.as_float(), float
    if isinstance(sample, datetime):
        return element.as_string(), encode_timestamp
    return element.as_string(), str


def _filter_clause(field_filter: FieldFilter) -> ColumnElement[bool]:
    if field_filter.op is FilterOp.IN:
        values = list(field_filter.value)
        if not values:
            return false()
        column, convert = _typed(field_filter.field, values[0])
        return column.in_([convert(v) for v in values])

    if field_filter.value is None:
        raise StoreError(
            "Filtering on null values is not supported",
            type="invalid-filter",
            extra={"field": field_filter.field},
        )
    column, convert = _typed(field_filter.field, field_filter.value)
    return _OPERATORS[field_filter.op](column, convert(field_filter.value))


class SqlDocumentStore:
    """Store protocol implementation over an async SQLAlchemy engine.

    Example:
        store = SqlDocumentStore.from_url("sqlite+aiosqlite:///./taskflow.db")
        await store.create_schema()
        doc = await store.get("tasks/t1")
        await store.dispose()
    """

    def __init__(self, engine: AsyncEngine) -> None:
        self._engine = engine
        self._session_factory = async_sessionmaker(
            engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )

    @classmethod
    def from_url(cls, url: str, **engine_kwargs: Any) -> SqlDocumentStore:
        """Build a store with its own engine."""
        return cls(create_async_engine(url, **engine_kwargs))

    @property
    def engine(self) -> AsyncEngine:
        return self._engine

    async def create_schema(self) -> None:
        """Create the store tables if they do not exist yet."""
        async with self._engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Document store schema ready", extra={"operation": "store.create_schema"})

    async def dispose(self) -> None:
        await self._engine.dispose()

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def get(self, path: str) -> Document | None:
        split_path(path)
        try:
            async with self._session_factory() as session:
                row = await session.get(DocumentRow, path)
        except SQLAlchemyError as exc:
            raise StoreError(f"Failed to read {path}", extra={"path": path}) from exc
        if row is None:
            return None
        return Document(path=row.path, data=decode_document(row.data))

    async def query(self, query: Query) -> list[Document]:
        stmt = select(DocumentRow)
        if query.group:
            stmt = stmt.where(DocumentRow.collection_id == query.collection)
        else:
            stmt = stmt.where(DocumentRow.collection == query.collection.strip("/"))

        for field_filter in query.filters:
            stmt = stmt.where(_filter_clause(field_filter))

        if query.order_by:
            stmt = stmt.order_by(_json_element(query.order_by).as_string())
        stmt = stmt.order_by(DocumentRow.path)
        if query.limit is not None:
            stmt = stmt.limit(query.limit)

        lazy_logger.debug(lambda: f"store.query: {stmt}")
        try:
            async with self._session_factory() as session:
                rows = (await session.execute(stmt)).scalars().all()
        except SQLAlchemyError as exc:
            raise StoreError(
                f"Query on {query.collection} failed",
                extra={"collection": query.collection, "group": query.group},
            ) from exc

        return [Document(path=row.path, data=decode_document(row.data)) for row in rows]

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def commit(self, ops: Sequence[WriteOp]) -> None:
        if len(ops) > MAX_BATCH_OPERATIONS:
            raise StoreError(
                f"Batch of {len(ops)} operations exceeds the limit of {MAX_BATCH_OPERATIONS}",
                extra={"operations": len(ops)},
            )
        if not ops:
            return

        now = datetime.now(UTC)
        try:
            async with self._session_factory() as session, session.begin():
                for op in ops:
                    await self._apply(session, op, now)
        except StoreError:
            raise
        except SQLAlchemyError as exc:
            raise StoreError(
                "Batch commit failed",
                extra={"operations": len(ops)},
            ) from exc

    @staticmethod
    async def _apply(session: AsyncSession, op: WriteOp, now: datetime) -> None:
        row = await session.get(DocumentRow, op.path)
        data = op.data or {}

        if op.kind is WriteKind.DELETE:
            if row is not None:
                await session.delete(row)
                await session.flush()
            return

        if op.kind is WriteKind.UPDATE:
            if row is None:
                raise StoreError(
                    f"No document to update: {op.path}",
                    type="document-not-found",
                    extra={"path": op.path},
                )
            row.data = encode_document(apply_updates(decode_document(row.data), data))
            row.updated_at = now
            await session.flush()
            return

        if row is None:
            collection_path, doc_id = split_path(op.path)
            session.add(
                DocumentRow(
                    path=op.path,
                    collection=collection_path,
                    collection_id=collection_id_of(collection_path),
                    parent_path=parent_of(collection_path),
                    doc_id=doc_id,
                    data=encode_document(materialize(data)),
                    updated_at=now,
                )
            )
        elif op.merge:
            row.data = encode_document(merge_data(decode_document(row.data), data))
            row.updated_at = now
        else:
            row.data = encode_document(materialize(data))
            row.updated_at = now
        await session.flush()

    # ------------------------------------------------------------------
    # Capabilities
    # ------------------------------------------------------------------

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
        lease = {"holder": holder, "acquiredAt": now, "expiresAt": now + ttl}
        try:
            async with self._session_factory() as session, session.begin():
                stmt = select(DocumentRow).where(DocumentRow.path == path).with_for_update()
                row = (await session.execute(stmt)).scalar_one_or_none()
                if row is None:
                    session.add(
                        DocumentRow(
                            path=path,
                            collection=LEASES_COLLECTION,
                            collection_id=LEASES_COLLECTION,
                            parent_path=None,
                            doc_id=name,
                            data=encode_document(lease),
                            updated_at=now,
                        )
                    )
                    return True

                current = decode_document(row.data)
                expires_at = current.get("expiresAt")
                if current.get("holder") != holder and expires_at is not None and expires_at > now:
                    return False
                row.data = encode_document(lease)
                row.updated_at = now
                return True
        except IntegrityError:
            # Another process inserted the lease first
            return False
        except SQLAlchemyError as exc:
            raise StoreError(f"Failed to acquire lease {name}", extra={"lease": name}) from exc

    async def release_lease(self, name: str, holder: str) -> None:
        path = f"{LEASES_COLLECTION}/{name}"
        try:
            async with self._session_factory() as session, session.begin():
                row = await session.get(DocumentRow, path)
                if row is not None and decode_document(row.data).get("holder") == holder:
                    await session.delete(row)
        except SQLAlchemyError as exc:
            raise StoreError(f"Failed to release lease {name}", extra={"lease": name}) from exc
