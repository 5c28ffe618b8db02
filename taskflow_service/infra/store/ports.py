"""Document store capability interface and value types.

The engine talks to storage only through the `Store` protocol: documents
addressed by slash-separated paths (`users/u1/notifications/n1`), queries
over one collection or over every same-named sub-collection (a collection
group), and atomic write batches of at most MAX_BATCH_OPERATIONS.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import StrEnum
from typing import Any, Protocol, runtime_checkable

from taskflow_service.infra.store.paths import collection_id_of, split_path

MAX_BATCH_OPERATIONS = 500
"""Ceiling on operations per atomic commit, shared by every store backend."""


class FilterOp(StrEnum):
    """Comparison operators supported by store queries."""

    EQ = "=="
    NE = "!="
    LT = "<"
    LE = "<="
    GT = ">"
    GE = ">="
    IN = "in"


@dataclass(frozen=True, slots=True)
class FieldFilter:
    """A single `field <op> value` condition.

    A document that lacks the field never matches, whatever the operator.
    """

    field: str
    op: FilterOp
    value: Any


def where(field_name: str, op: str | FilterOp, value: Any) -> FieldFilter:
    """Build a FieldFilter, accepting operators as plain strings."""
    return FieldFilter(field=field_name, op=FilterOp(op), value=value)


@dataclass(frozen=True, slots=True)
class Query:
    """Query over a collection path, or over a collection group.

    Attributes:
        collection: Collection path (`users/u1/deviceTokens`) or, when
            `group` is set, a collection id (`notifications`).
        filters: Conditions that must all hold.
        order_by: Optional field to sort ascending on.
        limit: Optional maximum number of documents.
        group: Whether `collection` names a collection group.
    """

    collection: str
    filters: tuple[FieldFilter, ...] = ()
    order_by: str | None = None
    limit: int | None = None
    group: bool = False


def collection(
    path: str,
    *filters: FieldFilter,
    order_by: str | None = None,
    limit: int | None = None,
) -> Query:
    """Query one collection."""
    return Query(collection=path, filters=filters, order_by=order_by, limit=limit)


def collection_group(
    collection_id: str,
    *filters: FieldFilter,
    order_by: str | None = None,
    limit: int | None = None,
) -> Query:
    """Query every collection named `collection_id`, across all parents."""
    return Query(
        collection=collection_id,
        filters=filters,
        order_by=order_by,
        limit=limit,
        group=True,
    )


@dataclass(frozen=True, slots=True)
class Document:
    """A stored document: its full path and its data."""

    path: str
    data: dict[str, Any] = field(default_factory=dict)

    @property
    def id(self) -> str:
        return split_path(self.path)[1]

    @property
    def collection(self) -> str:
        return split_path(self.path)[0]

    @property
    def collection_id(self) -> str:
        return collection_id_of(self.collection)

    def get(self, key: str, default: Any = None) -> Any:
        return self.data.get(key, default)


@dataclass(frozen=True, slots=True)
class Increment:
    """Field transform adding `amount` to the current numeric value (0 if absent)."""

    amount: int | float = 1


class WriteKind(StrEnum):
    SET = "set"
    UPDATE = "update"
    DELETE = "delete"


@dataclass(frozen=True, slots=True)
class WriteOp:
    """One operation of an atomic write batch.

    - set: replace the document (or deep-merge into it with `merge=True`)
    - update: change the listed fields (dotted keys reach into maps); the
      document must exist or the whole batch fails
    - delete: remove the document if present
    """

    kind: WriteKind
    path: str
    data: Mapping[str, Any] | None = None
    merge: bool = False

    def __post_init__(self) -> None:
        split_path(self.path)

    @classmethod
    def set(cls, path: str, data: Mapping[str, Any], *, merge: bool = False) -> WriteOp:
        return cls(WriteKind.SET, path, dict(data), merge)

    @classmethod
    def update(cls, path: str, data: Mapping[str, Any]) -> WriteOp:
        return cls(WriteKind.UPDATE, path, dict(data))

    @classmethod
    def delete(cls, path: str) -> WriteOp:
        return cls(WriteKind.DELETE, path)


@runtime_checkable
class Store(Protocol):
    """Capability interface every document store backend implements."""

    async def get(self, path: str) -> Document | None:
        """Fetch one document, or None when it does not exist."""
        ...

    async def query(self, query: Query) -> list[Document]:
        """Run a collection or collection-group query."""
        ...

    async def commit(self, ops: Sequence[WriteOp]) -> None:
        """Apply `ops` atomically. Raises StoreError on failure or oversize batches."""
        ...

    async def find_and_deactivate_token(self, token: str) -> int:
        """Set isActive=false on every device endpoint holding `token`.

        Returns:
            Number of endpoint documents deactivated.
        """
        ...

    async def acquire_lease(
        self, name: str, holder: str, *, now: datetime, ttl: timedelta
    ) -> bool:
        """Take the named lease unless another holder owns an unexpired one."""
        ...

    async def release_lease(self, name: str, holder: str) -> None:
        """Drop the named lease if `holder` still owns it."""
        ...


LEASES_COLLECTION = "_leases"
DEVICE_TOKENS_COLLECTION = "deviceTokens"

__all__ = [
    "DEVICE_TOKENS_COLLECTION",
    "LEASES_COLLECTION",
    "MAX_BATCH_OPERATIONS",
    "Document",
    "FieldFilter",
    "FilterOp",
    "Increment",
    "Query",
    "Store",
    "WriteKind",
    "WriteOp",
    "collection",
    "collection_group",
    "where",
]
