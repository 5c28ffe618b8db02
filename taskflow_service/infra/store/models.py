"""SQLAlchemy model backing the SQL document store."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import JSON, DateTime, Index, MetaData, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

# Consistent naming convention for database constraints
NAMING_CONVENTION = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}


class Base(DeclarativeBase):
    """Declarative base for the document store tables."""

    metadata = MetaData(naming_convention=NAMING_CONVENTION)


class DocumentRow(Base):
    """One document of the store.

    `collection` is the full parent collection path used by collection
    queries; `collection_id` is its last segment, used by collection-group
    queries. `data` holds the document body as JSON.
    """

    __tablename__ = "documents"

    path: Mapped[str] = mapped_column(String(1024), primary_key=True)
    collection: Mapped[str] = mapped_column(String(1024), nullable=False)
    collection_id: Mapped[str] = mapped_column(String(255), nullable=False)
    parent_path: Mapped[str | None] = mapped_column(String(1024), nullable=True)
    doc_id: Mapped[str] = mapped_column(String(512), nullable=False)
    data: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    __table_args__ = (
        Index("ix_documents_collection", "collection"),
        Index("ix_documents_collection_id", "collection_id"),
    )

    def __repr__(self) -> str:
        return f"<DocumentRow(path={self.path!r})>"
