"""Build the configured document store backend."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from taskflow_service.infra.store.memory import InMemoryStore
from taskflow_service.infra.store.sql import SqlDocumentStore

if TYPE_CHECKING:
    from taskflow_service.core.settings.store import StoreSettings
    from taskflow_service.infra.store.ports import Store

logger = logging.getLogger(__name__)


def build_store(settings: StoreSettings) -> Store:
    """Create the store selected by STORE_BACKEND.

    Args:
        settings: Store settings.

    Returns:
        An InMemoryStore or a SqlDocumentStore bound to STORE_DATABASE_URL.
    """
    if settings.backend == "memory":
        logger.info("Using in-memory document store")
        return InMemoryStore()

    engine_kwargs: dict[str, Any] = {
        "echo": settings.echo,
        "pool_pre_ping": settings.pool_pre_ping,
    }
    if not settings.is_sqlite:
        engine_kwargs["pool_size"] = settings.pool_size
        engine_kwargs["max_overflow"] = settings.max_overflow

    logger.info(
        "Using SQL document store",
        extra={"dialect": settings.database_url.split(":", 1)[0]},
    )
    return SqlDocumentStore.from_url(settings.database_url, **engine_kwargs)
