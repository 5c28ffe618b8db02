"""Document store commands."""

from __future__ import annotations

import sys

import click

from taskflow_service.cli.utils import coro, error, info, open_runtime, success
from taskflow_service.core.exceptions import AppException


@click.group(name="db")
def db() -> None:
    """Document store management commands."""


@db.command(name="init")
@click.pass_context
@coro
async def init(ctx: click.Context) -> None:
    """Create the document store schema."""
    from taskflow_service.infra.store import SqlDocumentStore

    try:
        async with open_runtime(ctx) as runtime:
            if not isinstance(runtime.store, SqlDocumentStore):
                info("In-memory store selected, nothing to create")
                return
            await runtime.store.create_schema()
    except AppException as e:
        error(f"Failed to initialize store: {e.detail}")
        sys.exit(1)
    success("Document store schema is ready")
