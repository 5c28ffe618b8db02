"""Access to the engine runtime from click commands."""

from collections.abc import Callable
from contextlib import AbstractAsyncContextManager
from typing import Any

import click

from taskflow_service.jobs.runtime import EngineRuntime, engine_runtime

RuntimeFactory = Callable[[], AbstractAsyncContextManager[EngineRuntime]]


def open_runtime(ctx: click.Context) -> AbstractAsyncContextManager[EngineRuntime]:
    """Open the runtime, honouring a `runtime_factory` placed in ctx.obj."""
    obj: dict[str, Any] = ctx.find_root().obj or {}
    factory: RuntimeFactory = obj.get("runtime_factory", engine_runtime)
    return factory()
