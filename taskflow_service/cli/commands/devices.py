"""Device token commands."""

from __future__ import annotations

import sys

import click

from taskflow_service.cli.utils import (
    coro,
    echo_json,
    error,
    info,
    open_runtime,
    success,
    table,
)
from taskflow_service.core.exceptions import AppException
from taskflow_service.features.notifications.models import Platform


@click.group(name="devices")
def devices() -> None:
    """Push device registration commands."""


@devices.command(name="register")
@click.argument("user_id")
@click.argument("token")
@click.option(
    "--platform",
    type=click.Choice([p.value for p in Platform]),
    default=Platform.WEB.value,
    show_default=True,
    help="Device platform",
)
@click.pass_context
@coro
async def register(ctx: click.Context, user_id: str, token: str, platform: str) -> None:
    """Register TOKEN as a push endpoint for USER_ID."""
    try:
        async with open_runtime(ctx) as runtime:
            await runtime.notifications.register_device_token(user_id, token, platform)
    except AppException as e:
        error(f"Failed to register device token: {e.detail}")
        sys.exit(1)
    success(f"Registered {platform} device for user {user_id}")


@devices.command(name="unregister")
@click.argument("user_id")
@click.argument("token")
@click.pass_context
@coro
async def unregister(ctx: click.Context, user_id: str, token: str) -> None:
    """Deactivate TOKEN for USER_ID."""
    try:
        async with open_runtime(ctx) as runtime:
            await runtime.notifications.unregister_device_token(user_id, token)
    except AppException as e:
        error(f"Failed to unregister device token: {e.detail}")
        sys.exit(1)
    success(f"Unregistered device for user {user_id}")


@devices.command(name="list")
@click.argument("user_id")
@click.option("--all", "show_all", is_flag=True, help="Include deactivated devices")
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["table", "json"]),
    default="table",
    help="Output format",
)
@click.pass_context
@coro
async def list_devices(ctx: click.Context, user_id: str, show_all: bool, output_format: str) -> None:
    """List USER_ID's device endpoints."""
    async with open_runtime(ctx) as runtime:
        endpoints = await runtime.notifications.list_device_tokens(
            user_id, active_only=not show_all
        )

    rows = [endpoint.to_document() for endpoint in endpoints]
    if output_format == "json":
        echo_json(rows)
        return
    if not rows:
        info(f"No devices registered for user {user_id}")
        return
    table(rows, ["token", "platform", "isActive", "lastUsed"])
