"""Output formatting utilities for CLI commands."""

import json
from collections.abc import Mapping, Sequence
from typing import Any

import click


def success(message: str) -> None:
    """Print a success message in green."""
    click.secho(f"✓ {message}", fg="green")


def error(message: str) -> None:
    """Print an error message in red."""
    click.secho(f"✗ {message}", fg="red", err=True)


def warning(message: str) -> None:
    """Print a warning message in yellow."""
    click.secho(f"⚠ {message}", fg="yellow")


def info(message: str) -> None:
    """Print an info message in blue."""
    click.secho(f"ℹ {message}", fg="blue")


def header(message: str) -> None:
    """Print a header message in cyan bold."""
    click.secho(f"\n{message}", fg="cyan", bold=True)


def echo_json(data: Any) -> None:
    """Print data as indented JSON (datetimes rendered with str)."""
    click.echo(json.dumps(data, indent=2, default=str))


def table(rows: Sequence[Mapping[str, Any]], columns: Sequence[str]) -> None:
    """Print rows as a fixed-width table."""
    widths = {
        col: max([len(col), *(len(str(row.get(col, ""))) for row in rows)]) + 2
        for col in columns
    }
    click.echo(" ".join(f"{col:<{widths[col]}}" for col in columns))
    click.echo("-" * (sum(widths.values()) + len(columns) - 1))
    for row in rows:
        click.echo(" ".join(f"{str(row.get(col, '')):<{widths[col]}}" for col in columns))
