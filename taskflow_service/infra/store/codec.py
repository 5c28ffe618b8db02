"""JSON encoding of document data for the SQL store.

Timestamps are stored as fixed-width UTC strings
(`2026-01-31T08:15:00.000000Z`), so comparing the stored text orders
documents by time. On the way back, any string of exactly that shape is
decoded to an aware datetime.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from datetime import UTC, datetime
from typing import Any

TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%S.%fZ"
_TIMESTAMP_RE = re.compile(r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}\.\d{6}Z$")


def encode_timestamp(value: datetime) -> str:
    """Encode an aware datetime as a sortable UTC string.

    Raises:
        ValueError: For naive datetimes, whose instant is ambiguous.
    """
    if value.tzinfo is None:
        raise ValueError("Naive datetimes cannot be stored; use timezone-aware UTC values")
    return value.astimezone(UTC).strftime(TIMESTAMP_FORMAT)


def decode_timestamp(value: str) -> datetime:
    return datetime.strptime(value, TIMESTAMP_FORMAT).replace(tzinfo=UTC)


def encode_value(value: Any) -> Any:
    if isinstance(value, datetime):
        return encode_timestamp(value)
    if isinstance(value, Mapping):
        return {str(k): encode_value(v) for k, v in value.items()}
    if isinstance(value, list | tuple):
        return [encode_value(v) for v in value]
    return value


def decode_value(value: Any) -> Any:
    if isinstance(value, str) and _TIMESTAMP_RE.match(value):
        return decode_timestamp(value)
    if isinstance(value, dict):
        return {k: decode_value(v) for k, v in value.items()}
    if isinstance(value, list):
        return [decode_value(v) for v in value]
    return value


def encode_document(data: Mapping[str, Any]) -> dict[str, Any]:
    return encode_value(data)


def decode_document(data: Mapping[str, Any]) -> dict[str, Any]:
    return decode_value(dict(data))
