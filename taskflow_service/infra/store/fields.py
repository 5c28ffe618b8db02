"""Field access and update semantics shared by the store backends.

Keys containing dots address nested maps: updating `stats.totalTasks`
changes one entry of the `stats` map and leaves its siblings untouched.
"""

from __future__ import annotations

import copy
import operator
from collections.abc import Callable, Mapping
from typing import Any

from taskflow_service.infra.store.ports import FieldFilter, FilterOp, Increment

_MISSING = object()

_COMPARATORS: dict[FilterOp, Callable[[Any, Any], bool]] = {
    FilterOp.EQ: operator.eq,
    FilterOp.NE: operator.ne,
    FilterOp.LT: operator.lt,
    FilterOp.LE: operator.le,
    FilterOp.GT: operator.gt,
    FilterOp.GE: operator.ge,
}


def get_field(data: Mapping[str, Any], field: str, default: Any = _MISSING) -> Any:
    """Read a possibly dotted field. Returns `default` (a sentinel) when absent."""
    current: Any = data
    for part in field.split("."):
        if not isinstance(current, Mapping) or part not in current:
            return default
        current = current[part]
    return current


def matches(data: Mapping[str, Any], field_filter: FieldFilter) -> bool:
    """Evaluate one filter against document data."""
    actual = get_field(data, field_filter.field)
    if actual is _MISSING or actual is None:
        return False

    if field_filter.op is FilterOp.IN:
        return actual in field_filter.value

    try:
        return bool(_COMPARATORS[field_filter.op](actual, field_filter.value))
    except TypeError:
        # Mismatched types never compare
        return False


def sort_key(field: str) -> Callable[[Mapping[str, Any]], tuple[bool, Any]]:
    """Sort key placing documents that lack `field` last."""

    def key(data: Mapping[str, Any]) -> tuple[bool, Any]:
        value = get_field(data, field)
        missing = value is _MISSING or value is None
        return (missing, None if missing else value)

    return key


def _resolve(current: Any, value: Any) -> Any:
    if isinstance(value, Increment):
        base = current if isinstance(current, int | float) and not isinstance(current, bool) else 0
        return base + value.amount
    return copy.deepcopy(value)


def _set_path(target: dict[str, Any], field: str, value: Any) -> None:
    parts = field.split(".")
    node = target
    for part in parts[:-1]:
        child = node.get(part)
        if not isinstance(child, dict):
            child = {}
            node[part] = child
        node = child
    node[parts[-1]] = _resolve(node.get(parts[-1]), value)


def apply_updates(data: Mapping[str, Any], updates: Mapping[str, Any]) -> dict[str, Any]:
    """Return a copy of `data` with dotted-field `updates` applied."""
    result = copy.deepcopy(dict(data))
    for field, value in updates.items():
        _set_path(result, field, value)
    return result


def merge_data(existing: Mapping[str, Any], incoming: Mapping[str, Any]) -> dict[str, Any]:
    """Deep-merge `incoming` into `existing` (set with merge=True)."""
    result = copy.deepcopy(dict(existing))
    for key, value in incoming.items():
        current = result.get(key)
        if isinstance(value, Mapping):
            result[key] = merge_data(current if isinstance(current, Mapping) else {}, value)
        else:
            result[key] = _resolve(current, value)
    return result


def materialize(data: Mapping[str, Any]) -> dict[str, Any]:
    """Resolve transforms in a full-document set (increments start from zero)."""
    return merge_data({}, data)
