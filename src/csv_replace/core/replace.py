"""Cell rewriting and change records."""

from __future__ import annotations

import re
from collections.abc import Collection, Iterable, Sequence

from .models import ReplaceOperation, RowChange
from .tabular import Row

ALL_FIELDS = "All"
REPLACED_SUFFIX = "_replaced.csv"

_CSV_EXTENSION = re.compile(r"\.csv$", re.IGNORECASE)


def replaced_file_name(path: str) -> str:
    """Output artifact name for the input at ``path``: ``<stem>_replaced.csv``."""
    name = path.rsplit("/", 1)[-1] or "file.csv"
    stem = _CSV_EXTENSION.sub("", name)
    return f"{stem}{REPLACED_SUFFIX}"


def resolve_target_fields(selected: Sequence[str], headers: Sequence[str]) -> list[str]:
    """Fields a single-target replacement writes into for one file.

    An empty selection (or one containing ``"All"``) means every header;
    selected fields missing from the file are dropped.
    """
    if not selected or ALL_FIELDS in selected:
        return list(headers)
    present = set(headers)
    return [name for name in selected if name in present]


def apply_single_target(row: Row, fields: Iterable[str], value: str) -> list[RowChange]:
    """Write ``value`` into every field of ``row``; record only real changes."""
    changes: list[RowChange] = []
    for name in fields:
        old = row.get(name) or ""
        if old != value:
            row[name] = value
            changes.append(RowChange(name, old, value))
    return changes


def apply_operations(
    row: Row,
    operations: Sequence[ReplaceOperation],
    headers: Collection[str],
) -> list[RowChange]:
    """Apply ordered ``(field, value)`` operations, skipping absent fields."""
    changes: list[RowChange] = []
    for operation in operations:
        if operation.field not in headers or operation.value is None:
            continue
        old = row.get(operation.field) or ""
        if old != operation.value:
            row[operation.field] = operation.value
            changes.append(RowChange(operation.field, old, operation.value))
    return changes


def observe_fields(row: Row, fields: Iterable[str]) -> list[RowChange]:
    """Change records for matched but unmodified fields (search-only mode)."""
    records: list[RowChange] = []
    for name in fields:
        value = row.get(name) or ""
        records.append(RowChange(name, value, value))
    return records


__all__ = [
    "ALL_FIELDS",
    "REPLACED_SUFFIX",
    "apply_operations",
    "apply_single_target",
    "observe_fields",
    "replaced_file_name",
    "resolve_target_fields",
]
