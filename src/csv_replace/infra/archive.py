"""ZIP bundling for output artifacts."""

from __future__ import annotations

import io
import zipfile
from collections.abc import Iterable


def unique_entry_names(names: Iterable[str]) -> list[str]:
    """Return ``names`` with repeats renamed ``stem (1).ext``, ``stem (2).ext``..."""
    seen: set[str] = set()
    result: list[str] = []
    for name in names:
        candidate = name
        stem, dot, suffix = name.rpartition(".")
        if not dot or not stem:
            stem, suffix = name, ""
        counter = 0
        while candidate in seen:
            counter += 1
            candidate = f"{stem} ({counter}).{suffix}" if suffix else f"{stem} ({counter})"
        seen.add(candidate)
        result.append(candidate)
    return result


def zip_entries(entries: Iterable[tuple[str, bytes]]) -> bytes:
    """Pack ``(name, bytes)`` pairs into a deflated ZIP archive."""
    items = list(entries)
    names = unique_entry_names(name for name, _ in items)
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_DEFLATED) as archive:
        for name, (_, payload) in zip(names, items):
            archive.writestr(name, payload)
    return buffer.getvalue()


__all__ = ["unique_entry_names", "zip_entries"]
