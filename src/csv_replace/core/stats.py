"""Running counters for one processing request."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(slots=True)
class ProcessStats:
    total_files: int = 0
    processed_files: int = 0
    total_rows: int = 0
    processed_rows: int = 0
    total_matches: int = 0
    total_replacements: int = 0
    current_file: str | None = None

    def snapshot(self) -> dict[str, Any]:
        """Wire form of the counters; ``currentFile`` only while a file is open."""
        payload = self.final()
        if self.current_file is not None:
            payload["currentFile"] = self.current_file
        return payload

    def final(self) -> dict[str, Any]:
        return {
            "totalFiles": self.total_files,
            "processedFiles": self.processed_files,
            "totalRows": self.total_rows,
            "processedRows": self.processed_rows,
            "totalMatches": self.total_matches,
            "totalReplacements": self.total_replacements,
        }


def should_flush(index: int, total: int, interval: int) -> bool:
    """True on every ``interval``-th row of a file and on its last row."""
    position = index + 1
    return position % interval == 0 or position == total


__all__ = ["ProcessStats", "should_flush"]
