"""Progress channel: an ordered, append-only event sequence consumed live."""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator, Sequence
from dataclasses import dataclass, field
from typing import Any

from .models import OutputFileRecord, RowChange
from .stats import ProcessStats

FILE_START = "file-start"
FILE_INFO = "file-info"
ROW_PROCESSED = "row-processed"
STATS = "stats"
FILE_COMPLETE = "file-complete"
ERROR = "error"
COMPLETE = "complete"


@dataclass(slots=True)
class ProgressEvent:
    name: str
    data: dict[str, Any] = field(default_factory=dict)


class ChannelClosedError(RuntimeError):
    """Raised when sending on a channel that has already been closed."""


class ProgressChannel:
    """Single-producer, single-consumer event queue.

    ``close`` enqueues one sentinel; the consumer's iteration ends when it is
    reached. Calling ``close`` more than once is a no-op.
    """

    def __init__(self) -> None:
        self._queue: asyncio.Queue[ProgressEvent | None] = asyncio.Queue()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def send(self, event: ProgressEvent) -> None:
        if self._closed:
            raise ChannelClosedError(f"channel closed; dropped {event.name!r} event")
        self._queue.put_nowait(event)

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._queue.put_nowait(None)

    def __aiter__(self) -> AsyncIterator[ProgressEvent]:
        return self

    async def __anext__(self) -> ProgressEvent:
        item = await self._queue.get()
        if item is None:
            raise StopAsyncIteration
        return item


class ProgressEmitter:
    """Typed helpers that shape event payloads before they hit the channel."""

    def __init__(self, channel: ProgressChannel, stats: ProcessStats) -> None:
        self.channel = channel
        self.stats = stats

    def emit(self, name: str, data: dict[str, Any]) -> None:
        self.channel.send(ProgressEvent(name, data))

    def file_start(self, filename: str, path: str) -> None:
        self.emit(FILE_START, {"filename": filename, "path": path})

    def file_info(self, filename: str, total_rows: int, *, fields_key: str, fields: int) -> None:
        self.emit(FILE_INFO, {"filename": filename, "totalRows": total_rows, fields_key: fields})

    def row_processed(
        self,
        filename: str,
        file_path: str,
        row_index: int,
        total_rows: int,
        changes: Sequence[RowChange],
    ) -> None:
        self.emit(
            ROW_PROCESSED,
            {
                "filename": filename,
                "filePath": file_path,
                "rowIndex": row_index,
                "totalRows": total_rows,
                "matches": [change.to_payload() for change in changes],
            },
        )

    def snapshot(self) -> None:
        self.emit(STATS, self.stats.snapshot())

    def file_complete(
        self,
        filename: str,
        *,
        matches: int,
        replacements: int,
        new_path: str | None,
    ) -> None:
        self.emit(
            FILE_COMPLETE,
            {
                "filename": filename,
                "matchesCount": matches,
                "replacementsCount": replacements,
                "newPath": new_path,
            },
        )

    def error(self, message: str, *, filename: str | None = None) -> None:
        payload: dict[str, Any] = {}
        if filename is not None:
            payload["filename"] = filename
        payload["error"] = message
        self.emit(ERROR, payload)

    def complete(
        self,
        outputs: Sequence[OutputFileRecord],
        download_url: str | None,
        is_zip: bool,
    ) -> None:
        self.emit(
            COMPLETE,
            {
                "outputFiles": [record.to_payload() for record in outputs],
                "downloadUrl": download_url,
                "isZip": is_zip,
                "stats": self.stats.final(),
            },
        )


__all__ = [
    "COMPLETE",
    "ERROR",
    "FILE_COMPLETE",
    "FILE_INFO",
    "FILE_START",
    "ROW_PROCESSED",
    "STATS",
    "ChannelClosedError",
    "ProgressChannel",
    "ProgressEmitter",
    "ProgressEvent",
]
