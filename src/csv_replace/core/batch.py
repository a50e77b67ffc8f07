"""Shared batch loop for the search and replay engines.

Files run strictly one at a time. Each file's work is guarded so a failure
becomes that file's ``error`` event and a :class:`FileOutcome` value; the loop
always reaches ``complete`` unless the request itself is rejected up front.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Sequence
from dataclasses import dataclass

import anyio

from csv_replace.common.logging import log_context

from .bundler import bundle_outputs
from .errors import CsvReplaceError, PatternError, RequestError
from .events import ProgressChannel, ProgressEmitter
from .models import OutputFileRecord
from .ports import ArtifactStore, FileSource
from .stats import ProcessStats, should_flush
from .tabular import ParsedTable, parse_csv

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class FileTask:
    filename: str
    path: str
    location: str | None = None


@dataclass(slots=True)
class FileOutcome:
    task: FileTask
    record: OutputFileRecord | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


class BatchEngine(ABC):
    """Template for one streaming request: validate, run files, bundle, complete."""

    event_prefix = "batch"

    def __init__(
        self,
        *,
        source: FileSource,
        store: ArtifactStore,
        stats_interval: int = 10,
    ) -> None:
        self.source = source
        self.store = store
        self.stats_interval = stats_interval
        self.stats = ProcessStats()
        self.outcomes: list[FileOutcome] = []

    @abstractmethod
    def prepare(self) -> Sequence[FileTask]:
        """Validate the request and return the files to run, in order."""

    @abstractmethod
    async def process(self, task: FileTask, emitter: ProgressEmitter) -> OutputFileRecord:
        """Run one file; raise to report it as failed."""

    async def run(self, channel: ProgressChannel) -> None:
        emitter = ProgressEmitter(channel, self.stats)
        try:
            try:
                tasks = self.prepare()
            except (RequestError, PatternError) as exc:
                logger.warning(
                    f"{self.event_prefix}.rejected",
                    extra=log_context(reason=str(exc)),
                )
                emitter.error(str(exc))
                return

            self.stats.total_files = len(tasks)
            for task in tasks:
                self.outcomes.append(await self._guarded(task, emitter))

            outputs = [outcome.record for outcome in self.outcomes if outcome.record is not None]
            download_url, is_zip = await bundle_outputs(outputs, self.store)
            emitter.complete(outputs, download_url, is_zip)
            logger.info(
                f"{self.event_prefix}.complete",
                extra=log_context(
                    files=self.stats.total_files,
                    processed_files=self.stats.processed_files,
                    matches=self.stats.total_matches,
                    replacements=self.stats.total_replacements,
                ),
            )
        finally:
            channel.close()

    async def _guarded(self, task: FileTask, emitter: ProgressEmitter) -> FileOutcome:
        try:
            record = await self.process(task, emitter)
        except CsvReplaceError as exc:
            logger.warning(
                f"{self.event_prefix}.file.failed",
                extra=log_context(filename=task.filename, path=task.path, reason=str(exc)),
            )
            emitter.error(str(exc), filename=task.filename)
            return FileOutcome(task, error=str(exc))
        except Exception as exc:
            logger.exception(
                f"{self.event_prefix}.file.failed",
                extra=log_context(filename=task.filename, path=task.path),
            )
            message = str(exc) or "Unknown error"
            emitter.error(message, filename=task.filename)
            return FileOutcome(task, error=message)
        finally:
            self.stats.current_file = None
        return FileOutcome(task, record=record)

    async def load_table(self, location: str | None) -> ParsedTable:
        data = await self.source.fetch(location)
        return await anyio.to_thread.run_sync(parse_csv, data)

    async def flush(self, emitter: ProgressEmitter, index: int, total: int) -> None:
        if should_flush(index, total, self.stats_interval):
            emitter.snapshot()
            # Give the consumer a turn between row batches.
            await anyio.sleep(0)


__all__ = ["BatchEngine", "FileOutcome", "FileTask"]
