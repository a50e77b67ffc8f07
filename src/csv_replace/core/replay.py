"""Replace phase: re-apply operations to exactly the rows a search returned.

No predicate is evaluated here. The caller resubmits the search results it
received and only the rows named by ``rowIndex`` are rewritten.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

import anyio

from csv_replace.common.logging import log_context

from .batch import BatchEngine, FileTask
from .errors import FieldNotFoundError, RequestError
from .events import ProgressEmitter
from .models import OutputFileRecord, ReplaceOperation, ReplayRequest, SearchResult
from .ports import ArtifactStore, FileSource
from .replace import apply_operations, replaced_file_name
from .tabular import serialize

logger = logging.getLogger(__name__)


def replay_operations(request: ReplayRequest) -> list[ReplaceOperation]:
    """Operations to apply, accepting the legacy single field/value pair."""
    if request.replace_operations:
        operations = list(request.replace_operations)
    elif request.replace_target_field:
        if request.replace_value is None:
            raise RequestError("Replace value must be provided (empty string is allowed)")
        operations = [
            ReplaceOperation(field=request.replace_target_field, value=request.replace_value)
        ]
    else:
        raise RequestError("Either replaceOperations or replaceTargetField must be provided")

    for operation in operations:
        if not operation.field:
            raise RequestError("All replace operations must have a field specified")
        if operation.value is None:
            raise RequestError(
                "All replace operations must have a value specified (empty string is allowed)"
            )
    return operations


def group_results(results: Sequence[SearchResult]) -> dict[str, SearchResult]:
    """Index results by path; entries without rows are dropped, later ones win."""
    groups: dict[str, SearchResult] = {}
    for result in results:
        if result.rows:
            groups[result.path] = result
    return groups


class SelectiveReplayEngine(BatchEngine):
    """Run a :class:`ReplayRequest` and stream progress."""

    event_prefix = "replay"

    def __init__(
        self,
        request: ReplayRequest,
        *,
        source: FileSource,
        store: ArtifactStore,
        stats_interval: int = 10,
    ) -> None:
        super().__init__(source=source, store=store, stats_interval=stats_interval)
        self.request = request
        self.operations: list[ReplaceOperation] = []
        self._groups: dict[str, SearchResult] = {}

    def prepare(self) -> Sequence[FileTask]:
        if not self.request.search_results:
            raise RequestError("No search results provided")
        self.operations = replay_operations(self.request)
        self._groups = group_results(self.request.search_results)
        if not self._groups:
            raise RequestError("No files with matching rows found")

        return [
            FileTask(filename=result.filename, path=path, location=self.source_location(result))
            for path, result in self._groups.items()
        ]

    def source_location(self, result: SearchResult) -> str:
        """Where to read ``result``'s bytes: a matching original file's location, else its path."""
        for original in self.request.original_files:
            if original.location and (
                original.name == result.filename or original.path == result.path
            ):
                return original.location
        return result.path

    async def process(self, task: FileTask, emitter: ProgressEmitter) -> OutputFileRecord:
        result = self._groups[task.path]
        name, path = task.filename, task.path
        stats = self.stats

        stats.current_file = name
        emitter.file_start(name, path)

        table = await self.load_table(task.location)
        header_set = table.header_set
        missing = list(
            dict.fromkeys(op.field for op in self.operations if op.field not in header_set)
        )
        if missing:
            raise FieldNotFoundError(missing)

        total = len(table.rows)
        stats.total_rows += total
        emitter.file_info(name, total, fields_key="fieldsToReplace", fields=len(self.operations))

        selected = {row.row_index - 1 for row in result.rows}
        matches = sum(1 for offset in selected if offset < total)
        stats.total_matches += matches
        replacements = 0

        for index, row in enumerate(table.rows):
            changes = apply_operations(row, self.operations, header_set) if index in selected else []
            stats.processed_rows += 1
            if changes:
                replacements += len(changes)
                stats.total_replacements += len(changes)
                emitter.row_processed(name, path, index + 1, total, changes)
            await self.flush(emitter, index, total)

        new_path: str | None = None
        if replacements:
            text = await anyio.to_thread.run_sync(serialize, table.rows, table.columns)
            new_path = await self.store.save(replaced_file_name(path), text)
            stats.processed_files += 1
            logger.info(
                "replay.file.complete",
                extra=log_context(filename=name, path=path, replacements=replacements),
            )
        else:
            logger.info(
                "replay.file.skipped",
                extra=log_context(filename=name, path=path, selected_rows=len(selected)),
            )

        stats.current_file = None
        emitter.file_complete(name, matches=matches, replacements=replacements, new_path=new_path)
        emitter.snapshot()
        return OutputFileRecord(original_path=path, new_path=new_path)


__all__ = [
    "SelectiveReplayEngine",
    "group_results",
    "replay_operations",
]
