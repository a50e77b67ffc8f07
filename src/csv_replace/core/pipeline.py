"""Search phase: match rows, optionally rewrite them, persist the results."""

from __future__ import annotations

import logging
from collections.abc import Sequence

import anyio

from csv_replace.common.logging import log_context

from .batch import BatchEngine, FileTask
from .errors import RequestError
from .events import ProgressEmitter
from .matching import AdvancedRowPredicate, SimpleRowPredicate
from .models import OutputFileRecord, ProcessRequest, ReplaceOperation, RowChange
from .ports import ArtifactStore, FileSource
from .replace import (
    apply_operations,
    apply_single_target,
    observe_fields,
    replaced_file_name,
    resolve_target_fields,
)
from .tabular import Row, serialize

logger = logging.getLogger(__name__)


def advanced_operations(request: ProcessRequest) -> list[ReplaceOperation]:
    """Replace operations in effect for an advanced-mode request."""
    if request.replace_operations:
        return [
            operation
            for operation in request.replace_operations
            if operation.field and operation.value is not None
        ]
    if request.replace_target_field and request.replace_value is not None:
        return [
            ReplaceOperation(field=request.replace_target_field, value=request.replace_value)
        ]
    return []


class SearchPipeline(BatchEngine):
    """Run a :class:`ProcessRequest` over its files and stream progress."""

    event_prefix = "pipeline"

    def __init__(
        self,
        request: ProcessRequest,
        *,
        source: FileSource,
        store: ArtifactStore,
        stats_interval: int = 10,
    ) -> None:
        super().__init__(source=source, store=store, stats_interval=stats_interval)
        self.request = request
        self._predicate: SimpleRowPredicate | AdvancedRowPredicate | None = None
        self._operations: list[ReplaceOperation] = []
        self.replace_mode = False

    def prepare(self) -> Sequence[FileTask]:
        request = self.request
        if not request.files:
            raise RequestError("Files are required")

        if request.uses_advanced:
            self._predicate = AdvancedRowPredicate(request.advanced)
            self._operations = advanced_operations(request)
            self.replace_mode = bool(self._operations)
        else:
            if not request.search_term:
                raise RequestError("Search term is required in simple mode")
            self._predicate = SimpleRowPredicate.from_term(
                request.search_term,
                case_sensitive=request.case_sensitive,
                whole_word=request.whole_word,
                use_regex=request.use_regex,
            )
            self.replace_mode = bool(request.replace_term)

        return [
            FileTask(filename=descriptor.name, path=descriptor.path, location=descriptor.location)
            for descriptor in request.files
        ]

    async def process(self, task: FileTask, emitter: ProgressEmitter) -> OutputFileRecord:
        name, path = task.filename, task.path
        stats = self.stats

        stats.current_file = name
        emitter.file_start(name, path)

        table = await self.load_table(task.location)
        total = len(table.rows)
        stats.total_rows += total
        emitter.file_info(name, total, fields_key="fieldsToSearch", fields=len(table.headers))

        targets = resolve_target_fields(self.request.selected_fields, table.headers)
        header_set = table.header_set
        kept: list[Row] = []
        matches = replacements = 0

        for index, row in enumerate(table.rows):
            matched, changes = self._scan_row(row, table.headers, header_set, targets)
            if matched:
                matches += 1
                stats.total_matches += 1
                if self.replace_mode:
                    replacements += len(changes)
                    stats.total_replacements += len(changes)
                kept.append(row)
            elif not self.request.show_only_matches:
                kept.append(row)
            stats.processed_rows += 1

            if changes:
                emitter.row_processed(name, path, index + 1, total, changes)
            await self.flush(emitter, index, total)

        new_path: str | None = None
        if self.replace_mode:
            text = await anyio.to_thread.run_sync(serialize, kept, table.columns)
            new_path = await self.store.save(replaced_file_name(path), text)

        stats.processed_files += 1
        stats.current_file = None
        emitter.file_complete(name, matches=matches, replacements=replacements, new_path=new_path)
        emitter.snapshot()

        logger.info(
            "pipeline.file.complete",
            extra=log_context(
                filename=name,
                path=path,
                rows=total,
                matches=matches,
                replacements=replacements,
            ),
        )
        return OutputFileRecord(original_path=path, new_path=new_path)

    def _scan_row(
        self,
        row: Row,
        headers: Sequence[str],
        header_set: frozenset[str],
        targets: Sequence[str],
    ) -> tuple[bool, list[RowChange]]:
        predicate = self._predicate
        if isinstance(predicate, AdvancedRowPredicate):
            result = predicate.evaluate(row, header_set)
            if not result.matches:
                return False, []
            if self.replace_mode:
                return True, apply_operations(row, self._operations, header_set)
            return True, observe_fields(row, result.matched_fields)

        if predicate is None or not predicate.matches(row, headers):
            return False, []
        if self.replace_mode:
            return True, apply_single_target(row, targets, self.request.replace_term or "")
        return True, observe_fields(row, predicate.attribute(row, headers))


__all__ = ["SearchPipeline", "advanced_operations"]
