"""Service layer for the csv module."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator, Sequence
from contextlib import suppress

import anyio

from csv_replace.common.logging import log_context
from csv_replace.core.batch import BatchEngine
from csv_replace.core.errors import CsvReplaceError
from csv_replace.core.events import ProgressChannel, ProgressEvent
from csv_replace.core.models import FileDescriptor, ProcessRequest, ReplayRequest
from csv_replace.core.pipeline import SearchPipeline
from csv_replace.core.replay import SelectiveReplayEngine
from csv_replace.core.tabular import parse_header
from csv_replace.infra.acquisition import FileAcquirer
from csv_replace.infra.storage import ArtifactStorage
from csv_replace.settings import Settings

logger = logging.getLogger(__name__)


class CsvService:
    """Build engines for incoming requests and drive their progress streams."""

    def __init__(
        self,
        *,
        settings: Settings,
        storage: ArtifactStorage,
        acquirer: FileAcquirer,
    ) -> None:
        self._settings = settings
        self._storage = storage
        self._acquirer = acquirer

    def search_engine(self, request: ProcessRequest) -> SearchPipeline:
        return SearchPipeline(
            request,
            source=self._acquirer,
            store=self._storage,
            stats_interval=self._settings.stats_interval,
        )

    def replay_engine(self, request: ReplayRequest) -> SelectiveReplayEngine:
        return SelectiveReplayEngine(
            request,
            source=self._acquirer,
            store=self._storage,
            stats_interval=self._settings.stats_interval,
        )

    async def stream(self, engine: BatchEngine) -> AsyncIterator[ProgressEvent]:
        """Run ``engine`` in a producer task and yield its events as they arrive.

        Closing the iterator early (client disconnect) cancels the producer.
        """
        channel = ProgressChannel()
        producer = asyncio.create_task(engine.run(channel))
        try:
            async for event in channel:
                yield event
            await producer
        finally:
            if not producer.done():
                logger.info(
                    "csv.stream.cancelled",
                    extra=log_context(engine=type(engine).__name__),
                )
                producer.cancel()
                with suppress(asyncio.CancelledError):
                    await producer

    async def collect_headers(self, files: Sequence[FileDescriptor]) -> list[str]:
        """Sorted union of header names; unreadable files are logged and skipped."""
        headers: set[str] = set()
        for descriptor in files:
            try:
                data = await self._acquirer.fetch(descriptor.location)
                names = await anyio.to_thread.run_sync(parse_header, data)
            except CsvReplaceError as exc:
                logger.warning(
                    "csv.headers.skipped",
                    extra=log_context(
                        filename=descriptor.name,
                        path=descriptor.path,
                        reason=str(exc),
                    ),
                )
                continue
            headers.update(names)
        return sorted(headers)


__all__ = ["CsvService"]
