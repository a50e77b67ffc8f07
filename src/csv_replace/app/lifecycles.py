"""FastAPI lifespan helpers for the csv-replace application."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager, suppress

from fastapi import FastAPI
from fastapi.routing import Lifespan

from csv_replace.common.logging import log_context
from csv_replace.infra.storage import ArtifactStorage
from csv_replace.settings import Settings

logger = logging.getLogger(__name__)


async def run_artifact_pruner(
    *,
    storage: ArtifactStorage,
    settings: Settings,
    stop_event: asyncio.Event,
) -> None:
    """Delete expired artifacts until ``stop_event`` is set."""
    retention = settings.artifact_retention
    interval = settings.artifact_prune_interval.total_seconds()

    while not stop_event.is_set():
        try:
            removed = await storage.prune(retention)
            if removed:
                logger.info("artifacts.pruned", extra=log_context(removed=removed))
        except Exception:
            logger.warning("artifacts.prune.failed", exc_info=True)

        try:
            await asyncio.wait_for(stop_event.wait(), timeout=interval)
        except TimeoutError:
            continue


def create_application_lifespan(
    *,
    settings: Settings,
    storage: ArtifactStorage,
) -> Lifespan[FastAPI]:
    """Return the FastAPI lifespan handler used by the app factory."""

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        storage.base_dir.mkdir(parents=True, exist_ok=True)
        logger.info(
            "app.startup",
            extra=log_context(storage_dir=str(storage.base_dir), version=settings.app_version),
        )

        pruner_stop = asyncio.Event()
        pruner_task = asyncio.create_task(
            run_artifact_pruner(storage=storage, settings=settings, stop_event=pruner_stop)
        )
        try:
            yield
        finally:
            pruner_stop.set()
            pruner_task.cancel()
            with suppress(asyncio.CancelledError):
                await pruner_task
            logger.info("app.shutdown")

    return lifespan


__all__ = ["create_application_lifespan", "run_artifact_pruner"]
