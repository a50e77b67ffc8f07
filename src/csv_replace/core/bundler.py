"""Collapse a request's output artifacts into one download locator."""

from __future__ import annotations

import logging
import time
from collections.abc import Sequence

import anyio

from csv_replace.common.logging import log_context
from csv_replace.infra.archive import zip_entries

from .models import OutputFileRecord
from .ports import ArtifactStore

logger = logging.getLogger(__name__)


async def bundle_outputs(
    outputs: Sequence[OutputFileRecord],
    store: ArtifactStore,
) -> tuple[str | None, bool]:
    """Return ``(download_url, is_zip)`` for the artifacts in ``outputs``.

    No artifacts gives ``None``; one gives its own locator; several are packed
    into ``processed_<ms>.zip``. Bundling failures degrade to ``(None, False)``.
    """
    locators = [record.new_path for record in outputs if record.new_path]
    if not locators:
        return None, False
    if len(locators) == 1:
        return locators[0], False

    try:
        entries: list[tuple[str, bytes]] = []
        for locator in locators:
            name = store.name_from_locator(locator) or locator
            entries.append((name, await store.read(locator)))
        archive = await anyio.to_thread.run_sync(zip_entries, entries)
        download_url = await store.save(f"processed_{int(time.time() * 1000)}.zip", archive)
    except Exception:
        logger.exception("bundle.failed", extra=log_context(artifacts=len(locators)))
        return None, False

    logger.info(
        "bundle.created",
        extra=log_context(artifacts=len(locators), download_url=download_url),
    )
    return download_url, True


__all__ = ["bundle_outputs"]
