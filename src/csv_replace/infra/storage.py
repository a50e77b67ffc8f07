"""Local filesystem-backed artifact store.

Artifacts live in one flat directory. Each stored name is the sanitized
original name prefixed with a millisecond timestamp; a numeric suffix is added
when that name is already taken. Artifacts are addressed by a download
locator of the form ``<download_path>?file=<stored name>``.
"""

from __future__ import annotations

import logging
import re
import time
from datetime import timedelta
from pathlib import Path
from urllib.parse import parse_qs, quote, urlsplit

from fastapi.concurrency import run_in_threadpool

from csv_replace.common.logging import log_context

logger = logging.getLogger(__name__)

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9.-]")
_MAX_SUFFIX_ATTEMPTS = 1000

ZIP_CONTENT_TYPE = "application/zip"
CSV_CONTENT_TYPE = "text/csv"


class StorageError(Exception):
    """Artifact name or locator is invalid."""


class ArtifactNotFoundError(StorageError):
    """No artifact is stored under the requested name."""


def sanitize_name(name: str) -> str:
    return _UNSAFE_CHARS.sub("_", name) or "file"


class ArtifactStorage:
    """Persist output artifacts and resolve their download locators."""

    def __init__(self, base_dir: Path, *, download_path: str) -> None:
        self._base_dir = Path(base_dir).expanduser().resolve()
        self._download_path = download_path.rstrip("/") or "/"
        self._base_dir.mkdir(parents=True, exist_ok=True)

    @property
    def base_dir(self) -> Path:
        return self._base_dir

    @property
    def download_path(self) -> str:
        return self._download_path

    # ---- Naming --------------------------------------------------------

    def locator_for(self, name: str) -> str:
        return f"{self._download_path}?file={quote(name, safe='')}"

    def name_from_locator(self, locator: str) -> str | None:
        """Return the stored name a download locator points to, if it is one."""
        parts = urlsplit(locator)
        if parts.scheme or parts.netloc:
            return None
        if parts.path.rstrip("/") != self._download_path:
            return None
        values = parse_qs(parts.query).get("file")
        if not values or not values[0]:
            raise StorageError("Invalid file URL")
        return values[0]

    def path_for(self, name: str) -> Path:
        """Return the absolute path for ``name``; reject anything outside the store."""
        if not name or "/" in name or "\\" in name or name in {".", ".."}:
            raise StorageError(f"Invalid artifact name: {name!r}")
        candidate = (self._base_dir / name).resolve()
        try:
            candidate.relative_to(self._base_dir)
        except ValueError as exc:
            raise StorageError("Artifact name escapes the storage directory.") from exc
        return candidate

    def resolve(self, locator: str) -> Path:
        """Map a download locator (or bare stored name) to an existing file."""
        name = self.name_from_locator(locator) or locator
        path = self.path_for(name)
        if not path.is_file():
            raise ArtifactNotFoundError(name)
        return path

    @staticmethod
    def content_type(name: str) -> str:
        return ZIP_CONTENT_TYPE if name.lower().endswith(".zip") else CSV_CONTENT_TYPE

    # ---- I/O -----------------------------------------------------------

    async def save(self, name: str, data: bytes | str) -> str:
        """Persist ``data`` under a fresh name derived from ``name``; return its locator."""
        payload = data.encode("utf-8") if isinstance(data, str) else data
        stored = await run_in_threadpool(self._write_unique, name, payload)
        logger.debug(
            "storage.saved",
            extra=log_context(filename=stored, size_bytes=len(payload)),
        )
        return self.locator_for(stored)

    async def read(self, locator: str) -> bytes:
        path = self.resolve(locator)
        return await run_in_threadpool(path.read_bytes)

    async def prune(self, older_than: timedelta) -> int:
        """Delete artifacts last modified more than ``older_than`` ago."""
        cutoff = time.time() - older_than.total_seconds()

        def _prune() -> int:
            removed = 0
            for entry in self._base_dir.iterdir():
                if not entry.is_file():
                    continue
                try:
                    if entry.stat().st_mtime < cutoff:
                        entry.unlink()
                        removed += 1
                except FileNotFoundError:
                    continue
            return removed

        return await run_in_threadpool(_prune)

    def _write_unique(self, name: str, payload: bytes) -> str:
        safe = sanitize_name(name)
        stem, dot, suffix = safe.rpartition(".")
        if not dot or not stem:
            stem, suffix = safe, ""
        extension = f".{suffix}" if suffix else ""
        prefix = f"{int(time.time() * 1000)}_{stem}"

        for attempt in range(_MAX_SUFFIX_ATTEMPTS):
            candidate = f"{prefix}{extension}" if attempt == 0 else f"{prefix}_{attempt}{extension}"
            try:
                with (self._base_dir / candidate).open("xb") as target:
                    target.write(payload)
            except FileExistsError:
                continue
            return candidate

        raise StorageError(f"Could not allocate a unique name for {name!r}")


__all__ = [
    "CSV_CONTENT_TYPE",
    "ZIP_CONTENT_TYPE",
    "ArtifactNotFoundError",
    "ArtifactStorage",
    "StorageError",
    "sanitize_name",
]
