"""Streaming search and replace across CSV files."""

from __future__ import annotations

from importlib import metadata as _metadata

try:  # pragma: no cover - executed when package metadata is available
    __version__ = _metadata.version("csv-replace")
except _metadata.PackageNotFoundError:  # pragma: no cover - local source tree fallback
    __version__ = "0.0.0"

__all__ = ["__version__"]
