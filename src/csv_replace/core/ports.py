"""Interfaces the engines use to reach file bytes and artifact storage."""

from __future__ import annotations

from typing import Protocol


class FileSource(Protocol):
    async def fetch(self, location: str | None) -> bytes: ...


class ArtifactStore(Protocol):
    async def save(self, name: str, data: bytes | str) -> str: ...

    async def read(self, locator: str) -> bytes: ...

    def name_from_locator(self, locator: str) -> str | None: ...


__all__ = ["ArtifactStore", "FileSource"]
