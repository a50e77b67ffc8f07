"""Request-scoped dependency providers backed by ``app.state``."""

from __future__ import annotations

from typing import Annotated

import httpx
from fastapi import Depends, Request

from csv_replace.infra.acquisition import FileAcquirer
from csv_replace.infra.storage import ArtifactStorage
from csv_replace.settings import Settings


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_storage(request: Request) -> ArtifactStorage:
    return request.app.state.storage


SettingsDep = Annotated[Settings, Depends(get_app_settings)]
StorageDep = Annotated[ArtifactStorage, Depends(get_storage)]


def get_acquirer(request: Request, settings: SettingsDep, storage: StorageDep) -> FileAcquirer:
    transport: httpx.AsyncBaseTransport | None = getattr(
        request.app.state, "http_transport", None
    )
    return FileAcquirer(
        storage,
        timeout=settings.remote_timeout_seconds,
        max_bytes=settings.remote_max_bytes,
        transport=transport,
    )


AcquirerDep = Annotated[FileAcquirer, Depends(get_acquirer)]

__all__ = [
    "AcquirerDep",
    "SettingsDep",
    "StorageDep",
    "get_acquirer",
    "get_app_settings",
    "get_storage",
]
