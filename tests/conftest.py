from __future__ import annotations

from collections.abc import AsyncIterator, Awaitable, Callable
from pathlib import Path

import httpx
import pytest
import pytest_asyncio
from fastapi import FastAPI

from csv_replace.core.models import FileDescriptor
from csv_replace.infra.acquisition import FileAcquirer
from csv_replace.infra.storage import ArtifactStorage
from csv_replace.main import create_app
from csv_replace.settings import Settings

PutCsv = Callable[..., Awaitable[FileDescriptor]]


def pytest_collection_modifyitems(config, items) -> None:
    for item in items:
        path_str = str(Path(str(item.fspath)))
        if "/tests/integration/" in path_str:
            item.add_marker(pytest.mark.integration)
        elif "/tests/unit/" in path_str:
            item.add_marker(pytest.mark.unit)


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(_env_file=None, storage_dir=tmp_path / "artifacts")


@pytest.fixture
def storage(settings: Settings) -> ArtifactStorage:
    return ArtifactStorage(settings.storage_dir, download_path=settings.download_path)


@pytest.fixture
def acquirer(storage: ArtifactStorage) -> FileAcquirer:
    return FileAcquirer(storage)


@pytest.fixture
def put_csv(storage: ArtifactStorage) -> PutCsv:
    """Store CSV text as an uploaded input and return its descriptor."""

    async def _put(name: str, text: str, *, path: str | None = None) -> FileDescriptor:
        locator = await storage.save(name, text)
        return FileDescriptor(path=path or f"/data/{name}", name=name, location=locator)

    return _put


@pytest.fixture
def http_transport() -> httpx.AsyncBaseTransport | None:
    return None


@pytest.fixture
def app(settings: Settings, http_transport: httpx.AsyncBaseTransport | None) -> FastAPI:
    return create_app(settings, http_transport=http_transport)


@pytest_asyncio.fixture
async def async_client(app: FastAPI) -> AsyncIterator[httpx.AsyncClient]:
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as client:
        yield client
