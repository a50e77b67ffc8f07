from __future__ import annotations

import httpx
import pytest

pytestmark = pytest.mark.asyncio


async def test_health(async_client: httpx.AsyncClient) -> None:
    response = await async_client.get("/api/v1/health")

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "ok"
    assert body["storageWritable"] is True
    assert body["version"]


async def test_request_id_is_echoed(async_client: httpx.AsyncClient) -> None:
    response = await async_client.get("/api/v1/health", headers={"X-Request-ID": "req-42"})

    assert response.headers["x-request-id"] == "req-42"


async def test_request_id_is_generated(async_client: httpx.AsyncClient) -> None:
    response = await async_client.get("/api/v1/health")

    assert len(response.headers["x-request-id"]) == 32


async def test_docs_are_disabled_by_default(async_client: httpx.AsyncClient) -> None:
    response = await async_client.get("/openapi.json")

    assert response.status_code == 404


async def test_unhandled_errors_become_opaque_500s(app) -> None:
    @app.get("/boom")
    async def boom() -> None:
        raise RuntimeError("secret detail")

    transport = httpx.ASGITransport(app=app, raise_app_exceptions=False)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as client:
        response = await client.get("/boom")

    assert response.status_code == 500
    assert response.json() == {"detail": "Internal server error"}
