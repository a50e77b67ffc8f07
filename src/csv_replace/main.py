"""csv-replace FastAPI application entry point."""

from __future__ import annotations

import logging

import httpx
from fastapi import FastAPI, HTTPException

from .api.router import api_router
from .app.lifecycles import create_application_lifespan
from .common.exceptions import http_exception_handler, unhandled_exception_handler
from .common.logging import setup_logging
from .common.middleware import register_middleware
from .features.files.router import download_router
from .infra.storage import ArtifactStorage
from .settings import Settings, get_settings

logger = logging.getLogger(__name__)
API_PREFIX = "/api"


def create_app(
    settings: Settings | None = None,
    *,
    http_transport: httpx.AsyncBaseTransport | None = None,
) -> FastAPI:
    """Return a configured FastAPI application.

    ``http_transport`` replaces the network transport used for remote file
    downloads; tests pass an ``httpx.MockTransport`` here.
    """

    settings = settings or get_settings()
    setup_logging(settings.logging_level)

    storage = ArtifactStorage(settings.storage_dir, download_path=settings.download_path)

    docs_url = settings.docs_url if settings.api_docs_enabled else None
    openapi_url = settings.openapi_url if settings.api_docs_enabled else None

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        docs_url=docs_url,
        redoc_url=None,
        openapi_url=openapi_url,
        lifespan=create_application_lifespan(settings=settings, storage=storage),
    )

    app.state.settings = settings
    app.state.storage = storage
    app.state.http_transport = http_transport

    register_middleware(app, settings)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    app.include_router(api_router, prefix=API_PREFIX)
    app.include_router(download_router, prefix=settings.download_path, tags=["files"])
    return app


__all__ = [
    "API_PREFIX",
    "create_app",
]
