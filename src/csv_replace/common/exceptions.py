"""Application-wide exception handlers."""

from __future__ import annotations

import logging
from typing import Any

from fastapi import HTTPException, Request, status
from fastapi.responses import JSONResponse

from csv_replace.common.logging import log_context

logger = logging.getLogger("csv_replace.errors")


def _request_extra(request: Request, **extra: Any) -> dict[str, Any]:
    return log_context(path=request.url.path, method=request.method, **extra)


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Log the traceback and answer with an opaque 500."""
    logger.exception(
        "unhandled_exception",
        extra=_request_extra(request, exception_type=type(exc).__name__),
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error"},
    )


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    if exc.status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR:
        logger.error(
            "http_exception",
            extra=_request_extra(request, status_code=exc.status_code, detail=exc.detail),
        )
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail},
        headers=exc.headers,
    )


__all__ = ["http_exception_handler", "unhandled_exception_handler"]
