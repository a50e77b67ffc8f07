"""HTTP middleware: correlation ids, request logging and CORS."""

from __future__ import annotations

import logging
import time
from uuid import uuid4

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response

from csv_replace.settings import Settings

from .logging import bind_request_context, clear_request_context, log_context

REQUEST_ID_HEADER = "X-Request-ID"

logger = logging.getLogger("csv_replace.request")


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Bind a correlation id per request, echo it back and log the outcome.

    The id comes from ``X-Request-ID`` when the client sends one.
    """

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid4().hex
        request.state.correlation_id = request_id
        bind_request_context(request_id)
        started = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception:
            # Traceback is logged by the unhandled exception handler.
            logger.error("request.error", extra=self._extra(request, started))
            raise
        else:
            logger.info("request.complete", extra=self._extra(request, started, response))
        finally:
            clear_request_context()

        response.headers[REQUEST_ID_HEADER] = request_id
        return response

    @staticmethod
    def _extra(request: Request, started: float, response: Response | None = None) -> dict:
        return log_context(
            path=request.url.path,
            method=request.method,
            status_code=response.status_code if response is not None else None,
            duration_ms=round((time.perf_counter() - started) * 1000.0, 2),
        )


def register_middleware(app: FastAPI, settings: Settings) -> None:
    if settings.server_cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=list(settings.server_cors_origins),
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
            expose_headers=["Content-Disposition", REQUEST_ID_HEADER],
        )
    app.add_middleware(RequestContextMiddleware)


__all__ = ["REQUEST_ID_HEADER", "RequestContextMiddleware", "register_middleware"]
