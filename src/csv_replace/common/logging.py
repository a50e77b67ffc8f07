"""Process-wide console logging for csv-replace.

Each record becomes one line: UTC timestamp, level, logger, the correlation id
bound by the request middleware, the event name, then any ``extra`` fields as
``key=value`` pairs in insertion order.
"""

from __future__ import annotations

import logging
from contextvars import ContextVar
from datetime import UTC, datetime
from typing import Any

_CORRELATION_ID: ContextVar[str | None] = ContextVar("csv_replace_correlation_id", default=None)

_RESERVED = frozenset(
    vars(logging.LogRecord("", logging.NOTSET, "", 0, "", (), None))
) | {"message", "asctime", "correlation_id", "taskName", "color_message"}

_INSTALLED = "_csv_replace_handler"
_PROPAGATED = ("uvicorn", "uvicorn.error", "uvicorn.access", "httpx")


class ConsoleLogFormatter(logging.Formatter):
    """One line per record, e.g.

    ``2026-03-02T10:14:09.302Z INFO  csv_replace.core.pipeline [cid=-] event rows=3``
    """

    def __init__(self) -> None:
        super().__init__(
            "%(asctime)s %(levelname)-5s %(name)s [cid=%(correlation_id)s] %(message)s"
        )

    def formatTime(self, record: logging.LogRecord, datefmt: str | None = None) -> str:
        stamp = datetime.fromtimestamp(record.created, tz=UTC)
        return f"{stamp:%Y-%m-%dT%H:%M:%S}.{int(record.msecs):03d}Z"

    def format(self, record: logging.LogRecord) -> str:
        record.correlation_id = (
            getattr(record, "correlation_id", None) or _CORRELATION_ID.get() or "-"
        )
        line = super().format(record)
        pairs = [
            f"{key}={'null' if value is None else value}"
            for key, value in vars(record).items()
            if key not in _RESERVED and not key.startswith("_")
        ]
        return " ".join([line, *pairs])


def setup_logging(level_name: str = "INFO") -> None:
    """Route every logger through one console handler at ``level_name``.

    Repeated calls only change the level.
    """
    root = logging.getLogger()
    root.setLevel(getattr(logging, level_name.upper(), logging.INFO))
    if getattr(root, _INSTALLED, False):
        return

    handler = logging.StreamHandler()
    handler.setFormatter(ConsoleLogFormatter())
    root.handlers = [handler]
    for name in _PROPAGATED:
        library_logger = logging.getLogger(name)
        library_logger.handlers.clear()
        library_logger.propagate = True
    setattr(root, _INSTALLED, True)


def bind_request_context(correlation_id: str | None) -> None:
    _CORRELATION_ID.set(correlation_id)


def clear_request_context() -> None:
    _CORRELATION_ID.set(None)


def log_context(
    *,
    filename: str | None = None,
    path: str | None = None,
    **extra: Any,
) -> dict[str, Any]:
    """``extra`` payload for a structured log call.

    ``filename`` and ``path`` are stored as ``file_name`` and ``file_path``
    since the bare names clash with :class:`logging.LogRecord` attributes.
    """
    context: dict[str, Any] = {}
    if filename is not None:
        context["file_name"] = filename
    if path is not None:
        context["file_path"] = path
    context.update(extra)
    return context


__all__ = [
    "ConsoleLogFormatter",
    "bind_request_context",
    "clear_request_context",
    "log_context",
    "setup_logging",
]
