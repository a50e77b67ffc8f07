"""Server-Sent Events (SSE) encoding helpers.

Frames are rendered as text blocks (``id``/``event``/``data`` lines followed by
a blank line) so they can be yielded straight into a ``StreamingResponse``.
The ``data`` field is always compact JSON on a single line.
"""

from __future__ import annotations

from typing import Any

from csv_replace.common.encoding import json_dumps


def _build_frame(
    data: str,
    *,
    event: str | None = None,
    event_id: str | int | None = None,
) -> str:
    lines: list[str] = []
    if event_id is not None:
        lines.append(f"id: {event_id}")
    if event is not None:
        lines.append(f"event: {event}")
    for chunk in data.splitlines() or [""]:
        lines.append(f"data: {chunk}")
    return "\n".join(lines) + "\n\n"


def sse_json(
    event: str,
    data: Any,
    *,
    event_id: str | int | None = None,
) -> str:
    """Encode an object as compact JSON and wrap it as an SSE frame."""

    return _build_frame(json_dumps(data), event=event, event_id=event_id)


__all__ = ["sse_json"]
