"""Helper functions shared across tests."""

from __future__ import annotations

import json
from typing import Any

from csv_replace.core.batch import BatchEngine
from csv_replace.core.events import ProgressChannel, ProgressEvent

PEOPLE_CSV = "name,city,state\nAlice,New York,NY\nBob,Albany,ny\nCarol,Austin,TX\n"


async def run_engine(engine: BatchEngine) -> list[ProgressEvent]:
    """Run ``engine`` to completion and return every event it emitted."""

    channel = ProgressChannel()
    await engine.run(channel)
    return [event async for event in channel]


def event_names(events: list[ProgressEvent]) -> list[str]:
    return [event.name for event in events]


def events_named(events: list[ProgressEvent], name: str) -> list[dict[str, Any]]:
    return [event.data for event in events if event.name == name]


def last_event(events: list[ProgressEvent], name: str) -> dict[str, Any]:
    matching = events_named(events, name)
    assert matching, f"no {name!r} event emitted"
    return matching[-1]


def parse_sse(body: str) -> list[tuple[str | None, str, dict[str, Any]]]:
    """Split an SSE body into ``(id, event, data)`` triples."""

    frames: list[tuple[str | None, str, dict[str, Any]]] = []
    for block in body.split("\n\n"):
        if not block.strip():
            continue
        event_id: str | None = None
        event = "message"
        data_lines: list[str] = []
        for line in block.splitlines():
            field, _, value = line.partition(": ")
            if field == "id":
                event_id = value
            elif field == "event":
                event = value
            elif field == "data":
                data_lines.append(value)
        frames.append((event_id, event, json.loads("\n".join(data_lines))))
    return frames


__all__ = [
    "PEOPLE_CSV",
    "event_names",
    "events_named",
    "last_event",
    "parse_sse",
    "run_engine",
]
