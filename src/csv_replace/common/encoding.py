"""Shared JSON encoding helpers."""

from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import asdict, is_dataclass
from datetime import date, datetime
from pathlib import Path
from typing import Any


def json_default_encoder(value: Any) -> Any:
    """Best-effort serializer for schemas, dataclasses and common primitives."""

    # Local import avoids circular dependency at module import time.
    from csv_replace.common.schema import BaseSchema

    if isinstance(value, BaseSchema):
        return value.serializable_dict()
    if is_dataclass(value) and not isinstance(value, type):
        return asdict(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, Path):
        return str(value)
    if isinstance(value, set):
        return sorted(json_default_encoder(item) for item in value)
    return str(value)


def _normalize_json(content: Any) -> Any:
    from csv_replace.common.schema import BaseSchema

    if isinstance(content, BaseSchema):
        return content.serializable_dict()
    if isinstance(content, Mapping):
        return {str(key): _normalize_json(val) for key, val in content.items()}
    if isinstance(content, (list, tuple)):
        return [_normalize_json(item) for item in content]
    return content


def json_dumps(
    content: Any,
    *,
    indent: int | None = None,
    separators: tuple[str, str] | None = (",", ":"),
    sort_keys: bool = False,
) -> str:
    """Render JSON using the shared encoder."""

    kwargs: dict[str, Any] = {
        "default": json_default_encoder,
        "ensure_ascii": False,
        "sort_keys": sort_keys,
    }
    if indent is not None:
        kwargs["indent"] = indent
    if separators is not None:
        kwargs["separators"] = separators
    return json.dumps(_normalize_json(content), **kwargs)


__all__ = ["json_default_encoder", "json_dumps"]
