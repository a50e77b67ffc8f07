"""Download-related helpers (safe filenames, headers)."""

from __future__ import annotations

import unicodedata
from urllib.parse import quote

__all__ = ["build_content_disposition"]


def build_content_disposition(filename: str, *, default: str = "download") -> str:
    """Return a safe ``Content-Disposition`` header value for ``filename``.

    An ASCII fallback ``filename`` is always present; a UTF-8 ``filename*``
    is added when the name had to be altered.
    """
    cleaned = "".join(ch for ch in filename.strip() if unicodedata.category(ch)[0] != "C")
    candidate = cleaned.strip() or default

    fallback = "".join(
        char if 32 <= ord(char) < 127 and char not in {'"', "\\", ";", ":"} else "_"
        for char in candidate
    )
    fallback = (fallback.strip("_ ") or default)[:255]

    if fallback == candidate:
        return f'attachment; filename="{fallback}"'

    encoded = quote(candidate, safe="")
    return f"attachment; filename=\"{fallback}\"; filename*=UTF-8''{encoded}"
