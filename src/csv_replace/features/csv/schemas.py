"""Pydantic schemas for the csv module."""

from __future__ import annotations

from pydantic import Field

from csv_replace.common.schema import BaseSchema


class HeadersResponse(BaseSchema):
    """Sorted union of the header names found across the requested files."""

    headers: list[str] = Field(default_factory=list)


__all__ = ["HeadersResponse"]
