"""Pydantic schemas for the health module."""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import Field

from csv_replace.common.schema import BaseSchema


class HealthCheckResponse(BaseSchema):
    """Top-level payload returned by the `/health` endpoint."""

    status: Literal["ok", "error"] = Field(..., description="Overall service health indicator.")
    timestamp: datetime = Field(..., description="UTC timestamp for when the check executed.")
    version: str = Field(..., description="Running service version.")
    storage_writable: bool = Field(..., description="Whether the artifact directory accepts writes.")
