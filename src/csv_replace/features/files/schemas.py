"""Pydantic schemas for the files module."""

from __future__ import annotations

from pydantic import Field

from csv_replace.common.schema import BaseSchema


class UploadResponse(BaseSchema):
    success: bool = True
    filename: str = Field(..., description="Name of the file as uploaded.")
    path: str = Field(..., description="Stored artifact name.")
    url: str = Field(..., description="Download locator for the stored file.")


__all__ = ["UploadResponse"]
