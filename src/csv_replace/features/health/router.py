"""API routes for the health module."""

from __future__ import annotations

import os
from datetime import UTC, datetime

from fastapi import APIRouter, status

from csv_replace.app.dependencies import SettingsDep, StorageDep

from .schemas import HealthCheckResponse

router = APIRouter()


@router.get(
    "",
    response_model=HealthCheckResponse,
    status_code=status.HTTP_200_OK,
    summary="Service health status",
)
async def read_health(settings: SettingsDep, storage: StorageDep) -> HealthCheckResponse:
    """Return liveness information for the service."""
    writable = storage.base_dir.is_dir() and os.access(storage.base_dir, os.W_OK)
    return HealthCheckResponse(
        status="ok" if writable else "error",
        timestamp=datetime.now(tz=UTC),
        version=settings.app_version,
        storage_writable=writable,
    )
