"""API router composition for the csv-replace FastAPI application."""

from __future__ import annotations

from fastapi import APIRouter

from csv_replace.features.csv.router import router as csv_router
from csv_replace.features.files.router import router as files_router
from csv_replace.features.health.router import router as health_router

api_router = APIRouter(prefix="/v1")
api_router.include_router(health_router, prefix="/health", tags=["health"])
api_router.include_router(csv_router, prefix="/csv", tags=["csv"])
api_router.include_router(files_router, prefix="/files", tags=["files"])

__all__ = ["api_router"]
