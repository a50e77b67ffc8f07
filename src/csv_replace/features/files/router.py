"""Upload inputs and download stored artifacts."""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, File, HTTPException, Query, UploadFile, status
from fastapi.responses import FileResponse

from csv_replace.app.dependencies import SettingsDep, StorageDep
from csv_replace.common.downloads import build_content_disposition
from csv_replace.common.logging import log_context
from csv_replace.common.schema import ErrorMessage
from csv_replace.infra.storage import ArtifactNotFoundError, StorageError

from .schemas import UploadResponse

logger = logging.getLogger(__name__)

_UPLOAD_CHUNK_SIZE = 1024 * 1024

router = APIRouter()
download_router = APIRouter()


@router.post(
    "",
    response_model=UploadResponse,
    status_code=status.HTTP_200_OK,
    responses={
        status.HTTP_400_BAD_REQUEST: {"model": ErrorMessage},
        status.HTTP_413_CONTENT_TOO_LARGE: {"model": ErrorMessage},
    },
    summary="Upload a CSV file for processing",
)
async def upload_file_endpoint(
    settings: SettingsDep,
    storage: StorageDep,
    file: Annotated[UploadFile | None, File()] = None,
) -> UploadResponse:
    if file is None or not file.filename:
        raise HTTPException(status.HTTP_400_BAD_REQUEST, detail="No file provided")
    if not file.filename.lower().endswith(".csv"):
        raise HTTPException(status.HTTP_400_BAD_REQUEST, detail="File must be a CSV file")

    limit = settings.upload_max_bytes
    chunks: list[bytes] = []
    size = 0
    while chunk := await file.read(_UPLOAD_CHUNK_SIZE):
        size += len(chunk)
        if size > limit:
            raise HTTPException(
                status.HTTP_413_CONTENT_TOO_LARGE,
                detail=f"File exceeds the {limit} byte upload limit",
            )
        chunks.append(chunk)

    locator = await storage.save(file.filename, b"".join(chunks))
    stored_name = storage.name_from_locator(locator) or locator
    logger.info(
        "files.upload.complete",
        extra=log_context(filename=file.filename, stored_name=stored_name, size_bytes=size),
    )
    return UploadResponse(filename=file.filename, path=stored_name, url=locator)


@download_router.get(
    "",
    response_class=FileResponse,
    responses={
        status.HTTP_400_BAD_REQUEST: {
            "model": ErrorMessage,
            "description": "Missing or invalid file parameter",
        },
        status.HTTP_404_NOT_FOUND: {"model": ErrorMessage, "description": "Artifact not found"},
    },
    summary="Download a stored artifact",
)
async def download_file_endpoint(
    storage: StorageDep,
    file: Annotated[str | None, Query()] = None,
) -> FileResponse:
    if not file:
        raise HTTPException(status.HTTP_400_BAD_REQUEST, detail="File parameter is required")
    try:
        path = storage.resolve(file)
    except ArtifactNotFoundError as exc:
        raise HTTPException(status.HTTP_404_NOT_FOUND, detail="File not found") from exc
    except StorageError as exc:
        raise HTTPException(status.HTTP_400_BAD_REQUEST, detail="Invalid file path") from exc

    return FileResponse(
        path,
        media_type=storage.content_type(path.name),
        headers={"Content-Disposition": build_content_disposition(path.name)},
    )


__all__ = ["download_router", "router"]
