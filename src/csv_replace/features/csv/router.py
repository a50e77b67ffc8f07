"""FastAPI router exposing the search and replace streams."""

from __future__ import annotations

from collections.abc import AsyncIterator
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import StreamingResponse

from csv_replace.app.dependencies import AcquirerDep, SettingsDep, StorageDep
from csv_replace.common.sse import sse_json
from csv_replace.core.events import ProgressEvent
from csv_replace.core.models import HeadersRequest, ProcessRequest, ReplayRequest

from .schemas import HeadersResponse
from .service import CsvService

router = APIRouter()


def get_csv_service(
    settings: SettingsDep,
    storage: StorageDep,
    acquirer: AcquirerDep,
) -> CsvService:
    return CsvService(settings=settings, storage=storage, acquirer=acquirer)


CsvServiceDep = Annotated[CsvService, Depends(get_csv_service)]


def _event_stream_response(events: AsyncIterator[ProgressEvent]) -> StreamingResponse:
    async def event_stream() -> AsyncIterator[str]:
        sequence = 0
        async for event in events:
            sequence += 1
            yield sse_json(event.name, event.data, event_id=sequence)

    return StreamingResponse(
        event_stream(),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "X-Accel-Buffering": "no",
        },
    )


@router.post(
    "/process",
    response_class=StreamingResponse,
    summary="Search (and optionally replace) across CSV files, streaming progress",
)
async def process_csv_endpoint(
    payload: ProcessRequest,
    service: CsvServiceDep,
) -> StreamingResponse:
    return _event_stream_response(service.stream(service.search_engine(payload)))


@router.post(
    "/replace",
    response_class=StreamingResponse,
    summary="Replace exactly the rows returned by a previous search, streaming progress",
)
async def replace_csv_endpoint(
    payload: ReplayRequest,
    service: CsvServiceDep,
) -> StreamingResponse:
    return _event_stream_response(service.stream(service.replay_engine(payload)))


@router.post(
    "/headers",
    response_model=HeadersResponse,
    summary="List the union of header names across CSV files",
)
async def read_headers_endpoint(
    payload: HeadersRequest,
    service: CsvServiceDep,
) -> HeadersResponse:
    if not payload.files:
        raise HTTPException(status.HTTP_400_BAD_REQUEST, detail="No files provided")
    return HeadersResponse(headers=await service.collect_headers(payload.files))


__all__ = ["router"]
