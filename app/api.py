"""HTTP route definitions for the service."""

from __future__ import annotations

import logging
from typing import Any, Optional

from fastapi import APIRouter, Body, Depends, Query, status
from fastapi.responses import JSONResponse, PlainTextResponse

from app.schemas import (
    ErrorResponse,
    HealthResponse,
    ReadingListResponse,
    ReadingResponse,
    StoredReadingResponse,
    reading_payload,
)
from datastore.base import StoreError
from services.normalizer import InvalidReadingError
from services.readings import NoReadingsError, ReadingService, build_default_service, parse_limit
from settings import Settings, get_settings

logger = logging.getLogger(__name__)

RETRIEVAL_ERROR = "Error retrieving data"

router = APIRouter()


def get_service() -> ReadingService:
    return build_default_service()


def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(message=message).model_dump(),
    )


@router.get(
    "/",
    summary="Plain-text welcome message.",
    response_class=PlainTextResponse,
)
def root(settings: Settings = Depends(get_settings)) -> str:
    return settings.welcome_message


@router.get(
    "/health",
    summary="Report whether the reading store is connected.",
    response_model=HealthResponse,
    responses={503: {"model": HealthResponse}},
)
def healthcheck(service: ReadingService = Depends(get_service)):
    health = HealthResponse(
        status="ok" if service.is_ready else "unavailable",
        backend=service.store.backend,
        schema_name=service.schema.name,
    )
    if service.is_ready:
        return health
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content=health.model_dump(by_alias=True),
    )


@router.post(
    "/api/sensor-data",
    summary="Store a sensor reading.",
    response_model=StoredReadingResponse,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
def store_reading(
    payload: Any = Body(None),
    service: ReadingService = Depends(get_service),
):
    # Non-JSON content types arrive as raw bytes.
    if payload is None or isinstance(payload, bytes):
        payload = {}
    if not isinstance(payload, dict):
        return error_response(status.HTTP_400_BAD_REQUEST, "Request body must be a JSON object")

    try:
        reading = service.record(payload)
    except InvalidReadingError as exc:
        return error_response(status.HTTP_400_BAD_REQUEST, str(exc))
    except StoreError as exc:
        logger.exception("Error storing sensor reading")
        return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, str(exc))

    return StoredReadingResponse(latestData=reading_payload(reading))


@router.get(
    "/api/sensor-data",
    summary="List the most recent readings, newest first.",
    response_model=ReadingListResponse,
    responses={500: {"model": ErrorResponse}},
)
def list_readings(
    limit: Optional[str] = Query(None, description="Maximum number of readings (default 10)."),
    service: ReadingService = Depends(get_service),
):
    count = parse_limit(limit)
    try:
        readings = service.recent(count)
    except StoreError:
        logger.exception("Error fetching sensor readings", extra={"limit": count})
        return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, RETRIEVAL_ERROR)
    return ReadingListResponse(data=[reading_payload(reading) for reading in readings])


@router.get(
    "/api/sensor-data/latest",
    summary="Fetch the single most recent reading.",
    response_model=ReadingResponse,
    responses={404: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
def latest_reading(service: ReadingService = Depends(get_service)):
    try:
        reading = service.latest()
    except NoReadingsError as exc:
        return error_response(status.HTTP_404_NOT_FOUND, str(exc))
    except StoreError:
        logger.exception("Error fetching latest sensor reading")
        return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, RETRIEVAL_ERROR)
    return ReadingResponse(data=reading_payload(reading))
