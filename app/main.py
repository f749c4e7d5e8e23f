from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

import uvicorn
from fastapi import FastAPI, Request, status
from fastapi.concurrency import run_in_threadpool
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.api import error_response, router
from datastore.base import StoreUnavailableError
from logging_config import configure_logging
from services.readings import build_default_service
from settings import get_settings

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    service = build_default_service()
    try:
        await run_in_threadpool(service.connect)
    except StoreUnavailableError as exc:
        # Keep serving: requests retry the connection and /health reports 503.
        logger.error(
            "Reading store unavailable at startup",
            extra={"backend": service.store.backend, "error": exc},
        )
    else:
        logger.info(
            "Reading store ready",
            extra={"backend": service.store.backend, "schema": service.schema.name},
        )
    try:
        yield
    finally:
        service.shutdown()
        build_default_service.cache_clear()


async def invalid_body_handler(_request: Request, _exc: RequestValidationError) -> JSONResponse:
    return error_response(status.HTTP_400_BAD_REQUEST, "Request body must be valid JSON")


def create_app() -> FastAPI:
    configure_logging()
    app = FastAPI(
        title="Sensor Data API",
        description="Stores sensor readings and serves the most recent ones.",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST"],
        allow_headers=["Content-Type"],
        allow_credentials=True,
    )
    app.add_exception_handler(RequestValidationError, invalid_body_handler)
    app.include_router(router)
    return app


def run() -> None:
    """Serve the application with uvicorn on the configured host and port."""
    settings = get_settings()
    uvicorn.run(
        "app.main:app",
        host=settings.host,
        port=settings.port,
        log_config=None,
    )


app = create_app()
