"""Pydantic schemas for the HTTP API layer."""

from __future__ import annotations

from typing import Dict, List, Union

from pydantic import BaseModel, Field

from models.records import Reading

ReadingPayload = Dict[str, Union[float, str]]


def reading_payload(reading: Reading) -> ReadingPayload:
    return reading.to_document()


class StoredReadingResponse(BaseModel):
    """Acknowledgement returned after a reading has been stored."""

    success: bool = True
    message: str = "Data stored successfully"
    latestData: ReadingPayload = Field(..., description="The reading as persisted.")


class ReadingListResponse(BaseModel):
    """Most recent readings, newest first."""

    success: bool = True
    data: List[ReadingPayload] = Field(default_factory=list)


class ReadingResponse(BaseModel):
    """A single reading."""

    success: bool = True
    data: ReadingPayload


class ErrorResponse(BaseModel):
    success: bool = False
    message: str


class HealthResponse(BaseModel):
    status: str
    backend: str
    schema_name: str = Field(..., serialization_alias="schema")
