"""Reading ingestion and retrieval, composed from a normalizer and a store."""

from __future__ import annotations

import logging
import re
from functools import lru_cache
from typing import Any, Mapping, Optional

from datastore.base import DEFAULT_LIMIT, MAX_LIMIT, ReadingStore, effective_limit
from datastore.factory import build_store
from models.records import FieldSchema, Reading, get_schema
from services.normalizer import CoercionPolicy, ReadingNormalizer
from settings import get_settings

logger = logging.getLogger(__name__)

_LEADING_INT = re.compile(r"^\s*([+-]?)0*(\d+)")


class NoReadingsError(LookupError):
    """The store holds no readings yet."""


def parse_limit(raw: Optional[str]) -> int:
    """Parse a ``limit`` query value, falling back to the default of 10.

    Only the leading integer counts (``"3abc"`` is 3); anything missing,
    non-numeric or non-positive yields the default, and oversized values are
    clamped to ``MAX_LIMIT``.
    """
    if raw is None:
        return DEFAULT_LIMIT
    match = _LEADING_INT.match(raw)
    if match is None:
        return DEFAULT_LIMIT
    sign, digits = match.groups()
    if sign == "-":
        return DEFAULT_LIMIT
    if len(digits) > len(str(MAX_LIMIT)):
        return MAX_LIMIT
    return effective_limit(int(digits))


class ReadingService:
    """Coordinates normalisation and persistence of sensor readings."""

    def __init__(self, store: ReadingStore, normalizer: ReadingNormalizer) -> None:
        self.store = store
        self.normalizer = normalizer

    @property
    def schema(self) -> FieldSchema:
        return self.normalizer.schema

    @property
    def is_ready(self) -> bool:
        return self.store.is_ready

    def connect(self) -> None:
        self.store.connect()

    def shutdown(self) -> None:
        self.store.close()

    def record(self, payload: Mapping[str, Any]) -> Reading:
        """Normalise ``payload`` and append it to the store."""
        logger.debug("Received sensor payload: %s", dict(payload))
        result = self.normalizer.normalize(payload)
        self.store.insert(result.reading)
        logger.info(
            "Stored sensor reading",
            extra={"reading_id": result.reading.id, "backend": self.store.backend},
        )
        return result.reading

    def recent(self, limit: int = DEFAULT_LIMIT) -> list[Reading]:
        return self.store.list_recent(effective_limit(limit))

    def latest(self) -> Reading:
        reading = self.store.get_latest()
        if reading is None:
            raise NoReadingsError("No data available")
        return reading


@lru_cache
def build_default_service() -> ReadingService:
    """Factory that wires the service from environment settings."""
    settings = get_settings()
    schema = get_schema(settings.sensor_schema)
    normalizer = ReadingNormalizer(schema, policy=CoercionPolicy(settings.coercion_policy))
    return ReadingService(store=build_store(settings, schema), normalizer=normalizer)
