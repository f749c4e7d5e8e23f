from __future__ import annotations

from datastore.base import ReadingStore
from datastore.memory import InMemoryReadingStore
from datastore.mongo import MongoReadingStore
from models.records import FieldSchema
from settings import Settings


def build_store(settings: Settings, schema: FieldSchema) -> ReadingStore:
    """Instantiate the backend selected by ``settings.store_backend``."""
    if settings.store_backend == "memory":
        return InMemoryReadingStore(capacity=settings.memory_capacity)
    if settings.store_backend == "mongo":
        return MongoReadingStore(
            uri=settings.mongodb_uri,
            database=settings.mongodb_database,
            collection=settings.mongodb_collection,
            schema=schema,
            attempts=settings.connect_attempts,
            backoff_seconds=settings.connect_backoff_seconds,
            timeout_ms=settings.store_timeout_ms,
            retry_cooldown_seconds=settings.retry_cooldown_seconds,
        )
    raise ValueError(f"Unknown store backend {settings.store_backend!r}")
