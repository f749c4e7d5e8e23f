from __future__ import annotations

import logging
import time
from threading import Lock
from typing import Any, Callable, Optional

from pymongo import DESCENDING, MongoClient
from pymongo.collection import Collection
from pymongo.errors import PyMongoError
from pymongo.server_api import ServerApi

from datastore.base import DEFAULT_LIMIT, StoreError, StoreUnavailableError, effective_limit
from models.records import FieldSchema, Reading

logger = logging.getLogger(__name__)

_SORT_NEWEST_FIRST = [("timestamp", DESCENDING), ("id", DESCENDING)]
_PROJECTION = {"_id": 0}


class MongoReadingStore:
    """Readings persisted as flat documents in a MongoDB collection.

    The connection is opened by :meth:`connect`, which pings the deployment
    and retries with exponential backoff. Until a connection succeeds the
    store reports ``is_ready == False``. An operation on a store that is not
    ready makes one more connection attempt, unless another thread is already
    connecting or the last attempt failed less than ``retry_cooldown_seconds``
    ago; in those cases it raises :class:`StoreUnavailableError` immediately.
    """

    backend = "mongo"

    def __init__(
        self,
        uri: Optional[str],
        database: str,
        collection: str,
        schema: FieldSchema,
        attempts: int = 3,
        backoff_seconds: float = 0.5,
        timeout_ms: int = 5000,
        retry_cooldown_seconds: float = 5.0,
        client_factory: Callable[..., Any] = MongoClient,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.uri = uri
        self.database_name = database
        self.collection_name = collection
        self.schema = schema
        self.attempts = max(1, attempts)
        self.backoff_seconds = backoff_seconds
        self.timeout_ms = timeout_ms
        self.retry_cooldown_seconds = retry_cooldown_seconds
        self._client_factory = client_factory
        self._sleep = sleep
        self._clock = clock
        self._failed_at: Optional[float] = None
        self._failure_message = ""
        self._client: Any = None
        self._collection: Optional[Collection] = None
        self._lock = Lock()

    @property
    def is_ready(self) -> bool:
        return self._collection is not None

    def connect(self) -> None:
        """Connect with retries; raises :class:`StoreUnavailableError` on failure."""
        with self._lock:
            if self._collection is not None:
                return
            self._connect_with_retries(self.attempts)

    def close(self) -> None:
        with self._lock:
            client, self._client, self._collection = self._client, None, None
        if client is not None:
            client.close()

    def insert(self, reading: Reading) -> None:
        collection = self._require_collection()
        try:
            collection.insert_one(reading.to_document())
        except PyMongoError as exc:
            logger.error(
                "Failed to store reading",
                extra={"reading_id": reading.id, "backend": self.backend, "error": exc},
            )
            raise StoreError(str(exc)) from exc

    def list_recent(self, limit: int = DEFAULT_LIMIT) -> list[Reading]:
        return self._find(effective_limit(limit))

    def get_latest(self) -> Optional[Reading]:
        readings = self._find(1)
        return readings[0] if readings else None

    def _find(self, limit: int) -> list[Reading]:
        collection = self._require_collection()
        try:
            cursor = collection.find({}, _PROJECTION).sort(_SORT_NEWEST_FIRST).limit(limit)
            return [Reading.from_document(document, self.schema) for document in cursor]
        except PyMongoError as exc:
            logger.error(
                "Failed to query readings",
                extra={"limit": limit, "backend": self.backend, "error": exc},
            )
            raise StoreError(str(exc)) from exc

    def _require_collection(self) -> Collection:
        collection = self._collection
        if collection is not None:
            return collection
        if not self._lock.acquire(blocking=False):
            raise StoreUnavailableError("MongoDB connection attempt already in progress.")
        try:
            if self._collection is None:
                if self._in_cooldown():
                    raise StoreUnavailableError(self._failure_message)
                self._connect_with_retries(1)
            assert self._collection is not None
            return self._collection
        finally:
            self._lock.release()

    def _in_cooldown(self) -> bool:
        if self._failed_at is None:
            return False
        return self._clock() - self._failed_at < self.retry_cooldown_seconds

    def _connect_with_retries(self, attempts: int) -> None:
        if not self.uri:
            raise StoreUnavailableError("MongoDB connection string is not configured.")

        last_error: Optional[Exception] = None
        for attempt in range(1, attempts + 1):
            client = None
            try:
                client = self._client_factory(
                    self.uri,
                    server_api=ServerApi("1", strict=True, deprecation_errors=True),
                    serverSelectionTimeoutMS=self.timeout_ms,
                )
                client.admin.command("ping")
                collection = client[self.database_name][self.collection_name]
                collection.create_index("timestamp")
            except PyMongoError as exc:
                last_error = exc
                if client is not None:
                    client.close()
                logger.warning(
                    "MongoDB connection attempt failed",
                    extra={"attempt": attempt, "backend": self.backend, "error": exc},
                )
                if attempt < attempts:
                    self._sleep(self.backoff_seconds * (2 ** (attempt - 1)))
                continue

            self._client = client
            self._collection = collection
            self._failed_at = None
            logger.info(
                "Connected to MongoDB",
                extra={"attempt": attempt, "backend": self.backend},
            )
            return

        self._failed_at = self._clock()
        self._failure_message = f"Could not connect to MongoDB: {last_error}"
        raise StoreUnavailableError(self._failure_message)
