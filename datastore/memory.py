from __future__ import annotations

from collections import deque
from threading import Lock
from typing import Deque, Optional

from datastore.base import DEFAULT_LIMIT, effective_limit
from models.records import Reading


class InMemoryReadingStore:
    """Fixed-capacity buffer holding the most recent readings, newest first."""

    backend = "memory"

    def __init__(self, capacity: int = 100) -> None:
        if capacity <= 0:
            raise ValueError("Capacity must be a positive integer.")
        self.capacity = capacity
        self._readings: Deque[Reading] = deque(maxlen=capacity)
        self._lock = Lock()

    @property
    def is_ready(self) -> bool:
        return True

    def connect(self) -> None:
        return None

    def close(self) -> None:
        return None

    def insert(self, reading: Reading) -> None:
        # appendleft on a bounded deque drops the oldest entry from the tail.
        with self._lock:
            self._readings.appendleft(reading)

    def list_recent(self, limit: int = DEFAULT_LIMIT) -> list[Reading]:
        count = effective_limit(limit)
        with self._lock:
            return [reading for _, reading in zip(range(count), self._readings)]

    def get_latest(self) -> Optional[Reading]:
        with self._lock:
            return self._readings[0] if self._readings else None

    def __len__(self) -> int:
        with self._lock:
            return len(self._readings)
