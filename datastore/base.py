"""Persistence contract shared by every reading store backend."""

from __future__ import annotations

from typing import Optional, Protocol, runtime_checkable

from models.records import Reading

DEFAULT_LIMIT = 10
# Upper bound on ``limit`` so it always fits the driver's integer encoding.
MAX_LIMIT = 2**31 - 1


class StoreError(RuntimeError):
    """The backing store could not complete an operation."""


class StoreUnavailableError(StoreError):
    """The backing store has no usable connection."""


def effective_limit(limit: Optional[int]) -> int:
    if limit is None or limit <= 0:
        return DEFAULT_LIMIT
    return min(limit, MAX_LIMIT)


@runtime_checkable
class ReadingStore(Protocol):
    """Append-only collection of readings, queried newest first."""

    backend: str

    @property
    def is_ready(self) -> bool:
        ...

    def connect(self) -> None:
        ...

    def close(self) -> None:
        ...

    def insert(self, reading: Reading) -> None:
        """Append ``reading``; raises :class:`StoreError` on failure."""
        ...

    def list_recent(self, limit: int = DEFAULT_LIMIT) -> list[Reading]:
        """Return at most ``limit`` readings, newest first."""
        ...

    def get_latest(self) -> Optional[Reading]:
        """Return the newest reading, or ``None`` when the store is empty."""
        ...
