"""Unit tests for the capped in-memory reading store."""

from __future__ import annotations

import threading

import pytest

from datastore.base import ReadingStore
from datastore.memory import InMemoryReadingStore
from models.records import Reading


def _reading(index: int) -> Reading:
    return Reading(
        values={"pressure": float(index)},
        timestamp=f"2024-01-01 00:00:{index % 60:02d}",
        id=str(1_700_000_000_000 + index),
    )


def test_store_satisfies_protocol() -> None:
    assert isinstance(InMemoryReadingStore(), ReadingStore)


def test_empty_store_has_no_latest() -> None:
    store = InMemoryReadingStore()

    assert store.get_latest() is None
    assert store.list_recent() == []


def test_insert_then_latest_returns_same_reading() -> None:
    store = InMemoryReadingStore()
    reading = _reading(1)

    store.insert(reading)

    assert store.get_latest() is reading


def test_capacity_keeps_most_recent_entries_newest_first() -> None:
    store = InMemoryReadingStore(capacity=100)
    readings = [_reading(index) for index in range(105)]

    for reading in readings:
        store.insert(reading)

    stored = store.list_recent(1000)
    assert len(store) == 100
    assert stored == list(reversed(readings[5:]))
    assert store.get_latest() is readings[-1]


def test_list_recent_is_prefix_of_insertion_order() -> None:
    store = InMemoryReadingStore()
    readings = [_reading(index) for index in range(5)]
    for reading in readings:
        store.insert(reading)

    assert store.list_recent(3) == [readings[4], readings[3], readings[2]]
    assert len(store.list_recent(50)) == 5


@pytest.mark.parametrize("limit", [0, -4])
def test_non_positive_limit_uses_default(limit: int) -> None:
    store = InMemoryReadingStore()
    for index in range(15):
        store.insert(_reading(index))

    assert len(store.list_recent(limit)) == 10


def test_invalid_capacity_rejected() -> None:
    with pytest.raises(ValueError):
        InMemoryReadingStore(capacity=0)


def test_concurrent_inserts_are_not_lost() -> None:
    store = InMemoryReadingStore(capacity=1000)

    def writer(offset: int) -> None:
        for index in range(100):
            store.insert(_reading(offset + index))

    threads = [threading.Thread(target=writer, args=(offset * 100,)) for offset in range(5)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert len(store) == 500
    assert store.is_ready is True
