from __future__ import annotations

import logging
import re
from datetime import datetime, timezone

import pytest

from models.records import COMPACT_SCHEMA, FULL_SCHEMA, FieldSchema, get_schema
from services.normalizer import (
    CoercionOutcome,
    CoercionPolicy,
    InvalidReadingError,
    ReadingIdGenerator,
    ReadingNormalizer,
    coerce_number,
    format_timestamp,
)

_TIMESTAMP_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2}$")


def _fixed_clock() -> datetime:
    return datetime(2024, 1, 1, 20, 0, 5, tzinfo=timezone.utc)


def test_missing_and_null_fields_default_to_zero() -> None:
    normalizer = ReadingNormalizer(COMPACT_SCHEMA, clock=_fixed_clock)

    result = normalizer.normalize({"pressure": 12.5, "force": None})

    assert dict(result.reading.values) == {
        "inclination": 0.0,
        "vibration": 0.0,
        "pressure": 12.5,
        "force": 0.0,
    }
    assert result.outcomes["pressure"] is CoercionOutcome.converted
    assert result.outcomes["force"] is CoercionOutcome.defaulted
    assert result.outcomes["inclination"] is CoercionOutcome.defaulted


def test_empty_payload_produces_complete_reading() -> None:
    normalizer = ReadingNormalizer(FULL_SCHEMA)

    reading = normalizer.normalize({}).reading

    assert set(reading.values) == set(FULL_SCHEMA.fields)
    assert all(value == 0.0 for value in reading.values.values())
    assert _TIMESTAMP_PATTERN.match(reading.timestamp)
    assert reading.id.isdigit()


def test_undeclared_fields_are_dropped() -> None:
    normalizer = ReadingNormalizer(COMPACT_SCHEMA)

    document = normalizer.normalize({"pressure": 1, "humidity": 40, "id": "x"}).reading.to_document()

    assert "humidity" not in document
    assert document["id"] != "x"
    assert set(document) == set(COMPACT_SCHEMA.fields) | {"timestamp", "id"}


def test_numeric_strings_and_booleans_are_coerced() -> None:
    normalizer = ReadingNormalizer(FULL_SCHEMA)

    values = normalizer.normalize(
        {"pitch": "1.5", "roll": " -2 ", "sw18010p": True, "temp": "", "fsr_adc": "0x10"}
    ).reading.values

    assert values["pitch"] == 1.5
    assert values["roll"] == -2.0
    assert values["sw18010p"] == 1.0
    assert values["temp"] == 0.0
    assert values["fsr_adc"] == 16.0


def test_timestamp_uses_ist_offset() -> None:
    normalizer = ReadingNormalizer(COMPACT_SCHEMA, clock=_fixed_clock)

    reading = normalizer.normalize({}).reading

    # 20:00:05 UTC is 01:30:05 the next day in IST.
    assert reading.timestamp == "2024-01-02 01:30:05"


def test_format_timestamp_treats_naive_values_as_utc() -> None:
    assert format_timestamp(datetime(2024, 6, 30, 18, 30, 0)) == "2024-07-01 00:00:00"


@pytest.mark.parametrize("value", ["abc", [1, 2], {"x": 1}, "nan", float("inf")])
def test_zero_policy_replaces_invalid_values(value, caplog) -> None:
    normalizer = ReadingNormalizer(COMPACT_SCHEMA, policy=CoercionPolicy.zero)

    with caplog.at_level(logging.WARNING, logger="services.normalizer"):
        result = normalizer.normalize({"vibration": value, "force": 3})

    assert result.reading.values["vibration"] == 0.0
    assert result.reading.values["force"] == 3.0
    assert result.outcomes["vibration"] is CoercionOutcome.invalid
    assert result.invalid_fields == ["vibration"]
    assert any(getattr(record, "field", None) == "vibration" for record in caplog.records)


def test_reject_policy_raises_for_invalid_values() -> None:
    normalizer = ReadingNormalizer(COMPACT_SCHEMA, policy=CoercionPolicy.reject)

    with pytest.raises(InvalidReadingError) as excinfo:
        normalizer.normalize({"vibration": "loud"})

    assert excinfo.value.field == "vibration"
    assert "vibration" in str(excinfo.value)


def test_coerce_number_handles_supported_types() -> None:
    assert coerce_number(3) == 3.0
    assert coerce_number(False) == 0.0
    assert coerce_number("1e3") == 1000.0
    assert coerce_number(None) is None
    assert coerce_number("twelve") is None


def test_id_generator_is_strictly_increasing_within_one_millisecond() -> None:
    generator = ReadingIdGenerator(clock=lambda: 1_700_000_000.0)

    ids = [int(generator.next_id()) for _ in range(5)]

    assert ids == [1_700_000_000_000 + offset for offset in range(5)]


def test_id_generator_follows_clock_when_it_advances() -> None:
    ticks = iter([1.000, 1.000, 2.500])
    generator = ReadingIdGenerator(clock=lambda: next(ticks))

    assert [generator.next_id() for _ in range(3)] == ["1000", "1001", "2500"]


def test_get_schema_resolves_known_names() -> None:
    assert get_schema("COMPACT") is COMPACT_SCHEMA
    assert get_schema("full") is FULL_SCHEMA
    with pytest.raises(ValueError):
        get_schema("unknown")


def test_field_schema_rejects_reserved_names() -> None:
    with pytest.raises(ValueError):
        FieldSchema(name="bad", fields=("timestamp", "pressure"))
    with pytest.raises(ValueError):
        FieldSchema(name="dupes", fields=("force", "force"))


@pytest.mark.parametrize("value", [10**400, "0x" + "f" * 300, "1" + "0" * 400])
def test_out_of_range_numbers_are_invalid(value) -> None:
    normalizer = ReadingNormalizer(COMPACT_SCHEMA)

    result = normalizer.normalize({"pressure": value, "force": 2})

    assert coerce_number(value) is None
    assert result.reading.values["pressure"] == 0.0
    assert result.outcomes["pressure"] is CoercionOutcome.invalid
    assert result.reading.values["force"] == 2.0


def test_reject_message_truncates_long_values() -> None:
    normalizer = ReadingNormalizer(COMPACT_SCHEMA, policy=CoercionPolicy.reject)

    with pytest.raises(InvalidReadingError) as excinfo:
        normalizer.normalize({"pressure": 10**400})

    assert len(str(excinfo.value)) < 120
    assert "chars" in str(excinfo.value)
