"""Conversion of raw inbound payloads into complete readings."""

from __future__ import annotations

import logging
import math
import time
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from threading import Lock
from types import MappingProxyType
from typing import Any, Callable, Dict, Mapping, Optional

from models.records import FieldSchema, Reading

logger = logging.getLogger(__name__)

IST = timezone(timedelta(hours=5, minutes=30), name="IST")
TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"
_PREVIEW_LENGTH = 40


def preview_value(value: Any) -> str:
    text = repr(value)
    if len(text) > _PREVIEW_LENGTH:
        return f"{text[:_PREVIEW_LENGTH]}... ({len(text)} chars)"
    return text


class CoercionPolicy(str, Enum):
    """What to do with a declared field whose value is not numeric."""

    zero = "zero"
    reject = "reject"


class CoercionOutcome(str, Enum):
    converted = "converted"
    defaulted = "defaulted"
    invalid = "invalid"


class InvalidReadingError(ValueError):
    """Raised under the ``reject`` policy when a field cannot be coerced."""

    def __init__(self, field: str, value: Any) -> None:
        super().__init__(f"Field {field!r} has a non-numeric value: {preview_value(value)}")
        self.field = field
        self.value = value


@dataclass(frozen=True)
class NormalizationResult:
    reading: Reading
    outcomes: Mapping[str, CoercionOutcome]

    @property
    def invalid_fields(self) -> list[str]:
        return [
            field
            for field, outcome in self.outcomes.items()
            if outcome is CoercionOutcome.invalid
        ]


class ReadingIdGenerator:
    """Epoch-millisecond identifiers that never repeat within a process.

    When two readings arrive in the same millisecond the second one is bumped
    to ``last + 1`` so ids stay strictly increasing.
    """

    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        self._clock = clock
        self._last = 0
        self._lock = Lock()

    def next_id(self) -> str:
        with self._lock:
            candidate = int(self._clock() * 1000)
            if candidate <= self._last:
                candidate = self._last + 1
            self._last = candidate
            return str(candidate)


def format_timestamp(moment: datetime) -> str:
    """Render ``moment`` as IST wall-clock time with second resolution."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(IST).strftime(TIMESTAMP_FORMAT)


def coerce_number(value: Any) -> Optional[float]:
    """Convert ``value`` to a finite float, or ``None`` when it is not numeric.

    Booleans count as 1/0 and blank strings as 0, mirroring loose numeric
    coercion of JSON clients that send ``"on"`` switches as booleans or
    empty form fields.
    """
    if isinstance(value, bool):
        return 1.0 if value else 0.0
    if isinstance(value, (int, float)):
        try:
            number = float(value)
        except OverflowError:
            return None
    elif isinstance(value, str):
        candidate = value.strip()
        if not candidate:
            return 0.0
        try:
            number = float(candidate)
        except ValueError:
            try:
                number = float(int(candidate, 0))
            except (ValueError, OverflowError):
                return None
    else:
        return None
    return number if math.isfinite(number) else None


class ReadingNormalizer:
    """Build a :class:`Reading` for ``schema`` out of an arbitrary mapping."""

    def __init__(
        self,
        schema: FieldSchema,
        policy: CoercionPolicy = CoercionPolicy.zero,
        clock: Callable[[], datetime] | None = None,
        id_generator: ReadingIdGenerator | None = None,
    ) -> None:
        self.schema = schema
        self.policy = CoercionPolicy(policy)
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._ids = id_generator or ReadingIdGenerator()

    def normalize(self, payload: Mapping[str, Any]) -> NormalizationResult:
        values: Dict[str, float] = {}
        outcomes: Dict[str, CoercionOutcome] = {}

        for field in self.schema.fields:
            raw = payload.get(field)
            if raw is None:
                values[field] = 0.0
                outcomes[field] = CoercionOutcome.defaulted
                continue

            number = coerce_number(raw)
            if number is None:
                if self.policy is CoercionPolicy.reject:
                    raise InvalidReadingError(field, raw)
                logger.warning(
                    "Non-numeric sensor value replaced with 0",
                    extra={"field": field, "invalid_value": preview_value(raw)},
                )
                values[field] = 0.0
                outcomes[field] = CoercionOutcome.invalid
                continue

            values[field] = number
            outcomes[field] = CoercionOutcome.converted

        reading = Reading(
            values=MappingProxyType(values),
            timestamp=format_timestamp(self._clock()),
            id=self._ids.next_id(),
        )
        return NormalizationResult(reading=reading, outcomes=MappingProxyType(outcomes))
