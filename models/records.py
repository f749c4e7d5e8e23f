"""Domain models shared across services."""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Dict, Mapping, Tuple


@dataclass(frozen=True, slots=True)
class FieldSchema:
    """Ordered set of numeric fields a deployment records per reading."""

    name: str
    fields: Tuple[str, ...]

    def __post_init__(self) -> None:
        if not self.fields:
            raise ValueError(f"Schema {self.name!r} declares no fields.")
        if len(set(self.fields)) != len(self.fields):
            raise ValueError(f"Schema {self.name!r} declares duplicate fields.")
        reserved = {"timestamp", "id", "_id"}.intersection(self.fields)
        if reserved:
            raise ValueError(
                f"Schema {self.name!r} uses reserved field names: {', '.join(sorted(reserved))}"
            )


FULL_SCHEMA = FieldSchema(
    name="full",
    fields=(
        "pitch",
        "roll",
        "rms",
        "peak",
        "crest_factor",
        "f_dom",
        "temp",
        "sw18010p",
        "fsr_adc",
        "fsr_force_N",
        "fsr_pressure_Pa",
    ),
)

COMPACT_SCHEMA = FieldSchema(
    name="compact",
    fields=("inclination", "vibration", "pressure", "force"),
)

SCHEMAS: Mapping[str, FieldSchema] = MappingProxyType(
    {schema.name: schema for schema in (FULL_SCHEMA, COMPACT_SCHEMA)}
)


def get_schema(name: str) -> FieldSchema:
    try:
        return SCHEMAS[name.strip().lower()]
    except KeyError as exc:
        known = ", ".join(sorted(SCHEMAS))
        raise ValueError(f"Unknown sensor schema {name!r}; expected one of: {known}") from exc


@dataclass(frozen=True, slots=True)
class Reading:
    """A single normalised sensor sample.

    ``values`` holds every declared field of the schema the reading was built
    with; ``timestamp`` is the IST wall-clock time at insertion and ``id`` the
    insertion time in epoch milliseconds.
    """

    values: Mapping[str, float]
    timestamp: str
    id: str

    def to_document(self) -> Dict[str, Any]:
        """Flatten into the stored and wire representation."""
        document: Dict[str, Any] = dict(self.values)
        document["timestamp"] = self.timestamp
        document["id"] = self.id
        return document

    @classmethod
    def from_document(cls, document: Mapping[str, Any], schema: FieldSchema) -> "Reading":
        values = {}
        for field in schema.fields:
            raw = document.get(field)
            values[field] = float(raw) if raw is not None else 0.0
        return cls(
            values=MappingProxyType(values),
            timestamp=str(document.get("timestamp", "")),
            id=str(document.get("id", "")),
        )
