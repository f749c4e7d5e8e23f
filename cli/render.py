from __future__ import annotations

from typing import Any, Dict, Iterable, List

import typer

_META_KEYS = ("id", "timestamp")


def echo_heading(text: str) -> None:
    typer.secho(text, bold=True)


def echo_key_values(pairs: Iterable[tuple[str, Any]]) -> None:
    for key, value in pairs:
        typer.echo(f"{key}: {value}")


def _field_names(reading: Dict[str, Any]) -> List[str]:
    return [key for key in reading if key not in _META_KEYS and key != "_id"]


def render_reading(reading: Dict[str, Any], heading: str = "Reading") -> None:
    echo_heading(heading)
    echo_key_values((key, reading.get(key)) for key in _META_KEYS)
    echo_key_values((key, reading.get(key)) for key in _field_names(reading))


def render_readings(readings: List[Dict[str, Any]]) -> None:
    if not readings:
        typer.echo("No readings available.")
        return

    columns = list(_META_KEYS) + _field_names(readings[0])
    rows = [[str(reading.get(column, "")) for column in columns] for reading in readings]
    widths = [
        max(len(column), *(len(row[index]) for row in rows))
        for index, column in enumerate(columns)
    ]

    echo_heading("  ".join(column.ljust(width) for column, width in zip(columns, widths)))
    for row in rows:
        typer.echo("  ".join(cell.ljust(width) for cell, width in zip(row, widths)))
