from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import typer

from cli.client import ApiClient
from cli.config import CLIConfig, load_config
from cli.render import render_reading, render_readings


@dataclass
class CLIState:
    config: CLIConfig
    client: ApiClient


app = typer.Typer(
    help="Utilities for interacting with the sensor data service.",
    context_settings={"help_option_names": ["-h", "--help"]},
)


def _get_state(ctx: typer.Context) -> CLIState:
    state = ctx.obj
    if not isinstance(state, CLIState):
        raise typer.Exit(code=1, message="CLI state is uninitialized.")
    return state


def _parse_pairs(pairs: List[str]) -> Dict[str, Any]:
    payload: Dict[str, Any] = {}
    for pair in pairs:
        field, sep, value = pair.partition("=")
        if not sep or not field.strip():
            raise typer.BadParameter(f"Expected FIELD=VALUE, got {pair!r}.")
        payload[field.strip()] = value.strip()
    return payload


@app.callback()
def main(
    ctx: typer.Context,
    base_url: Optional[str] = typer.Option(
        None,
        "--base-url",
        "-b",
        help="Service base URL (defaults to API_BASE_URL env or http://localhost:3000).",
    ),
    timeout: Optional[float] = typer.Option(
        None,
        "--timeout",
        help="Seconds to wait for each HTTP request.",
    ),
) -> None:
    """Entry point for the CLI."""
    config = load_config(base_url=base_url, timeout=timeout)
    client = ApiClient(config)
    ctx.obj = CLIState(config=config, client=client)
    ctx.call_on_close(client.close)


@app.command("send")
def send_command(
    ctx: typer.Context,
    pairs: Optional[List[str]] = typer.Argument(None, help="Sensor values as FIELD=VALUE."),
    raw_json: Optional[str] = typer.Option(
        None,
        "--json",
        help="Full JSON object to send instead of FIELD=VALUE pairs.",
    ),
) -> None:
    """Store one reading."""
    state = _get_state(ctx)
    if raw_json is not None:
        try:
            payload = json.loads(raw_json)
        except json.JSONDecodeError as exc:
            raise typer.BadParameter(f"Invalid JSON: {exc.msg}") from exc
        if not isinstance(payload, dict):
            raise typer.BadParameter("--json must be a JSON object.")
    else:
        payload = _parse_pairs(pairs or [])

    reading = state.client.send_reading(payload)
    typer.secho(f"Stored reading id={reading.get('id')}", fg=typer.colors.GREEN)
    render_reading(reading)


@app.command("recent")
def recent_command(
    ctx: typer.Context,
    limit: Optional[int] = typer.Option(None, "--limit", "-n", help="Maximum readings to list."),
) -> None:
    """List the most recent readings, newest first."""
    state = _get_state(ctx)
    render_readings(state.client.list_recent(limit))


@app.command("latest")
def latest_command(ctx: typer.Context) -> None:
    """Show the newest reading."""
    state = _get_state(ctx)
    reading = state.client.get_latest()
    if reading is None:
        typer.secho("No data available.", fg=typer.colors.YELLOW, err=True)
        raise typer.Exit(code=1)
    render_reading(reading, heading="Latest Reading")
