from __future__ import annotations

from typing import Any, Dict, List, Optional

import httpx
import typer

from cli.config import CLIConfig

_SENSOR_DATA_PATH = "/api/sensor-data"


class ApiClient:
    """Minimal HTTP client for the sensor data service."""

    def __init__(self, config: CLIConfig) -> None:
        self._config = config
        self._client = httpx.Client(base_url=config.base_url, timeout=config.timeout)

    def close(self) -> None:
        self._client.close()

    def send_reading(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        response = self._request("POST", _SENSOR_DATA_PATH, json=payload)
        reading = response.json().get("latestData")
        if not isinstance(reading, dict):
            raise typer.BadParameter("Unexpected response payload when storing a reading.")
        return reading

    def list_recent(self, limit: Optional[int] = None) -> List[Dict[str, Any]]:
        params = {"limit": limit} if limit is not None else None
        response = self._request("GET", _SENSOR_DATA_PATH, params=params)
        data = response.json().get("data")
        return data if isinstance(data, list) else []

    def get_latest(self) -> Optional[Dict[str, Any]]:
        """Return the newest reading, or ``None`` when the service has none."""
        response = self._request("GET", f"{_SENSOR_DATA_PATH}/latest", allow_not_found=True)
        if response.status_code == 404:
            return None
        return response.json().get("data")

    def _request(self, method: str, path: str, allow_not_found: bool = False, **kwargs: Any) -> httpx.Response:
        try:
            response = self._client.request(method, path, **kwargs)
            if allow_not_found and response.status_code == 404:
                return response
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            self._handle_http_error(exc)
        except httpx.TransportError as exc:
            typer.secho(
                f"Could not reach {self._config.base_url}: {exc}",
                fg=typer.colors.RED,
                err=True,
            )
            raise typer.Exit(code=1) from exc
        return response

    @staticmethod
    def _handle_http_error(exc: httpx.HTTPStatusError) -> None:
        detail: str | None = None
        try:
            detail = exc.response.json().get("message")
        except (ValueError, AttributeError):
            detail = exc.response.text.strip()
        message = (
            f"Request failed with status {exc.response.status_code}: {detail or 'no detail provided.'}"
        )
        typer.secho(message, fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)
