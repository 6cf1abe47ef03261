from __future__ import annotations

from typing import Any, Dict, List

import httpx
import typer

from cli.config import CLIConfig

UTILITIES = ("power", "gas", "water")


class ApiClient:
    """Minimal HTTP client for the billing service."""

    def __init__(self, config: CLIConfig) -> None:
        self._config = config
        self._client = httpx.Client(base_url=config.base_url, timeout=config.timeout)

    def close(self) -> None:
        self._client.close()

    def list_apartments(self) -> List[str]:
        return self._request("GET", "/api/apartments")

    def create_apartment(self, name: str) -> Dict[str, Any]:
        return self._request("POST", "/api/apartments", json={"name": name})

    def list_readings(self, apartment: str) -> List[Dict[str, Any]]:
        return self._request("GET", f"/api/consumption/{apartment}")

    def add_reading(self, apartment: str, reading: Dict[str, Any]) -> Dict[str, Any]:
        return self._request("POST", f"/api/consumption/{apartment}", json=reading)

    def delete_reading(self, apartment: str, reading_id: str) -> Dict[str, Any]:
        return self._request("DELETE", f"/api/consumption/{apartment}/{reading_id}")

    def get_calculations(self, apartment: str, utility: str) -> List[Dict[str, Any]]:
        if utility not in UTILITIES:
            raise typer.BadParameter(f"Unknown utility {utility!r}.")
        return self._request("GET", f"/api/consumption/{apartment}/{utility}-calculations")

    def get_summary(self, apartment: str) -> Dict[str, Any]:
        return self._request("GET", f"/api/consumption/{apartment}/summary")

    def _request(self, method: str, url: str, **kwargs: Any) -> Any:
        try:
            response = self._client.request(method, url, **kwargs)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            self._handle_http_error(exc)
        except httpx.RequestError as exc:
            typer.secho(f"Could not reach {self._config.base_url}: {exc}", fg=typer.colors.RED, err=True)
            raise typer.Exit(code=1)
        return response.json()

    @staticmethod
    def _handle_http_error(exc: httpx.HTTPStatusError) -> None:
        detail: Any = None
        try:
            data = exc.response.json()
            detail = data.get("detail")
        except (ValueError, AttributeError):
            detail = exc.response.text.strip()
        message = (
            f"Request failed with status {exc.response.status_code}: {detail or 'no detail provided.'}"
        )
        typer.secho(message, fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)
