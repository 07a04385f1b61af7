"""
HTTP transport for fetching code from a migration server.
"""

import logging
from time import perf_counter
from typing import Any

import requests

from .exceptions import (
    BadResponseError,
    ServerUnavailableError,
    ServerUnreachableError,
    TransportTimeoutError,
    ValidationError,
)
from .types import CodeArtifact, Kind

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 5.0

ROUTE_NAMES = {
    Kind.COUNT: "count",
    Kind.FIBONACCI: "fibonacci",
}


class CodeClient:
    """Fetches code artifacts over HTTP with a bounded wait."""

    def __init__(self, base_url: str = "http://localhost:3001", timeout: float = DEFAULT_TIMEOUT):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.last_elapsed_ms: float | None = None

    def get_code(
        self, kind: Kind | str, n: int, client_version: str | None = None
    ) -> CodeArtifact:
        """
        Request the artifact for (kind, n).

        Raises:
            ValidationError: Server rejected n (HTTP 400).
            TransportTimeoutError: No answer within the timeout.
            ServerUnreachableError: Connection failed.
            ServerUnavailableError: HTTP 502/503 from the load balancer.
            BadResponseError: Any other failure status, malformed body, or
                request error (bad URL scheme, redirect loop, broken stream).
        """
        kind = Kind.parse(kind)
        url = f"{self.base_url}/{ROUTE_NAMES[kind]}/{n}"
        params = {"client_version": client_version} if client_version else None
        logger.info(f"GET {url} client_version={client_version!r}")

        payload = self._get_json(url, params)
        try:
            return CodeArtifact.from_dict(payload, kind=kind, n=n)
        except (KeyError, TypeError, ValueError) as e:
            raise BadResponseError(f"Malformed code response: {e}") from e

    def health(self) -> dict[str, Any]:
        """Query the server health endpoint."""
        return self._get_json(f"{self.base_url}/health", None)

    def _get_json(self, url: str, params: dict[str, str] | None) -> Any:
        started = perf_counter()
        try:
            response = requests.get(url, params=params, timeout=self.timeout)
        except requests.Timeout as e:
            raise TransportTimeoutError(self.timeout) from e
        except requests.ConnectionError as e:
            raise ServerUnreachableError(self.base_url) from e
        except requests.RequestException as e:
            raise BadResponseError(f"Request to {url} failed: {e}") from e
        finally:
            self.last_elapsed_ms = (perf_counter() - started) * 1000.0

        if response.status_code in (502, 503):
            raise ServerUnavailableError(response.status_code)

        try:
            payload = response.json()
        except ValueError:
            payload = None

        if response.status_code == 400:
            message = _error_message(payload)
            raise ValidationError(message or "Invalid request")
        if not response.ok:
            message = _error_message(payload) or f"Failed to fetch code from server (HTTP {response.status_code})"
            raise BadResponseError(message, status_code=response.status_code)
        if not isinstance(payload, dict):
            raise BadResponseError("Server returned a non-JSON body", status_code=response.status_code)
        return payload


def _error_message(payload: Any) -> str | None:
    if isinstance(payload, dict):
        return payload.get("error") or payload.get("message") or payload.get("detail")
    return None
