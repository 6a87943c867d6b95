"""
HTTP client for the read-only Polymarket APIs.
"""

import logging
from typing import Any, Dict, Optional

import httpx

from polymarket_cli.exceptions import ApiError, NetworkError

logger = logging.getLogger(__name__)


class HttpClient:
    """Small JSON-over-HTTP wrapper around httpx."""

    def __init__(
        self,
        host: str,
        timeout: float = 30.0,
    ) -> None:
        """Initialize the HTTP client.

        Args:
            host: The API base URL.
            timeout: Request timeout in seconds.
        """
        self._host = host.rstrip("/")
        self._client = httpx.Client(
            base_url=self._host,
            timeout=timeout,
            headers={"Accept": "application/json", "User-Agent": "polymarket-cli"},
        )

    @property
    def host(self) -> str:
        return self._host

    def close(self) -> None:
        """Close the underlying connection pool."""
        self._client.close()

    def __enter__(self) -> "HttpClient":
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    def get(self, endpoint: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """Send a GET request and decode the JSON body.

        Args:
            endpoint: Path relative to the host.
            params: Optional query parameters.

        Returns:
            The decoded JSON response.

        Raises:
            ApiError: If the API answers with an error status or invalid JSON.
            NetworkError: If the request fails.
        """
        logger.debug("GET %s%s params=%s", self._host, endpoint, params)
        try:
            response = self._client.get(endpoint, params=params)
        except httpx.HTTPError as e:
            raise NetworkError(f"GET {endpoint} failed: {e}") from e

        if response.status_code >= 400:
            try:
                error_data = response.json()
                if isinstance(error_data, dict):
                    error_msg = error_data.get("error", response.text)
                else:
                    error_msg = response.text
            except ValueError:
                error_msg = response.text
            raise ApiError(
                f"GET {endpoint} failed: {error_msg}",
                status_code=response.status_code,
                response_body=response.text,
            )

        try:
            return response.json()
        except ValueError as e:
            raise ApiError(
                f"GET {endpoint} returned invalid JSON",
                status_code=response.status_code,
                response_body=response.text,
            ) from e
