"""
Market search over the Gamma API.
"""

from typing import List, Optional

from polymarket_cli.constants import ENDPOINTS, GAMMA_HOST
from polymarket_cli.http import HttpClient
from polymarket_cli.types import SearchEvent


class GammaClient:
    """Client for market discovery."""

    def __init__(self, host: str = GAMMA_HOST, http: Optional[HttpClient] = None) -> None:
        self._http = http or HttpClient(host)

    def close(self) -> None:
        self._http.close()

    def __enter__(self) -> "GammaClient":
        return self

    def __exit__(self, *args) -> None:
        self.close()

    def search(self, query: str) -> List[SearchEvent]:
        """Search events and markets by keyword.

        Args:
            query: Keywords to search for.

        Returns:
            Matching events with their markets.
        """
        response = self._http.get(ENDPOINTS["search"], params={"q": query})
        events = response.get("events") if isinstance(response, dict) else response
        return [SearchEvent.from_dict(e) for e in events or []]
