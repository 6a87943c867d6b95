"""
Positions and trade history over the Data API.
"""

from typing import List, Optional

from polymarket_cli.constants import (
    DATA_HOST,
    DEFAULT_POSITIONS_LIMIT,
    DEFAULT_TRADES_LIMIT,
    ENDPOINTS,
)
from polymarket_cli.http import HttpClient
from polymarket_cli.types import Position, Trade


class DataClient:
    """Client for user positions and market trades."""

    def __init__(self, host: str = DATA_HOST, http: Optional[HttpClient] = None) -> None:
        self._http = http or HttpClient(host)

    def close(self) -> None:
        self._http.close()

    def __enter__(self) -> "DataClient":
        return self

    def __exit__(self, *args) -> None:
        self.close()

    def positions(self, user: str, limit: int = DEFAULT_POSITIONS_LIMIT) -> List[Position]:
        """Get open positions for a user.

        Args:
            user: The user's address.
            limit: Maximum number of positions to return.

        Returns:
            List of positions.
        """
        response = self._http.get(ENDPOINTS["positions"], params={"user": user, "limit": limit})
        positions = response.get("positions", []) if isinstance(response, dict) else response
        return [Position.from_dict(p) for p in positions or []]

    def trades(self, market: str, limit: int = DEFAULT_TRADES_LIMIT) -> List[Trade]:
        """Get recent trades for a market.

        Args:
            market: The market (condition) ID or token ID.
            limit: Maximum number of trades to return.

        Returns:
            List of trades, newest first.
        """
        response = self._http.get(ENDPOINTS["trades"], params={"market": market, "limit": limit})
        trades = response.get("trades", []) if isinstance(response, dict) else response
        return [Trade.from_dict(t) for t in trades or []]
