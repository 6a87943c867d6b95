"""
Matching-engine adapter over the Polymarket CLOB client.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict, Optional

from eth_account.signers.local import LocalAccount
from py_clob_client.client import ClobClient
from py_clob_client.clob_types import (
    ApiCreds,
    MarketOrderArgs,
    OrderType,
    PartialCreateOrderOptions,
)
from py_clob_client.utilities import price_valid

from polymarket_cli.constants import CLOB_HOST, POLYGON
from polymarket_cli.exceptions import (
    AuthenticationError,
    NetworkError,
    OrderBuildError,
    SubmissionError,
)
from polymarket_cli.types import (
    OrderAmount,
    OrderBook,
    OrderBookLevel,
    Side,
    SignatureScheme,
)

logger = logging.getLogger(__name__)


@dataclass
class UnsignedOrder:
    """A market order with price, tick size and neg-risk flag resolved."""

    args: MarketOrderArgs
    tick_size: str
    neg_risk: bool
    order_type: OrderType = OrderType.FOK


class ClobEngine:
    """Thin wrapper over ClobClient.

    Read-only queries work without authentication. Order building, signing and
    posting need authenticate() first.
    """

    def __init__(self, host: str = CLOB_HOST, chain_id: int = POLYGON) -> None:
        self._host = host.rstrip("/")
        self._chain_id = chain_id
        self._public = ClobClient(self._host, chain_id=chain_id)
        self._client: Optional[ClobClient] = None

    @property
    def host(self) -> str:
        return self._host

    @property
    def is_authenticated(self) -> bool:
        return self._client is not None

    def _require_client(self) -> ClobClient:
        if self._client is None:
            raise AuthenticationError("Not authenticated with the matching engine")
        return self._client

    # =========================================================================
    # Authentication
    # =========================================================================

    def authenticate(
        self,
        signer: LocalAccount,
        signature_scheme: SignatureScheme = SignatureScheme.POLY_PROXY,
        funder: Optional[str] = None,
    ) -> ApiCreds:
        """Derive (or create) API credentials for the signer.

        Args:
            signer: The wallet signer.
            signature_scheme: How orders are signed.
            funder: The wallet holding funds, e.g. the proxy wallet.

        Returns:
            The API credentials for the session.

        Raises:
            AuthenticationError: If credentials cannot be derived.
        """
        try:
            client = ClobClient(
                self._host,
                chain_id=self._chain_id,
                key=signer.key.hex(),
                signature_type=int(signature_scheme),
                funder=funder,
            )
            creds = client.create_or_derive_api_creds()
            client.set_api_creds(creds)
        except Exception as e:
            raise AuthenticationError(f"Failed to authenticate: {e}") from e

        self._client = client
        logger.info("Authenticated as %s (signature type %s)", signer.address, signature_scheme.name)
        return creds

    def ok(self) -> Any:
        """Check that the engine is reachable."""
        try:
            return self._public.get_ok()
        except Exception as e:
            raise NetworkError(f"Health check failed: {e}") from e

    def api_keys(self) -> Any:
        """List API keys of the authenticated wallet."""
        client = self._require_client()
        try:
            return client.get_api_keys()
        except Exception as e:
            raise NetworkError(f"Failed to fetch API keys: {e}") from e

    # =========================================================================
    # Orders
    # =========================================================================

    def build_market_order(self, token_id: str, amount: OrderAmount, side: Side) -> UnsignedOrder:
        """Build an unsigned fill-or-kill market order.

        The market price, tick size, neg-risk flag and maker fee rate are
        looked up from the engine so the signed order matches the market.

        For buys the amount is the USDC to spend; for sells it is the number
        of shares to sell.

        Raises:
            OrderBuildError: If the market cannot be priced or looked up.
        """
        client = self._require_client()
        if amount.is_notional != (side is Side.BUY):
            raise OrderBuildError(f"Amount {amount} does not match a {side.name} order")

        try:
            args = MarketOrderArgs(
                token_id=token_id,
                amount=float(amount.value),
                side=side.clob_value,
                order_type=OrderType.FOK,
            )
            args.price = client.calculate_market_price(
                token_id, side.clob_value, args.amount, OrderType.FOK
            )
            tick_size = client.get_tick_size(token_id)
            neg_risk = client.get_neg_risk(token_id)
            args.fee_rate_bps = client.get_fee_rate_bps(token_id)
        except Exception as e:
            raise OrderBuildError(f"Failed to build market order: {e}") from e

        if not price_valid(args.price, tick_size):
            raise OrderBuildError(
                f"Market price {args.price} is outside [{tick_size}, {1 - float(tick_size)}]"
            )

        logger.debug("Built %s market order for %s at %s", side.name, token_id, args.price)
        return UnsignedOrder(args=args, tick_size=tick_size, neg_risk=neg_risk)

    def sign(self, signer: LocalAccount, order: UnsignedOrder) -> Any:
        """Sign an order with the authenticated wallet.

        Raises:
            OrderBuildError: If the signer does not match the session or
                signing fails.
        """
        client = self._require_client()
        if client.get_address().lower() != signer.address.lower():
            raise OrderBuildError("Signer does not match the authenticated wallet")
        try:
            return client.create_market_order(
                order.args,
                PartialCreateOrderOptions(tick_size=order.tick_size, neg_risk=order.neg_risk),
            )
        except Exception as e:
            raise OrderBuildError(f"Failed to sign order: {e}") from e

    def post_order(self, signed_order: Any, order_type: OrderType = OrderType.FOK) -> Dict[str, Any]:
        """Submit a signed order.

        Raises:
            SubmissionError: If the engine rejects the order.
        """
        client = self._require_client()
        try:
            return client.post_order(signed_order, order_type)
        except Exception as e:
            raise SubmissionError(f"Failed to post order: {e}") from e

    # =========================================================================
    # Market data
    # =========================================================================

    def order_book(self, token_id: str) -> OrderBook:
        """Fetch the order book for a token, in engine order."""
        try:
            summary = self._public.get_order_book(token_id)
        except Exception as e:
            raise NetworkError(f"Failed to fetch order book: {e}") from e
        return OrderBook(
            token_id=token_id,
            bids=[OrderBookLevel(Decimal(b.price), Decimal(b.size)) for b in summary.bids or []],
            asks=[OrderBookLevel(Decimal(a.price), Decimal(a.size)) for a in summary.asks or []],
        )

    def midpoint(self, token_id: str) -> Decimal:
        """Fetch the midpoint price for a token."""
        try:
            response = self._public.get_midpoint(token_id)
            return Decimal(str(response["mid"]))
        except Exception as e:
            raise NetworkError(f"Failed to fetch midpoint: {e}") from e

    def spread(self, token_id: str) -> Decimal:
        """Fetch the bid-ask spread for a token."""
        try:
            response = self._public.get_spread(token_id)
            return Decimal(str(response["spread"]))
        except Exception as e:
            raise NetworkError(f"Failed to fetch spread: {e}") from e
