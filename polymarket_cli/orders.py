"""
Order placement: side parsing and the build, sign and submit pipeline.

Every order goes out as a fill-or-kill market order. A price only changes how
a buy amount is sized (see polymarket_cli.amounts.normalize), never the order
type. Any failing step aborts the rest; nothing half-built is ever posted.
"""

import logging
from typing import Any, Dict, Optional, Protocol, Union

from eth_account.signers.local import LocalAccount

from polymarket_cli.amounts import DecimalLike, normalize
from polymarket_cli.exceptions import InvalidSide
from polymarket_cli.types import (
    OrderAmount,
    OrderReceipt,
    Side,
    SignatureScheme,
    WalletIdentity,
)
from polymarket_cli.wallet import wallet_identity

logger = logging.getLogger(__name__)


class MatchingEngine(Protocol):
    """The matching-engine capability the pipeline needs."""

    def authenticate(
        self,
        signer: LocalAccount,
        signature_scheme: SignatureScheme,
        funder: Optional[str],
    ) -> Any:
        ...

    def ok(self) -> Any:
        ...

    def api_keys(self) -> Any:
        ...

    def build_market_order(self, token_id: str, amount: OrderAmount, side: Side) -> Any:
        ...

    def sign(self, signer: LocalAccount, order: Any) -> Any:
        ...

    def post_order(self, signed_order: Any) -> Dict[str, Any]:
        ...


def parse_side(side: Union[str, Side]) -> Side:
    """Parse "buy" or "sell" (any case) into a Side.

    Raises:
        InvalidSide: For any other input.
    """
    if isinstance(side, Side):
        return side
    if isinstance(side, str):
        value = side.strip().lower()
        if value == "buy":
            return Side.BUY
        if value == "sell":
            return Side.SELL
    raise InvalidSide(f"Invalid side {side!r}: must be 'buy' or 'sell'")


class OrderPipeline:
    """Places market orders through a matching engine."""

    def __init__(self, engine: MatchingEngine, signer: LocalAccount, chain_id: int) -> None:
        """Initialize the pipeline.

        Args:
            engine: The matching-engine capability.
            signer: The wallet signer.
            chain_id: The blockchain chain ID.
        """
        self._engine = engine
        self._signer = signer
        self._chain_id = chain_id
        self.identity: Optional[WalletIdentity] = None
        self.amount: Optional[OrderAmount] = None
        self.health: Any = None
        self.api_keys: Any = None

    def place_order(
        self,
        token_id: str,
        side: Union[str, Side],
        raw_amount: DecimalLike,
        price: Optional[DecimalLike] = None,
    ) -> OrderReceipt:
        """Build, sign and submit a market order.

        Args:
            token_id: The outcome token to trade.
            side: "buy"/"sell" or a Side.
            raw_amount: For buys without a price, USDC to spend; otherwise a
                share count.
            price: Optional price; for buys it converts shares to USDC.

        Returns:
            The engine's response.

        Raises:
            InvalidSide: If the side is not buy or sell.
            InvalidAmount: If the amount cannot be normalized.
            InvalidPrice: If the price is malformed.
            AuthenticationError: If authentication fails.
            NetworkError: If the session checks fail.
            OrderBuildError: If building or signing fails.
            SubmissionError: If posting fails.
        """
        side_enum = parse_side(side)
        # Input errors surface before anything touches the network.
        self.amount = normalize(side_enum, raw_amount, price)

        self.identity = wallet_identity(self._signer, self._chain_id)
        logger.info("Safe Address: %s", self.identity.safe_address)
        logger.info("Proxy Address: %s", self.identity.proxy_address)

        self._engine.authenticate(
            self._signer,
            SignatureScheme.POLY_PROXY,
            self.identity.proxy_address,
        )
        self.health = self._engine.ok()
        self.api_keys = self._engine.api_keys()
        logger.info("Ok: %s", self.health)

        order = self._engine.build_market_order(token_id, self.amount, side_enum)
        signed = self._engine.sign(self._signer, order)
        response = self._engine.post_order(signed)

        if not isinstance(response, dict):
            response = {"response": response}
        receipt = OrderReceipt(response=response)
        logger.info("Order response: %s", receipt.response)
        return receipt
