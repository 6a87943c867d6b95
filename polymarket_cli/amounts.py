"""
Order amount normalization.

Amounts are always truncated toward zero at two decimal places before they are
turned into an order amount, so a buy never spends more than asked and a sell
never offers more shares than asked.
"""

import logging
from decimal import ROUND_DOWN, Decimal, Inexact, InvalidOperation, localcontext
from typing import Optional, Union

from polymarket_cli.constants import SHARE_DECIMALS, USDC_SCALE
from polymarket_cli.exceptions import InvalidAmount, InvalidPrice
from polymarket_cli.types import OrderAmount, Side

logger = logging.getLogger(__name__)

DecimalLike = Union[Decimal, str, int]


def parse_decimal(value: DecimalLike, field: str = "amount") -> Decimal:
    """Parse user input into a finite Decimal.

    Args:
        value: A Decimal, int or decimal string.
        field: "amount" or "price"; selects the error raised.

    Returns:
        The parsed value.

    Raises:
        InvalidPrice: If field is "price" and the value is malformed.
        InvalidAmount: Otherwise, if the value is malformed.
    """
    error = InvalidPrice if field == "price" else InvalidAmount
    if isinstance(value, float):
        raise error(f"Invalid {field}: pass a string or Decimal, not a float")
    try:
        parsed = value if isinstance(value, Decimal) else Decimal(str(value).strip())
    except InvalidOperation:
        raise error(f"Invalid {field}: {value!r}") from None
    if not parsed.is_finite():
        raise error(f"Invalid {field}: {value!r}")
    return parsed


def truncate(value: Decimal, places: int = SHARE_DECIMALS) -> Decimal:
    """Truncate toward zero to a fixed number of decimal places."""
    return value.quantize(Decimal(1).scaleb(-places), rounding=ROUND_DOWN)


def normalize(
    side: Side,
    raw_amount: DecimalLike,
    price: Optional[DecimalLike] = None,
) -> OrderAmount:
    """Turn a side, amount and optional price into an order amount.

    - BUY with a price: the amount is a share count; the order spends
      ``truncate(amount) * price`` USDC.
    - BUY without a price: the amount is already a USDC value.
    - SELL: the amount is a share count; any price is ignored.

    Raises:
        InvalidAmount: If the amount is malformed, negative, or the resulting
            notional needs more than six decimal places or cannot be computed
            exactly.
        InvalidPrice: If the price is malformed or negative.
    """
    amount = parse_decimal(raw_amount, "amount")
    if amount < 0:
        raise InvalidAmount(f"Amount must not be negative, got {amount}")
    try:
        rounded = truncate(amount)
    except InvalidOperation:
        raise InvalidAmount(f"Amount {amount} is out of range") from None

    if side is Side.SELL:
        if price is not None:
            logger.debug("Ignoring price %s for sell order", price)
        result = OrderAmount.shares(rounded)
        logger.info("Market sell: %s shares (from %s)", rounded, amount)
        return result

    if price is None:
        result = OrderAmount.notional(rounded)
        logger.info("Market buy: %s USDC (from %s)", rounded, amount)
        return result

    price_dec = parse_decimal(price, "price")
    if price_dec < 0:
        raise InvalidPrice(f"Price must not be negative, got {price_dec}")
    with localcontext() as ctx:
        ctx.traps[Inexact] = True
        try:
            notional = rounded * price_dec
        except Inexact:
            raise InvalidAmount(
                f"Notional for {rounded} shares at {price_dec} exceeds decimal precision"
            ) from None
    result = OrderAmount.notional(notional)
    logger.info(
        "Market buy derived from limit params: %s USDC (%s shares at %s)",
        result.value,
        rounded,
        price_dec,
    )
    return result


def format_balance(raw_balance: int) -> Decimal:
    """Convert a raw 6-decimal token balance into a human-readable Decimal."""
    return Decimal(int(raw_balance)) / USDC_SCALE
