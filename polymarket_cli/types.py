"""
Data types and models for the Polymarket CLI.
"""

import json
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum, IntEnum
from typing import Any, Dict, List, Optional, Tuple

from polymarket_cli.constants import SHARE_DECIMALS, USDC_DECIMALS
from polymarket_cli.exceptions import InvalidAmount


class Side(Enum):
    """Order side: BUY or SELL."""

    BUY = "buy"
    SELL = "sell"

    @property
    def clob_value(self) -> str:
        """The side constant used by the matching engine."""
        return self.name


class SignatureScheme(IntEnum):
    """Order signature type understood by the matching engine."""

    EOA = 0
    POLY_PROXY = 1
    POLY_GNOSIS_SAFE = 2


class AmountKind(Enum):
    """What an order amount is denominated in."""

    NOTIONAL = "notional"
    SHARES = "shares"


def _fractional_digits(value: Decimal) -> int:
    exponent = value.normalize().as_tuple().exponent
    return max(0, -exponent) if isinstance(exponent, int) else 0


@dataclass(frozen=True)
class OrderAmount:
    """An order amount: a notional USDC value or a share count."""

    kind: AmountKind
    value: Decimal

    def __post_init__(self) -> None:
        """Validate the amount."""
        if not self.value.is_finite():
            raise InvalidAmount(f"Amount must be finite, got {self.value}")
        if self.value < 0:
            raise InvalidAmount(f"Amount must not be negative, got {self.value}")
        places = USDC_DECIMALS if self.kind is AmountKind.NOTIONAL else SHARE_DECIMALS
        if _fractional_digits(self.value) > places:
            raise InvalidAmount(
                f"Invalid {self.kind.value} amount {self.value}: "
                f"at most {places} decimal places allowed"
            )

    @classmethod
    def notional(cls, value: Decimal) -> "OrderAmount":
        """An amount denominated in the settlement currency."""
        return cls(kind=AmountKind.NOTIONAL, value=value)

    @classmethod
    def shares(cls, value: Decimal) -> "OrderAmount":
        """An amount denominated in outcome shares."""
        return cls(kind=AmountKind.SHARES, value=value)

    @property
    def is_notional(self) -> bool:
        return self.kind is AmountKind.NOTIONAL

    def __str__(self) -> str:
        if self.is_notional:
            return f"{self.value} USDC"
        return f"{self.value} shares"


@dataclass(frozen=True)
class TokenContract:
    """A fungible settlement-currency token."""

    name: str
    address: str


@dataclass(frozen=True)
class ApprovalTarget:
    """An exchange contract that needs token approvals."""

    name: str
    address: str

    def __post_init__(self) -> None:
        """Validate the target address."""
        if not self.address or int(self.address, 16) == 0:
            raise ValueError(f"{self.name} must have a non-zero address")


class ApprovalPhase(Enum):
    """Phases of an approval run, in order."""

    CHECKING = "checking"
    APPROVING = "approving"
    VERIFYING = "verifying"
    DONE = "done"


@dataclass
class AllowanceReading:
    """An ERC-20 allowance read from the chain."""

    phase: ApprovalPhase
    target: ApprovalTarget
    token: TokenContract
    allowance: Optional[int] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class OperatorApprovalReading:
    """An ERC-1155 isApprovedForAll status read from the chain."""

    phase: ApprovalPhase
    target: ApprovalTarget
    approved: Optional[bool] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class ApprovalOutcome:
    """Result of one approval transaction."""

    target: ApprovalTarget
    token: str
    tx_hash: Optional[str] = None
    error: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.error is None and self.tx_hash is not None


@dataclass
class ApprovalReport:
    """Everything an approval run observed and did."""

    targets: List[ApprovalTarget]
    dry_run: bool = False
    readings: List[AllowanceReading] = field(default_factory=list)
    operator_readings: List[OperatorApprovalReading] = field(default_factory=list)
    outcomes: List[ApprovalOutcome] = field(default_factory=list)

    @property
    def failures(self) -> List[ApprovalOutcome]:
        """Approval transactions that failed."""
        return [o for o in self.outcomes if not o.succeeded]

    def readings_for(
        self, phase: ApprovalPhase
    ) -> Tuple[List[AllowanceReading], List[OperatorApprovalReading]]:
        """Allowance and operator readings taken during a phase."""
        return (
            [r for r in self.readings if r.phase is phase],
            [r for r in self.operator_readings if r.phase is phase],
        )


@dataclass(frozen=True)
class OrderBookLevel:
    """A price level in the orderbook."""

    price: Decimal
    size: Decimal


@dataclass
class OrderBook:
    """A snapshot of the orderbook for a token."""

    token_id: str
    bids: List[OrderBookLevel]
    asks: List[OrderBookLevel]


@dataclass(frozen=True)
class WalletIdentity:
    """The signing address and the wallets derived from it."""

    address: str
    safe_address: str
    proxy_address: str
    chain_id: int


@dataclass
class OrderReceipt:
    """The matching engine's response to an order submission, verbatim."""

    response: Dict[str, Any]

    @property
    def success(self) -> bool:
        return bool(self.response.get("success", False))

    @property
    def order_id(self) -> Optional[str]:
        return self.response.get("orderID") or self.response.get("orderId")

    @property
    def status(self) -> Optional[str]:
        return self.response.get("status")

    @property
    def error(self) -> Optional[str]:
        return self.response.get("errorMsg") or None


def parse_outcomes(
    outcomes_json: str, token_ids_json: str
) -> Optional[List[Tuple[str, str]]]:
    """Pair outcome labels with their token IDs.

    Both arguments are JSON-encoded string arrays, as returned by the market
    search API.

    Returns:
        (outcome, token_id) pairs, or None if either list is malformed, empty,
        or the lengths differ.
    """
    try:
        outcomes = json.loads(outcomes_json)
        token_ids = json.loads(token_ids_json)
    except (TypeError, ValueError):
        return None

    if not isinstance(outcomes, list) or not isinstance(token_ids, list):
        return None
    if not outcomes or len(outcomes) != len(token_ids):
        return None

    return [(str(o), str(t)) for o, t in zip(outcomes, token_ids)]


@dataclass
class SearchMarket:
    """A market returned by the search API."""

    id: str
    question: str
    outcomes: str
    clob_token_ids: str

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SearchMarket":
        """Create from API response dictionary."""
        return cls(
            id=str(data.get("id", "")),
            question=data.get("question") or "",
            outcomes=data.get("outcomes") or "[]",
            clob_token_ids=data.get("clobTokenIds") or "[]",
        )

    def outcome_tokens(self) -> Optional[List[Tuple[str, str]]]:
        """Outcome labels paired with the token IDs to trade them."""
        return parse_outcomes(self.outcomes, self.clob_token_ids)


@dataclass
class SearchEvent:
    """An event (group of markets) returned by the search API."""

    id: str
    title: str
    markets: List[SearchMarket]

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SearchEvent":
        """Create from API response dictionary."""
        return cls(
            id=str(data.get("id", "")),
            title=data.get("title") or "",
            markets=[SearchMarket.from_dict(m) for m in data.get("markets") or []],
        )


@dataclass
class Position:
    """A user's open position."""

    title: str
    asset: str
    outcome: str
    size: Decimal
    avg_price: Decimal
    current_value: Decimal
    cash_pnl: Decimal
    percent_pnl: Decimal

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Position":
        """Create from API response dictionary."""
        return cls(
            title=data.get("title", ""),
            asset=str(data.get("asset", "")),
            outcome=data.get("outcome", ""),
            size=Decimal(str(data.get("size", 0))),
            avg_price=Decimal(str(data.get("avgPrice", 0))),
            current_value=Decimal(str(data.get("currentValue", 0))),
            cash_pnl=Decimal(str(data.get("cashPnl", 0))),
            percent_pnl=Decimal(str(data.get("percentPnl", 0))),
        )


@dataclass
class Trade:
    """A trade execution."""

    side: str
    asset: str
    size: Decimal
    price: Decimal
    timestamp: int
    title: str
    outcome: str
    tx_hash: str

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Trade":
        """Create from API response dictionary."""
        return cls(
            side=data.get("side", ""),
            asset=str(data.get("asset", "")),
            size=Decimal(str(data.get("size", 0))),
            price=Decimal(str(data.get("price", 0))),
            timestamp=int(data.get("timestamp", 0)),
            title=data.get("title", ""),
            outcome=data.get("outcome", ""),
            tx_hash=data.get("transactionHash", ""),
        )
