"""
Polymarket CLI

A command-line trading client for Polymarket prediction markets: market search,
positions, order books, market orders and token approvals.
"""

__version__ = "0.6.0"

from polymarket_cli.amounts import format_balance, normalize, truncate
from polymarket_cli.approvals import (
    ApprovalOrchestrator,
    build_approval_targets,
    run_approvals,
)
from polymarket_cli.config import ChainConfig, Settings, get_chain_config
from polymarket_cli.exceptions import (
    AddressResolutionError,
    ApiError,
    AuthenticationError,
    ConfigurationError,
    InvalidAddressFormat,
    InvalidAmount,
    InvalidInput,
    InvalidPrice,
    InvalidSide,
    NetworkError,
    OrderBuildError,
    PolymarketCliError,
    SubmissionError,
    TransactionError,
)
from polymarket_cli.orderbook import sort_asks, sort_bids
from polymarket_cli.orders import OrderPipeline, parse_side
from polymarket_cli.types import (
    AmountKind,
    ApprovalOutcome,
    ApprovalPhase,
    ApprovalReport,
    ApprovalTarget,
    OrderAmount,
    OrderBook,
    OrderBookLevel,
    OrderReceipt,
    Side,
    SignatureScheme,
    TokenContract,
    WalletIdentity,
)
from polymarket_cli.wallet import (
    derive_proxy_wallet,
    derive_safe_wallet,
    resolve_user_address,
    wallet_identity,
)

__all__ = [
    # Amounts
    "format_balance",
    "normalize",
    "truncate",
    # Approvals
    "ApprovalOrchestrator",
    "build_approval_targets",
    "run_approvals",
    # Config
    "ChainConfig",
    "Settings",
    "get_chain_config",
    # Orders
    "OrderPipeline",
    "parse_side",
    "sort_asks",
    "sort_bids",
    # Wallet
    "derive_proxy_wallet",
    "derive_safe_wallet",
    "resolve_user_address",
    "wallet_identity",
    # Types
    "AmountKind",
    "ApprovalOutcome",
    "ApprovalPhase",
    "ApprovalReport",
    "ApprovalTarget",
    "OrderAmount",
    "OrderBook",
    "OrderBookLevel",
    "OrderReceipt",
    "Side",
    "SignatureScheme",
    "TokenContract",
    "WalletIdentity",
    # Exceptions
    "PolymarketCliError",
    "ConfigurationError",
    "AddressResolutionError",
    "InvalidInput",
    "InvalidSide",
    "InvalidAmount",
    "InvalidPrice",
    "InvalidAddressFormat",
    "NetworkError",
    "ApiError",
    "TransactionError",
    "AuthenticationError",
    "OrderBuildError",
    "SubmissionError",
]
