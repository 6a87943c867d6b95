"""
Command-line interface for Polymarket.

Usage:
    polymarket-cli search "election"
    polymarket-cli positions --user 0x...
    polymarket-cli order-book --token-id 123...
    polymarket-cli trade --token-id 123...
    polymarket-cli midpoint --token-id 123...
    polymarket-cli order --token-id 123... --side buy --amount 10 [--price 0.65]
    polymarket-cli approve [--dry-run]
    polymarket-cli status

Configuration comes from the environment (or a .env file):
    POLYMARKET_PRIVATE_KEY - wallet private key (order, approve, status)
    USER_ADDRESS           - optional address override for positions
"""

import argparse
import logging
import sys
import time
from dataclasses import dataclass
from typing import Callable, List, Optional

from eth_account.signers.local import LocalAccount

from polymarket_cli import __version__
from polymarket_cli.amounts import format_balance
from polymarket_cli.approvals import Reading, build_approval_targets, run_approvals
from polymarket_cli.chain import ChainBackend, ChainClient, balance_of
from polymarket_cli.clob import ClobEngine
from polymarket_cli.config import Settings
from polymarket_cli.data_api import DataClient
from polymarket_cli.exceptions import NetworkError, PolymarketCliError
from polymarket_cli.gamma import GammaClient
from polymarket_cli.orderbook import normalize_book
from polymarket_cli.orders import OrderPipeline
from polymarket_cli.types import AllowanceReading, ApprovalOutcome, ApprovalPhase
from polymarket_cli.wallet import load_signer, resolve_user_address, wallet_identity

logger = logging.getLogger(__name__)


def _default_engine(settings: Settings) -> ClobEngine:
    return ClobEngine(settings.clob_host, chain_id=settings.chain_id)


def _default_chain(settings: Settings, signer: Optional[LocalAccount]) -> ChainBackend:
    return ChainClient(settings.rpc_url, account=signer, chain_id=settings.chain_id)


def _default_gamma(settings: Settings) -> GammaClient:
    return GammaClient(settings.gamma_host)


def _default_data(settings: Settings) -> DataClient:
    return DataClient(settings.data_host)


@dataclass
class CommandContext:
    """Settings plus factories for every external collaborator."""

    settings: Settings
    engine_factory: Callable[[Settings], ClobEngine] = _default_engine
    chain_factory: Callable[[Settings, Optional[LocalAccount]], ChainBackend] = _default_chain
    gamma_factory: Callable[[Settings], GammaClient] = _default_gamma
    data_factory: Callable[[Settings], DataClient] = _default_data
    sleep: Callable[[float], None] = time.sleep


# =============================================================================
# Commands
# =============================================================================


def cmd_search(ctx: CommandContext, query: str) -> None:
    with ctx.gamma_factory(ctx.settings) as client:
        events = client.search(query)

    if not events:
        print("No events found.")
        return

    print(f"Found {len(events)} events:")
    for event in events:
        print(f"Event: {event.title} (ID: {event.id})")
        for market in event.markets:
            print(f"  - Market: {market.question} (ID: {market.id})")
            pairs = market.outcome_tokens()
            if pairs:
                print("    Outcomes:")
                for outcome, token_id in pairs:
                    print(f"      - {outcome}: {token_id}")
            else:
                print(f"    Outcomes (raw): {market.outcomes}")
                print(f"    Token IDs (raw): {market.clob_token_ids}")


def cmd_positions(ctx: CommandContext, user: Optional[str]) -> None:
    settings = ctx.settings
    signer = None
    if not user and not settings.user_address and settings.private_key:
        signer = load_signer(settings.private_key)
    address = resolve_user_address(user, settings.user_address, signer)

    with ctx.data_factory(settings) as client:
        positions = client.positions(address)

    print(f"Positions for {address}:")
    for pos in positions:
        print(f"- Market: {pos.title}")
        print(f"  Token ID: {pos.asset}")
        print(f"  Outcome: {pos.outcome}")
        print(f"  Size: {pos.size}")
        print(f"  Avg Price: {pos.avg_price}")
        print(f"  Current Value: ${pos.current_value}")
        print(f"  PnL: ${pos.cash_pnl} ({pos.percent_pnl}%)")
        print("-" * 50)


def cmd_order_book(ctx: CommandContext, token_id: str) -> None:
    engine = ctx.engine_factory(ctx.settings)
    book = engine.order_book(token_id)

    print(f"Order Book for {token_id}:")
    try:
        print(f"  Midpoint Price: {engine.midpoint(token_id)}")
    except NetworkError as e:
        logger.warning("Midpoint unavailable: %s", e)
        print("  Midpoint Price: N/A")
    try:
        print(f"  Spread: {engine.spread(token_id)}")
    except NetworkError as e:
        logger.warning("Spread unavailable: %s", e)
        print("  Spread: N/A")

    book = normalize_book(book)
    print("  Bids:")
    for bid in book.bids:
        print(f"    Price: {bid.price}, Size: {bid.size}")
    print("  Asks:")
    for ask in book.asks:
        print(f"    Price: {ask.price}, Size: {ask.size}")


def cmd_trade(ctx: CommandContext, token_id: str) -> None:
    with ctx.data_factory(ctx.settings) as client:
        trades = client.trades(token_id)

    print(f"Recent Trades for {token_id}:")
    for trade in trades:
        print(f"- {trade.side} {trade.size} {trade.outcome} @ {trade.price} ({trade.title}) tx={trade.tx_hash}")


def cmd_midpoint(ctx: CommandContext, token_id: str) -> None:
    engine = ctx.engine_factory(ctx.settings)
    print(f"Midpoint Price: {engine.midpoint(token_id)}")


def _print_session(pipeline: OrderPipeline) -> None:
    if pipeline.identity is not None:
        print(f"Safe Address: {pipeline.identity.safe_address}")
        print(f"Proxy Address: {pipeline.identity.proxy_address}")
    if pipeline.health is not None:
        print(f"Ok: {pipeline.health}")
    if pipeline.api_keys is not None:
        print(f"API keys: {pipeline.api_keys}")


def cmd_order(
    ctx: CommandContext,
    token_id: str,
    side: str,
    amount: str,
    price: Optional[str],
) -> None:
    settings = ctx.settings
    signer = load_signer(settings.require_private_key())

    pipeline = OrderPipeline(ctx.engine_factory(settings), signer, settings.chain_id)
    try:
        receipt = pipeline.place_order(token_id, side, amount, price)
    finally:
        _print_session(pipeline)

    print(f"Placed MARKET {side.lower()} order for {pipeline.amount}")
    print(f"Order Response: {receipt.response}")


PHASE_HEADERS = {
    ApprovalPhase.CHECKING: 'phase = "checking", current allowances',
    ApprovalPhase.APPROVING: 'phase = "approving", transactions',
    ApprovalPhase.VERIFYING: 'phase = "verifying", confirmed approvals',
}


def _print_phase(phase: ApprovalPhase) -> None:
    print(PHASE_HEADERS[phase], flush=True)


def _print_reading(r: Reading) -> None:
    suffix = ", verified" if r.phase is ApprovalPhase.VERIFYING else ""
    if isinstance(r, AllowanceReading):
        if r.ok:
            print(f"contract = {r.target.name}, token = {r.token.name}, allowance = {r.allowance}{suffix}", flush=True)
        else:
            print(f"contract = {r.target.name}, token = {r.token.name}, error = {r.error}", flush=True)
    elif r.ok:
        print(f"contract = {r.target.name}, ctf_approved = {str(r.approved).lower()}{suffix}", flush=True)
    else:
        print(f"contract = {r.target.name}, error = {r.error}", flush=True)


def _print_outcome(outcome: ApprovalOutcome) -> None:
    if outcome.succeeded:
        line = f"contract = {outcome.target.name}, token = {outcome.token}, tx = {outcome.tx_hash}, approved"
    else:
        line = f"contract = {outcome.target.name}, token = {outcome.token}, error = {outcome.error}, approve failed"
    print(line, flush=True)


def cmd_approve(ctx: CommandContext, dry_run: bool) -> None:
    settings = ctx.settings
    config = settings.chain_config
    targets = build_approval_targets(config)

    if dry_run:
        report = run_approvals(
            None,
            None,
            targets,
            config.collateral_tokens,
            config.conditional_tokens,
            dry_run=True,
        )
        print('mode = "dry_run", showing approvals without executing')
        for target in report.targets:
            print(f"contract = {target.name}, address = {target.address}, would receive approval")
        print(f"total = {len(report.targets)}, contracts would be approved")
        return

    signer = load_signer(settings.require_private_key())
    print(f"wallet loaded: {signer.address}")

    report = run_approvals(
        ctx.chain_factory(settings, signer),
        signer.address,
        targets,
        config.collateral_tokens,
        config.conditional_tokens,
        cooldown=settings.approval_cooldown,
        sleep=ctx.sleep,
        on_phase=_print_phase,
        on_reading=_print_reading,
        on_outcome=_print_outcome,
    )

    if report.failures:
        print(f"{len(report.failures)} of {len(report.outcomes)} approvals failed")
    else:
        print("all approvals complete")


def cmd_status(ctx: CommandContext) -> None:
    settings = ctx.settings
    signer = load_signer(settings.require_private_key())
    identity = wallet_identity(signer, settings.chain_id)
    print(f"User Address: {identity.address}")
    print(f"Proxy Address: {identity.proxy_address}")

    chain = ctx.chain_factory(settings, None)
    for token in settings.chain_config.collateral_tokens:
        balance = balance_of(chain, token.address, identity.proxy_address)
        print(f"{token.name}: ${format_balance(balance)}")


# =============================================================================
# Entry point
# =============================================================================


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="polymarket-cli", description="CLI for Polymarket")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("search", help="Search for markets by keyword")
    p.add_argument("query", help="Keywords to search for")

    p = sub.add_parser("positions", help="See open positions")
    p.add_argument(
        "-u", "--user",
        help="User address. Defaults to USER_ADDRESS, then the private key's address",
    )

    p = sub.add_parser("order-book", help="See order book for a market")
    p.add_argument("-t", "--token-id", required=True, help="Token ID to fetch order book for")

    p = sub.add_parser("trade", help="See recent trades for a market")
    p.add_argument("-t", "--token-id", required=True, help="Market ID (or Token ID) to fetch trades for")

    p = sub.add_parser("midpoint", help="Get the midpoint price for a market")
    p.add_argument("-t", "--token-id", required=True, help="Token ID to fetch midpoint for")

    p = sub.add_parser("order", help="Place a market order")
    p.add_argument("-t", "--token-id", required=True, help="Token ID of the outcome")
    p.add_argument("-s", "--side", required=True, help='Side to trade: "buy" or "sell"')
    p.add_argument(
        "-a", "--amount",
        required=True,
        help="USDC to spend for a buy; shares for a sell or for a buy with --price",
    )
    p.add_argument(
        "-p", "--price",
        help="Price per share. For buys, converts a share amount to USDC. Ignored for sells",
    )

    p = sub.add_parser("approve", help="Approve tokens for trading")
    p.add_argument("--dry-run", action="store_true", help="Show approvals without executing")

    sub.add_parser("status", help="Check available cash")
    return parser


def dispatch(ctx: CommandContext, args: argparse.Namespace) -> None:
    if args.command == "search":
        cmd_search(ctx, args.query)
    elif args.command == "positions":
        cmd_positions(ctx, args.user)
    elif args.command == "order-book":
        cmd_order_book(ctx, args.token_id)
    elif args.command == "trade":
        cmd_trade(ctx, args.token_id)
    elif args.command == "midpoint":
        cmd_midpoint(ctx, args.token_id)
    elif args.command == "order":
        cmd_order(ctx, args.token_id, args.side, args.amount, args.price)
    elif args.command == "approve":
        cmd_approve(ctx, args.dry_run)
    elif args.command == "status":
        cmd_status(ctx)


def main(argv: Optional[List[str]] = None, ctx: Optional[CommandContext] = None) -> int:
    """Run the CLI and return a process exit code."""
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        if ctx is None:
            ctx = CommandContext(settings=Settings.from_env())
        logging.basicConfig(
            level=getattr(logging, ctx.settings.log_level, logging.WARNING),
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )
        dispatch(ctx, args)
    except PolymarketCliError as e:
        logger.debug("%s failed", args.command, exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
