"""Tests for the command-line interface."""

import json

import pytest
import respx
from conftest import TEST_PRIVATE_KEY, FakeChain, FakeEngine, level
from httpx import Response

from polymarket_cli import __version__
from polymarket_cli.cli import CommandContext, build_parser, main
from polymarket_cli.config import Settings
from polymarket_cli.constants import POLYGON, USDC_E_ADDRESS, USDC_NATIVE_ADDRESS
from polymarket_cli.data_api import DataClient
from polymarket_cli.exceptions import NetworkError
from polymarket_cli.gamma import GammaClient
from polymarket_cli.types import OrderBook
from polymarket_cli.wallet import derive_proxy_wallet

OTHER_ADDRESS = "0x70997970C51812dc3A010C7d01b50e0d17dc79C8"


class InterruptingChain(FakeChain):
    """Chain that is interrupted on a given send, as with Ctrl-C."""

    def __init__(self, interrupt_at: int) -> None:
        super().__init__()
        self.interrupt_at = interrupt_at

    def send(self, contract, method, *args):
        if len(self.sends) + 1 == self.interrupt_at:
            raise KeyboardInterrupt
        return super().send(contract, method, *args)


def _context(settings=None, engine=None, chain=None, gamma_host=None, data_host=None):
    settings = settings or Settings()
    return CommandContext(
        settings=settings,
        engine_factory=lambda s: engine or FakeEngine(),
        chain_factory=lambda s, signer: chain or FakeChain(),
        gamma_factory=lambda s: GammaClient(gamma_host or s.gamma_host),
        data_factory=lambda s: DataClient(data_host or s.data_host),
        sleep=lambda _: None,
    )


class TestParser:
    """Tests for argument parsing."""

    def test_order_arguments(self):
        args = build_parser().parse_args(
            ["order", "-t", "123", "-s", "buy", "-a", "10", "-p", "0.65"]
        )
        assert args.command == "order"
        assert args.token_id == "123"
        assert args.amount == "10"
        assert args.price == "0.65"

    def test_command_required(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args([])

    def test_version(self, capsys):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["--version"])
        assert __version__ in capsys.readouterr().out


class TestApproveCommand:
    """Tests for the approve command."""

    def test_dry_run(self, capsys):
        chain = FakeChain()
        assert main(["approve", "--dry-run"], _context(chain=chain)) == 0
        out = capsys.readouterr().out
        assert 'mode = "dry_run"' in out
        assert "contract = CTF Exchange" in out
        assert "contract = Neg Risk Adapter" in out
        assert "total = 3, contracts would be approved" in out
        assert chain.calls == []

    def test_dry_run_needs_no_key(self, capsys):
        assert main(["approve", "--dry-run"], _context(Settings(private_key=None))) == 0

    def test_approve(self, capsys):
        chain = FakeChain()
        settings = Settings(private_key=TEST_PRIVATE_KEY, approval_cooldown=0)
        assert main(["approve"], _context(settings, chain=chain)) == 0
        out = capsys.readouterr().out
        assert 'phase = "checking"' in out
        assert 'phase = "verifying"' in out
        assert "ctf_approved = true, verified" in out
        assert "all approvals complete" in out
        assert len(chain.sends) == 9

    def test_approve_reports_failures(self, capsys):
        chain = FakeChain(failing_sends={(USDC_NATIVE_ADDRESS, "approve")})
        settings = Settings(private_key=TEST_PRIVATE_KEY, approval_cooldown=0)
        assert main(["approve"], _context(settings, chain=chain)) == 0
        out = capsys.readouterr().out
        assert "approve failed" in out
        assert "3 of 9 approvals failed" in out

    def test_approve_prints_in_target_order(self, capsys):
        settings = Settings(private_key=TEST_PRIVATE_KEY, approval_cooldown=0)
        assert main(["approve"], _context(settings, chain=FakeChain())) == 0
        lines = capsys.readouterr().out.splitlines()
        start = lines.index('phase = "checking", current allowances')
        assert lines[start + 1:start + 4] == [
            "contract = CTF Exchange, token = USDC.e, allowance = 0",
            "contract = CTF Exchange, token = USDC (Native), allowance = 0",
            "contract = CTF Exchange, ctf_approved = false",
        ]
        assert lines[start + 4].startswith("contract = Neg Risk CTF Exchange")

    def test_approve_output_survives_interrupt(self, capsys):
        chain = InterruptingChain(interrupt_at=5)
        settings = Settings(private_key=TEST_PRIVATE_KEY, approval_cooldown=0)
        with pytest.raises(KeyboardInterrupt):
            main(["approve"], _context(settings, chain=chain))
        out = capsys.readouterr().out
        assert 'phase = "approving", transactions' in out
        assert len([line for line in out.splitlines() if line.endswith(", approved")]) == 4
        assert 'phase = "verifying"' not in out
        assert "all approvals complete" not in out

    def test_approve_needs_key(self, capsys):
        assert main(["approve"], _context(Settings())) == 1
        assert "POLYMARKET_PRIVATE_KEY" in capsys.readouterr().err


class TestOrderCommand:
    """Tests for the order command."""

    def test_places_order(self, capsys, test_address):
        engine = FakeEngine()
        settings = Settings(private_key=TEST_PRIVATE_KEY)
        code = main(
            ["order", "-t", "123", "-s", "BUY", "-a", "100", "-p", "0.65"],
            _context(settings, engine=engine),
        )
        assert code == 0
        out = capsys.readouterr().out
        assert f"Proxy Address: {derive_proxy_wallet(test_address, POLYGON)}" in out
        assert "Placed MARKET buy order for 65" in out
        assert "Order Response:" in out
        assert "Ok: OK" in out
        assert "API keys: ['key']" in out
        assert engine.steps == ["authenticate", "ok", "api_keys", "build", "sign", "post"]

    def test_invalid_side(self, capsys):
        engine = FakeEngine()
        settings = Settings(private_key=TEST_PRIVATE_KEY)
        code = main(["order", "-t", "123", "-s", "hold", "-a", "10"], _context(settings, engine=engine))
        assert code == 1
        assert "Error: Invalid side" in capsys.readouterr().err
        assert engine.steps == []

    def test_missing_key(self, capsys):
        assert main(["order", "-t", "1", "-s", "buy", "-a", "1"], _context(Settings())) == 1
        assert "Error:" in capsys.readouterr().err


class TestMarketDataCommands:
    """Tests for order-book, midpoint, trade and search."""

    def test_order_book_sorted(self, capsys):
        book = OrderBook(
            token_id="123",
            bids=[level("0.40", "1"), level("0.45", "2")],
            asks=[level("0.60", "3"), level("0.55", "4")],
        )
        engine = FakeEngine(book=book)
        assert main(["order-book", "-t", "123"], _context(engine=engine)) == 0
        out = capsys.readouterr().out
        assert "Midpoint Price: 0.5" in out
        assert "Spread: 0.02" in out
        assert out.index("Price: 0.45") < out.index("Price: 0.40")
        assert out.index("Price: 0.55") < out.index("Price: 0.60")

    def test_order_book_without_midpoint(self, capsys):
        engine = FakeEngine(midpoint=NetworkError("no orders"), spread=NetworkError("no orders"))
        assert main(["order-book", "-t", "123"], _context(engine=engine)) == 0
        out = capsys.readouterr().out
        assert "Midpoint Price: N/A" in out
        assert "Spread: N/A" in out

    def test_midpoint_failure(self, capsys):
        engine = FakeEngine(midpoint=NetworkError("no orderbook exists"))
        assert main(["midpoint", "-t", "123"], _context(engine=engine)) == 1
        assert "no orderbook exists" in capsys.readouterr().err

    @respx.mock
    def test_search(self, capsys, gamma_host):
        respx.get(f"{gamma_host}/public-search").mock(
            return_value=Response(200, json={
                "events": [{
                    "id": "1",
                    "title": "Rain",
                    "markets": [{
                        "id": "2",
                        "question": "Will it rain?",
                        "outcomes": json.dumps(["Yes", "No"]),
                        "clobTokenIds": json.dumps(["111", "222"]),
                    }],
                }]
            })
        )
        assert main(["search", "rain"], _context(gamma_host=gamma_host)) == 0
        out = capsys.readouterr().out
        assert "Found 1 events:" in out
        assert "- Yes: 111" in out
        assert "- No: 222" in out

    @respx.mock
    def test_search_api_error(self, capsys, gamma_host):
        respx.get(f"{gamma_host}/public-search").mock(return_value=Response(500, text="down"))
        assert main(["search", "rain"], _context(gamma_host=gamma_host)) == 1
        assert "[500]" in capsys.readouterr().err

    @respx.mock
    def test_trade(self, capsys, data_host):
        respx.get(f"{data_host}/trades").mock(
            return_value=Response(200, json=[{"side": "SELL", "size": 3, "price": 0.4, "outcome": "No"}])
        )
        assert main(["trade", "-t", "111"], _context(data_host=data_host)) == 0
        assert "- SELL 3 No @ 0.4" in capsys.readouterr().out


class TestPositionsCommand:
    """Tests for the positions command."""

    @respx.mock
    def test_explicit_user(self, capsys, data_host):
        route = respx.get(f"{data_host}/positions").mock(return_value=Response(200, json=[]))
        settings = Settings(user_address="0xnot-an-address")
        code = main(["positions", "-u", OTHER_ADDRESS], _context(settings, data_host=data_host))
        assert code == 0
        assert route.calls.last.request.url.params["user"] == OTHER_ADDRESS
        assert f"Positions for {OTHER_ADDRESS}:" in capsys.readouterr().out

    @respx.mock
    def test_falls_back_to_signer(self, capsys, data_host, test_address):
        route = respx.get(f"{data_host}/positions").mock(return_value=Response(200, json=[]))
        settings = Settings(private_key=TEST_PRIVATE_KEY)
        assert main(["positions"], _context(settings, data_host=data_host)) == 0
        assert route.calls.last.request.url.params["user"] == test_address

    def test_invalid_environment_address(self, capsys):
        settings = Settings(private_key=TEST_PRIVATE_KEY, user_address="0x1234")
        assert main(["positions"], _context(settings)) == 1
        assert "USER_ADDRESS" in capsys.readouterr().err

    def test_no_address(self, capsys):
        assert main(["positions"], _context(Settings())) == 1
        assert "No user address" in capsys.readouterr().err


class TestStatusCommand:
    """Tests for the status command."""

    def test_balances(self, capsys, test_address):
        proxy = derive_proxy_wallet(test_address, POLYGON)
        chain = FakeChain(balances={
            (USDC_E_ADDRESS, proxy): 1_500_000,
            (USDC_NATIVE_ADDRESS, proxy): 0,
        })
        settings = Settings(private_key=TEST_PRIVATE_KEY)
        assert main(["status"], _context(settings, chain=chain)) == 0
        out = capsys.readouterr().out
        assert f"User Address: {test_address}" in out
        assert f"Proxy Address: {proxy}" in out
        assert "USDC.e: $1.5" in out
        assert "USDC (Native): $0" in out
