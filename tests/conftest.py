"""Pytest fixtures for polymarket-cli tests."""

from decimal import Decimal
from typing import Any, Dict, List, Optional, Set, Tuple

import pytest

from polymarket_cli.constants import POLYGON
from polymarket_cli.exceptions import NetworkError, TransactionError
from polymarket_cli.types import OrderBook, OrderBookLevel


# Test wallet private key (DO NOT use in production)
TEST_PRIVATE_KEY = "0xac0974bec39a17e36ba4a6b4d238ff944bacb478cbed5efcae784d7bf4f2ff80"
TEST_ADDRESS = "0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266"


class FakeChain:
    """In-memory chain backend that records every call."""

    def __init__(
        self,
        allowances: Optional[Dict[Tuple[str, str], int]] = None,
        balances: Optional[Dict[Tuple[str, str], int]] = None,
        failing_reads: Optional[Set[str]] = None,
        failing_sends: Optional[Set[Tuple[str, str]]] = None,
        failing_watches: Optional[Set[Tuple[str, str]]] = None,
    ) -> None:
        self.allowances = allowances or {}
        self.balances = balances or {}
        self.operators: Set[str] = set()
        self.failing_reads = failing_reads or set()
        self.failing_sends = failing_sends or set()
        self.failing_watches = failing_watches or set()
        self.calls: List[Tuple[str, str, Tuple[Any, ...]]] = []
        self._counter = 0
        self._sent: Dict[str, Tuple[str, str]] = {}

    def call(self, contract: str, method: str, *args: Any) -> Any:
        self.calls.append(("call", method, (contract,) + args))
        if method in self.failing_reads:
            raise NetworkError(f"{method} call on {contract} failed")
        if method == "allowance":
            return self.allowances.get((contract, args[1]), 0)
        if method == "isApprovedForAll":
            return args[1] in self.operators
        if method == "balanceOf":
            return self.balances.get((contract, args[0]), 0)
        raise AssertionError(f"unexpected call {method}")

    def send(self, contract: str, method: str, *args: Any) -> str:
        self.calls.append(("send", method, (contract,) + args))
        if (contract, method) in self.failing_sends:
            raise TransactionError(f"{method} on {contract} reverted")
        if method == "approve":
            self.allowances[(contract, args[0])] = args[1]
        elif method == "setApprovalForAll":
            self.operators.add(args[0])
        self._counter += 1
        tx_hash = "0x" + f"{self._counter:064x}"
        self._sent[tx_hash] = (contract, method)
        return tx_hash

    def watch(self, tx_hash: str) -> str:
        self.calls.append(("watch", tx_hash, ()))
        if self._sent.get(tx_hash) in self.failing_watches:
            raise TransactionError("Transaction reverted", tx_hash=tx_hash)
        return tx_hash

    @property
    def sends(self) -> List[Tuple[str, str, Tuple[Any, ...]]]:
        return [c for c in self.calls if c[0] == "send"]


class FakeEngine:
    """Matching engine double that records the steps it was asked to run."""

    def __init__(
        self,
        failures: Optional[Dict[str, Exception]] = None,
        response: Any = None,
        book: Optional[OrderBook] = None,
        midpoint: Any = Decimal("0.5"),
        spread: Any = Decimal("0.02"),
    ) -> None:
        self.failures = failures or {}
        self.response = {"success": True, "orderID": "0xabc", "status": "matched"} if response is None else response
        self.book = book
        self._midpoint = midpoint
        self._spread = spread
        self.steps: List[str] = []
        self.auth_args: Optional[Tuple[Any, ...]] = None
        self.built: List[Tuple[str, Any, Any]] = []

    def _step(self, name: str) -> None:
        self.steps.append(name)
        if name in self.failures:
            raise self.failures[name]

    def authenticate(self, signer, signature_scheme, funder):
        self.auth_args = (signer.address, signature_scheme, funder)
        self._step("authenticate")
        return {"apiKey": "key"}

    def ok(self):
        self._step("ok")
        return "OK"

    def api_keys(self):
        self._step("api_keys")
        return ["key"]

    def build_market_order(self, token_id, amount, side):
        self._step("build")
        self.built.append((token_id, amount, side))
        return {"token_id": token_id, "amount": amount, "side": side}

    def sign(self, signer, order):
        self._step("sign")
        return {"signed": order}

    def post_order(self, signed_order):
        self._step("post")
        return self.response

    def order_book(self, token_id):
        self._step("order_book")
        return self.book or OrderBook(token_id=token_id, bids=[], asks=[])

    def midpoint(self, token_id):
        self._step("midpoint")
        if isinstance(self._midpoint, Exception):
            raise self._midpoint
        return self._midpoint

    def spread(self, token_id):
        self._step("spread")
        if isinstance(self._spread, Exception):
            raise self._spread
        return self._spread


def level(price: str, size: str) -> OrderBookLevel:
    return OrderBookLevel(Decimal(price), Decimal(size))


@pytest.fixture
def private_key() -> str:
    """Test wallet private key."""
    return TEST_PRIVATE_KEY


@pytest.fixture
def test_address() -> str:
    """Address of the test private key."""
    return TEST_ADDRESS


@pytest.fixture
def chain_id() -> int:
    """Test chain ID."""
    return POLYGON


@pytest.fixture
def signer(private_key):
    """Local signer for the test private key."""
    from eth_account import Account

    return Account.from_key(private_key)


@pytest.fixture
def gamma_host() -> str:
    """Test market search host."""
    return "https://gamma.test"


@pytest.fixture
def data_host() -> str:
    """Test data API host."""
    return "https://data.test"


@pytest.fixture
def fake_chain() -> FakeChain:
    return FakeChain()


@pytest.fixture
def fake_engine() -> FakeEngine:
    return FakeEngine()


@pytest.fixture
def clean_env(monkeypatch):
    """Remove every variable the CLI reads from the environment."""
    for name in (
        "POLYMARKET_PRIVATE_KEY",
        "USER_ADDRESS",
        "POLYMARKET_CHAIN_ID",
        "POLYMARKET_RPC_URL",
        "POLYMARKET_CLOB_HOST",
        "POLYMARKET_GAMMA_HOST",
        "POLYMARKET_DATA_HOST",
        "APPROVAL_COOLDOWN_SECONDS",
        "LOG_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)
    return monkeypatch
