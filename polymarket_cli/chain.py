"""
On-chain reads and transactions for token approvals and balances.
"""

import logging
from typing import Any, Optional, Protocol

from eth_account.signers.local import LocalAccount
from web3 import Web3
from web3.middleware import ExtraDataToPOAMiddleware

from polymarket_cli.constants import DEFAULT_RECEIPT_TIMEOUT, POLYGON
from polymarket_cli.exceptions import NetworkError, TransactionError

logger = logging.getLogger(__name__)

# ERC-20 allowance/approve/balanceOf plus ERC-1155 operator approval.
TOKEN_ABI = [
    {
        "inputs": [
            {"name": "spender", "type": "address"},
            {"name": "value", "type": "uint256"},
        ],
        "name": "approve",
        "outputs": [{"name": "", "type": "bool"}],
        "stateMutability": "nonpayable",
        "type": "function",
    },
    {
        "inputs": [
            {"name": "owner", "type": "address"},
            {"name": "spender", "type": "address"},
        ],
        "name": "allowance",
        "outputs": [{"name": "", "type": "uint256"}],
        "stateMutability": "view",
        "type": "function",
    },
    {
        "inputs": [{"name": "account", "type": "address"}],
        "name": "balanceOf",
        "outputs": [{"name": "", "type": "uint256"}],
        "stateMutability": "view",
        "type": "function",
    },
    {
        "inputs": [
            {"name": "operator", "type": "address"},
            {"name": "approved", "type": "bool"},
        ],
        "name": "setApprovalForAll",
        "outputs": [],
        "stateMutability": "nonpayable",
        "type": "function",
    },
    {
        "inputs": [
            {"name": "account", "type": "address"},
            {"name": "operator", "type": "address"},
        ],
        "name": "isApprovedForAll",
        "outputs": [{"name": "", "type": "bool"}],
        "stateMutability": "view",
        "type": "function",
    },
]


class ChainBackend(Protocol):
    """The chain capability the approval orchestrator needs."""

    def call(self, contract: str, method: str, *args: Any) -> Any:
        ...

    def send(self, contract: str, method: str, *args: Any) -> str:
        ...

    def watch(self, tx_hash: str) -> str:
        ...


class ChainClient:
    """Reads contract state and sends signed transactions over JSON-RPC."""

    def __init__(
        self,
        rpc_url: str,
        account: Optional[LocalAccount] = None,
        chain_id: int = POLYGON,
        w3: Optional[Web3] = None,
        receipt_timeout: float = DEFAULT_RECEIPT_TIMEOUT,
    ) -> None:
        """Initialize the chain client.

        Args:
            rpc_url: JSON-RPC endpoint URL.
            account: Signer for transactions. Read-only without one.
            chain_id: The blockchain chain ID.
            w3: Optional preconfigured Web3 instance.
            receipt_timeout: Seconds to wait for a transaction receipt.
        """
        if w3 is None:
            w3 = Web3(Web3.HTTPProvider(rpc_url))
            # Polygon block headers carry POA extra data
            w3.middleware_onion.inject(ExtraDataToPOAMiddleware, layer=0)
        self._w3 = w3
        self._account = account
        self._chain_id = chain_id
        self._receipt_timeout = receipt_timeout

    def _function(self, contract: str, method: str, *args: Any) -> Any:
        token = self._w3.eth.contract(
            address=Web3.to_checksum_address(contract),
            abi=TOKEN_ABI,
        )
        return getattr(token.functions, method)(*args)

    def call(self, contract: str, method: str, *args: Any) -> Any:
        """Call a read-only contract method.

        Raises:
            NetworkError: If the call fails.
        """
        try:
            return self._function(contract, method, *args).call()
        except Exception as e:
            raise NetworkError(f"{method} call on {contract} failed: {e}") from e

    def send(self, contract: str, method: str, *args: Any) -> str:
        """Sign and broadcast a contract transaction.

        Returns:
            The transaction hash.

        Raises:
            TransactionError: If no signer is configured or submission fails.
        """
        if self._account is None:
            raise TransactionError("Private key required to send transactions")

        owner = self._account.address
        try:
            nonce = self._w3.eth.get_transaction_count(owner, "pending")
            tx = self._function(contract, method, *args).build_transaction(
                {"chainId": self._chain_id, "from": owner, "nonce": nonce}
            )
            signed = self._account.sign_transaction(tx)
            tx_hash = self._w3.eth.send_raw_transaction(signed.raw_transaction)
        except Exception as e:
            raise TransactionError(f"{method} on {contract} failed to submit: {e}") from e

        tx_hex = Web3.to_hex(tx_hash)
        logger.info("Submitted %s on %s: %s", method, contract, tx_hex)
        return tx_hex

    def watch(self, tx_hash: str) -> str:
        """Wait for a transaction to be included.

        Returns:
            The transaction hash once included.

        Raises:
            TransactionError: If the receipt never arrives or shows a revert.
        """
        try:
            receipt = self._w3.eth.wait_for_transaction_receipt(
                tx_hash, timeout=self._receipt_timeout
            )
        except Exception as e:
            raise TransactionError(f"Waiting for {tx_hash} failed: {e}", tx_hash) from e

        if receipt["status"] != 1:
            raise TransactionError(f"Transaction {tx_hash} reverted", tx_hash)
        logger.info("Transaction %s included in block %s", tx_hash, receipt["blockNumber"])
        return tx_hash


def allowance(chain: ChainBackend, token: str, owner: str, spender: str) -> int:
    """ERC-20 allowance of spender over owner's tokens."""
    return int(chain.call(token, "allowance", owner, spender))


def balance_of(chain: ChainBackend, token: str, account: str) -> int:
    """ERC-20 raw balance of an account."""
    return int(chain.call(token, "balanceOf", account))


def is_approved_for_all(chain: ChainBackend, ctf: str, account: str, operator: str) -> bool:
    """ERC-1155 operator approval status."""
    return bool(chain.call(ctf, "isApprovedForAll", account, operator))
