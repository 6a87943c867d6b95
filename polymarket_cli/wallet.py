"""
Wallet identity: signer loading, address resolution and derived wallets.
"""

import logging
from typing import Optional, Union

from eth_account import Account
from eth_account.signers.local import LocalAccount
from web3 import Web3

from polymarket_cli.config import get_chain_config
from polymarket_cli.constants import PROXY_INIT_CODE_HASH, SAFE_INIT_CODE_HASH
from polymarket_cli.exceptions import (
    AddressResolutionError,
    ConfigurationError,
    InvalidAddressFormat,
)
from polymarket_cli.types import WalletIdentity

logger = logging.getLogger(__name__)


def load_signer(private_key: Optional[str]) -> LocalAccount:
    """Create a local signer from a hex private key.

    Raises:
        ConfigurationError: If the key is missing or malformed.
    """
    if not private_key:
        raise ConfigurationError("Private key is not set")
    try:
        return Account.from_key(private_key.strip())
    except (ValueError, TypeError) as e:
        raise ConfigurationError("Invalid private key") from e


def validate_address(address: str, source: str = "address") -> str:
    """Validate an address and return its checksum form.

    Args:
        address: The address string.
        source: Where the address came from, used in the error message.

    Raises:
        InvalidAddressFormat: If the string is not a valid address. Mixed-case
            strings must carry a valid EIP-55 checksum.
    """
    candidate = address.strip()
    if not candidate.startswith("0x") or not Web3.is_address(candidate):
        raise InvalidAddressFormat(f"Invalid address format in {source}: {address!r}")
    body = candidate[2:]
    if body != body.lower() and body != body.upper() and not Web3.is_checksum_address(candidate):
        raise InvalidAddressFormat(f"Invalid address checksum in {source}: {address!r}")
    return Web3.to_checksum_address(candidate)


def resolve_user_address(
    explicit: Optional[str] = None,
    environment: Optional[str] = None,
    signer: Optional[LocalAccount] = None,
) -> str:
    """Resolve the address to act for.

    Sources are tried strictly in order: an explicit address, an address from
    the environment, then the signer's own address. The first populated source
    wins; if it is invalid, resolution fails without trying the next one.

    Raises:
        InvalidAddressFormat: If the winning source holds a malformed address.
        AddressResolutionError: If no source is populated.
    """
    if explicit:
        return validate_address(explicit, "user argument")
    if environment:
        return validate_address(environment, "USER_ADDRESS")
    if signer is not None:
        return signer.address
    raise AddressResolutionError(
        "No user address: pass one explicitly, or set USER_ADDRESS or the private key"
    )


def create2_address(deployer: str, salt: bytes, init_code_hash: Union[str, bytes]) -> str:
    """Compute a CREATE2 contract address.

    Args:
        deployer: The factory address.
        salt: The 32-byte salt.
        init_code_hash: keccak256 of the contract init code.

    Returns:
        The checksummed contract address.
    """
    if isinstance(init_code_hash, str):
        if init_code_hash.startswith("0x"):
            init_code_hash = init_code_hash[2:]
        init_code_hash = bytes.fromhex(init_code_hash)
    if len(salt) != 32 or len(init_code_hash) != 32:
        raise ValueError("salt and init code hash must be 32 bytes")
    preimage = b"\xff" + bytes.fromhex(deployer[2:]) + salt + init_code_hash
    digest = Web3.keccak(primitive=preimage)
    return Web3.to_checksum_address(Web3.to_hex(digest[12:]))


def _address_bytes(address: str) -> bytes:
    return bytes.fromhex(validate_address(address)[2:])


def derive_proxy_wallet(address: str, chain_id: int) -> str:
    """Derive the proxy wallet address for a signer.

    The salt is keccak256 of the packed 20-byte signer address.

    Raises:
        ConfigurationError: If the chain has no proxy wallet factory.
    """
    config = get_chain_config(chain_id)
    if not config.proxy_factory:
        raise ConfigurationError(f"Chain {chain_id} has no proxy wallet factory")
    salt = Web3.keccak(primitive=_address_bytes(address))
    return create2_address(config.proxy_factory, salt, PROXY_INIT_CODE_HASH)


def derive_safe_wallet(address: str, chain_id: int) -> str:
    """Derive the Gnosis Safe wallet address for a signer.

    The salt is keccak256 of the ABI-encoded (32-byte left-padded) address.
    """
    config = get_chain_config(chain_id)
    salt = Web3.keccak(primitive=_address_bytes(address).rjust(32, b"\x00"))
    return create2_address(config.safe_factory, salt, SAFE_INIT_CODE_HASH)


def wallet_identity(signer: Union[LocalAccount, str], chain_id: int) -> WalletIdentity:
    """Compute the signer address and both derived wallet addresses."""
    address = signer if isinstance(signer, str) else signer.address
    address = validate_address(address)
    identity = WalletIdentity(
        address=address,
        safe_address=derive_safe_wallet(address, chain_id),
        proxy_address=derive_proxy_wallet(address, chain_id),
        chain_id=chain_id,
    )
    logger.debug(
        "Wallet %s: safe=%s proxy=%s",
        identity.address,
        identity.safe_address,
        identity.proxy_address,
    )
    return identity
