"""
Chain and runtime configuration for the Polymarket CLI.
"""

import os
from dataclasses import dataclass
from typing import Dict, Optional, Tuple

from polymarket_cli.constants import (
    AMOY,
    CLOB_HOST,
    DATA_HOST,
    DEFAULT_APPROVAL_COOLDOWN,
    GAMMA_HOST,
    POLYGON,
    PRIVATE_KEY_VAR,
    RPC_URL,
    USDC_E_ADDRESS,
    USDC_NATIVE_ADDRESS,
    USER_ADDRESS_VAR,
)
from polymarket_cli.exceptions import ConfigurationError
from polymarket_cli.types import TokenContract


@dataclass(frozen=True)
class ChainConfig:
    """Contract addresses for a chain."""

    chain_id: int
    exchange: str
    neg_risk_exchange: str
    conditional_tokens: str
    collateral_tokens: Tuple[TokenContract, ...]
    safe_factory: str
    neg_risk_adapter: Optional[str] = None
    proxy_factory: Optional[str] = None


CHAIN_CONFIGS: Dict[int, ChainConfig] = {
    POLYGON: ChainConfig(
        chain_id=POLYGON,
        exchange="0x4bFb41d5B3570DeFd03C39a9A4D8dE6Bd8B8982E",
        neg_risk_exchange="0xC5d563A36AE78145C45a50134d48A1215220f80a",
        neg_risk_adapter="0xd91E80cF2E7be2e162c6513ceD06f1dD0dA35296",
        conditional_tokens="0x4D97DCd97eC945f40cF65F87097ACe5EA0476045",
        collateral_tokens=(
            TokenContract(name="USDC.e", address=USDC_E_ADDRESS),
            TokenContract(name="USDC (Native)", address=USDC_NATIVE_ADDRESS),
        ),
        safe_factory="0xaacFeEa03eb1561C4e67d661e40682Bd20E3541b",
        proxy_factory="0xaB45c5A4B0c941a2F231C04C3f49182e1A254052",
    ),
    AMOY: ChainConfig(
        chain_id=AMOY,
        exchange="0xdFE02Eb6733538f8Ea35D585af8DE5958AD99E40",
        neg_risk_exchange="0xC5d563A36AE78145C45a50134d48A1215220f80a",
        neg_risk_adapter="0xd91E80cF2E7be2e162c6513ceD06f1dD0dA35296",
        conditional_tokens="0x69308FB512518e39F9b16112fA8d994F4e2Bf8bB",
        collateral_tokens=(
            TokenContract(name="USDC", address="0x9c4e1703476e875070ee25b56a58b008cfb8fa78"),
        ),
        safe_factory="0xaacFeEa03eb1561C4e67d661e40682Bd20E3541b",
    ),
}


def get_chain_config(chain_id: int) -> ChainConfig:
    """Get the contract configuration for a chain.

    Args:
        chain_id: The blockchain chain ID.

    Returns:
        The chain configuration.

    Raises:
        ConfigurationError: If the chain is not supported.
    """
    try:
        return CHAIN_CONFIGS[chain_id]
    except KeyError:
        supported = ", ".join(str(c) for c in sorted(CHAIN_CONFIGS))
        raise ConfigurationError(
            f"Unsupported chain ID {chain_id} (supported: {supported})"
        ) from None


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}") from None


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = float(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be a number, got {raw!r}") from None
    if value < 0:
        raise ConfigurationError(f"{name} must not be negative, got {raw!r}")
    return value


def _env_str(name: str) -> Optional[str]:
    raw = os.environ.get(name)
    if raw is None:
        return None
    raw = raw.strip()
    return raw or None


@dataclass
class Settings:
    """Runtime settings resolved from the process environment."""

    private_key: Optional[str] = None
    user_address: Optional[str] = None
    chain_id: int = POLYGON
    rpc_url: str = RPC_URL
    clob_host: str = CLOB_HOST
    gamma_host: str = GAMMA_HOST
    data_host: str = DATA_HOST
    approval_cooldown: float = DEFAULT_APPROVAL_COOLDOWN
    log_level: str = "WARNING"

    @classmethod
    def from_env(cls, dotenv: bool = True) -> "Settings":
        """Build settings from environment variables.

        Args:
            dotenv: Load a .env file from the working directory first.

        Returns:
            The resolved settings.

        Raises:
            ConfigurationError: If a numeric variable is malformed.
        """
        if dotenv:
            from dotenv import load_dotenv

            load_dotenv()

        return cls(
            private_key=_env_str(PRIVATE_KEY_VAR),
            user_address=_env_str(USER_ADDRESS_VAR),
            chain_id=_env_int("POLYMARKET_CHAIN_ID", POLYGON),
            rpc_url=_env_str("POLYMARKET_RPC_URL") or RPC_URL,
            clob_host=_env_str("POLYMARKET_CLOB_HOST") or CLOB_HOST,
            gamma_host=_env_str("POLYMARKET_GAMMA_HOST") or GAMMA_HOST,
            data_host=_env_str("POLYMARKET_DATA_HOST") or DATA_HOST,
            approval_cooldown=_env_float(
                "APPROVAL_COOLDOWN_SECONDS", DEFAULT_APPROVAL_COOLDOWN
            ),
            log_level=(_env_str("LOG_LEVEL") or "WARNING").upper(),
        )

    @property
    def chain_config(self) -> ChainConfig:
        """Contract configuration for the configured chain."""
        return get_chain_config(self.chain_id)

    def require_private_key(self) -> str:
        """Return the private key.

        Raises:
            ConfigurationError: If no private key is configured.
        """
        if not self.private_key:
            raise ConfigurationError(f"Need {PRIVATE_KEY_VAR} environment variable")
        return self.private_key
