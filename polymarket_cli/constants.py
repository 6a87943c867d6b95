"""
Constants for the Polymarket CLI.
"""

from decimal import Decimal

# Chain IDs
POLYGON = 137
AMOY = 80002

# Hosts
CLOB_HOST = "https://clob.polymarket.com"
GAMMA_HOST = "https://gamma-api.polymarket.com"
DATA_HOST = "https://data-api.polymarket.com"
RPC_URL = "https://polygon-bor-rpc.publicnode.com"

# Environment variables
PRIVATE_KEY_VAR = "POLYMARKET_PRIVATE_KEY"
USER_ADDRESS_VAR = "USER_ADDRESS"

# Settlement currency variants (Polygon)
USDC_E_ADDRESS = "0x2791Bca1f2de4661ED88A30C99A7a9449Aa84174"
USDC_NATIVE_ADDRESS = "0x3c499c542cEF5E3811e1192ce70d8cC03d5c3359"

USDC_DECIMALS = 6
SHARE_DECIMALS = 2
USDC_SCALE = Decimal(10) ** USDC_DECIMALS

MAX_UINT256 = 2**256 - 1

# Wallet factory init code hashes
PROXY_INIT_CODE_HASH = "0xd21df8dc65880a8606f09fe0ce3df9b8869287ab0b058be05aa9e8af6330a00b"
SAFE_INIT_CODE_HASH = "0x2bce2127ff07fb632d16c8347c4ebf501f4841168bed00d9e6ef715ddb6fcecf"

# Seconds to wait around each approval transaction
DEFAULT_APPROVAL_COOLDOWN = 10.0

# Seconds to wait for a transaction receipt
DEFAULT_RECEIPT_TIMEOUT = 300

DEFAULT_POSITIONS_LIMIT = 50
DEFAULT_TRADES_LIMIT = 20

# API endpoints
ENDPOINTS = {
    "search": "/public-search",
    "positions": "/positions",
    "trades": "/trades",
}
