"""
Exception types for the Polymarket CLI.
"""

from typing import Optional


class PolymarketCliError(Exception):
    """Base exception for all CLI errors."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class ConfigurationError(PolymarketCliError):
    """Raised when credentials or environment configuration are missing or malformed."""


class AddressResolutionError(ConfigurationError):
    """Raised when no source yields a usable trading address."""


class InvalidInput(PolymarketCliError, ValueError):
    """Raised for malformed user input. Always user-correctable."""


class InvalidSide(InvalidInput):
    """Raised when a side string is neither buy nor sell."""


class InvalidAmount(InvalidInput):
    """Raised when an amount cannot be represented as an order amount."""


class InvalidPrice(InvalidInput):
    """Raised when a price string is malformed."""


class InvalidAddressFormat(InvalidInput):
    """Raised when an address fails format or checksum validation."""


class NetworkError(PolymarketCliError):
    """Raised when a remote API or chain endpoint call fails."""


class ApiError(NetworkError):
    """Raised when a remote API answers with an error status."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        response_body: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.response_body = response_body

    def __str__(self) -> str:
        if self.status_code:
            return f"[{self.status_code}] {self.message}"
        return self.message


class TransactionError(PolymarketCliError):
    """Raised when a chain transaction fails to submit or to be included."""

    def __init__(self, message: str, tx_hash: Optional[str] = None) -> None:
        super().__init__(message)
        self.tx_hash = tx_hash


class AuthenticationError(PolymarketCliError):
    """Raised when authenticating against the matching engine fails."""


class OrderBuildError(PolymarketCliError):
    """Raised when an order cannot be built or signed."""


class SubmissionError(PolymarketCliError):
    """Raised when the matching engine rejects or fails to accept an order."""
