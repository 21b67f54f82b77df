"""Error taxonomy surfaced to SDK callers.

Every failure leaving the SDK is a ``CanopyError`` with a stable ``code``
and a ``details`` mapping for diagnostics. Unexpected failures are wrapped
with the original exception chained as ``__cause__`` and copied into
``details["original_error"]``.
"""

from __future__ import annotations

from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    VAULT_PAUSED = "VAULT_PAUSED"
    NETWORK_ERROR = "NETWORK_ERROR"
    VAULT_NOT_FOUND = "VAULT_NOT_FOUND"
    AMOUNT_TOO_SMALL = "AMOUNT_TOO_SMALL"
    INVALID_VAULT_ADDRESS = "INVALID_VAULT_ADDRESS"
    INVALID_USER_ADDRESS = "INVALID_USER_ADDRESS"
    INVALID_TOKEN_ADDRESS = "INVALID_TOKEN_ADDRESS"
    INVALID_POOL_ADDRESS = "INVALID_POOL_ADDRESS"
    INVALID_INPUT = "INVALID_INPUT"
    TRANSACTION_BUILD_FAILED = "TRANSACTION_BUILD_FAILED"
    INSUFFICIENT_BALANCE = "INSUFFICIENT_BALANCE"
    PACKET_GENERATION_FAILED = "PACKET_GENERATION_FAILED"
    STAKING_POOLS_NOT_FOUND = "STAKING_POOLS_NOT_FOUND"


class CanopyError(Exception):
    """Raised for every failure the SDK reports to its caller."""

    def __init__(
        self,
        message: str,
        code: ErrorCode,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.details: dict[str, Any] = details or {}

    def __str__(self) -> str:
        return f"[{self.code.value}] {self.message}"

    @classmethod
    def wrap(
        cls,
        exc: BaseException,
        message: str,
        code: ErrorCode,
        **details: Any,
    ) -> CanopyError:
        """Return ``exc`` unchanged if it is already a CanopyError, else wrap it.

        The caller is expected to ``raise CanopyError.wrap(...) from exc``.
        """
        if isinstance(exc, CanopyError):
            return exc
        return cls(message, code, {**details, "original_error": exc})


# Human-readable messages shared across modules.
ERROR_MESSAGES = {
    "VAULT_ADDRESS_REQUIRED": "Vault address is required and must be a string",
    "VAULT_ADDRESS_FORMAT": "Vault address must start with 0x",
    "VAULT_PAUSED": "Vault is currently paused and cannot accept transactions",
    "VAULT_NOT_FOUND": "Vault not found or inaccessible",
    "FAILED_TO_GET_VAULT_DETAILS": "Failed to get vault details",
    "FAILED_TO_GET_VAULTS_LIST": "Failed to get vaults list",
    "FAILED_TO_GET_STRATEGY_DETAILS": "Failed to get strategy details",
    "FAILED_TO_FETCH_METADATA": "Failed to fetch metadata from GraphQL API",
    "AMOUNT_TOO_SMALL": "amount must be greater than zero",
    "AMOUNT_MUST_BE_INT": "amount must be an integer",
    "DEPOSIT_FAILED": "Deposit failed",
    "WITHDRAWAL_FAILED": "Withdrawal failed",
    "STAKING_POOLS_NOT_CONFIGURED": (
        "No staking pools found for token. Options: "
        "1) Provide pool_addresses parameter, "
        "2) Ensure staking token is in static mapping, "
        "3) Provide sentio_api_key for dynamic lookup"
    ),
    "STAKING_POOLS_EMPTY": (
        "No staking pools available for token after checking all sources"
    ),
}
