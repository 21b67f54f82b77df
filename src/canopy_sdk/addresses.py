"""Address and Move type-name helpers.

Addresses are compared and embedded in function identifiers only in their
canonical form: lower-case, zero-left-padded to 32 bytes, ``0x`` prefixed.
"""

from __future__ import annotations

import re
from typing import Any, Literal

from eth_utils import add_0x_prefix, remove_0x_prefix

from .errors import CanopyError, ErrorCode, ERROR_MESSAGES

AddressKind = Literal["vault", "user", "token", "pool", "strategy"]

ADDRESS_HEX_LENGTH = 64
_ADDRESS_RE = re.compile(r"^0x[0-9a-fA-F]{1,64}$")

_ERROR_CODES: dict[str, ErrorCode] = {
    "vault": ErrorCode.INVALID_VAULT_ADDRESS,
    "strategy": ErrorCode.INVALID_VAULT_ADDRESS,
    "user": ErrorCode.INVALID_USER_ADDRESS,
    "token": ErrorCode.INVALID_TOKEN_ADDRESS,
    "pool": ErrorCode.INVALID_POOL_ADDRESS,
}


def normalize_address(value: Any) -> str:
    """Canonicalize an address. Never raises; non-strings are stringified."""
    raw = remove_0x_prefix(str(value).strip())
    return add_0x_prefix(raw.lower().rjust(ADDRESS_HEX_LENGTH, "0"))


def same_address(left: Any, right: Any) -> bool:
    return normalize_address(left) == normalize_address(right)


def normalize_type_name(value: str) -> str:
    """Normalize the package address of a ``pkg::module::Type`` name.

    The package may carry an ``@`` prefix (as returned by some view
    functions). Module and type segments pass through unchanged.
    """
    package, sep, rest = value.partition("::")
    if package.startswith("@"):
        package = package[1:]
    normalized = normalize_address(package)
    return f"{normalized}{sep}{rest}" if sep else normalized


def is_valid_address(value: Any) -> bool:
    return isinstance(value, str) and bool(_ADDRESS_RE.match(value))


def is_coin_type(token: str) -> bool:
    """A token identifier containing a module path separator is a coin type."""
    return "::" in token


def error_code_for(kind: AddressKind) -> ErrorCode:
    return _ERROR_CODES.get(kind, ErrorCode.INVALID_INPUT)


def validate_address(value: Any, kind: AddressKind) -> None:
    """Raise the kind-specific CanopyError if ``value`` is not a valid address.

    Token identifiers may also be coin types, in which case only the package
    address is checked.
    """
    code = error_code_for(kind)
    if not value or not isinstance(value, str):
        raise CanopyError(
            f"{kind.capitalize()} address is required and must be a string",
            code,
            {"address": value},
        )

    candidate = value
    if kind == "token" and is_coin_type(value):
        candidate = value.split("::", 1)[0].lstrip("@")
        if not candidate.startswith("0x"):
            candidate = f"0x{candidate}"

    if not is_valid_address(candidate):
        if kind == "vault" and not value.startswith("0x"):
            message = ERROR_MESSAGES["VAULT_ADDRESS_FORMAT"]
        else:
            message = f"Invalid {kind} address format"
        raise CanopyError(message, code, {"address": value})


def validate_address_list(values: Any, kind: AddressKind) -> None:
    if not values or not isinstance(values, (list, tuple)):
        raise CanopyError(
            f"At least one {kind} address is required",
            ErrorCode.INVALID_INPUT,
            {"addresses": values},
        )

    for index, value in enumerate(values):
        try:
            validate_address(value, kind)
        except CanopyError as exc:
            exc.details["index"] = index
            raise


def validate_amount(amount: Any, operation: str) -> None:
    """Amounts must be positive integers in base units.

    Non-integers (including ``bool``) are reported as AMOUNT_TOO_SMALL.
    """
    if isinstance(amount, bool) or not isinstance(amount, int):
        raise CanopyError(
            f"{operation} {ERROR_MESSAGES['AMOUNT_MUST_BE_INT']}",
            ErrorCode.AMOUNT_TOO_SMALL,
            {"amount": amount},
        )

    if amount <= 0:
        raise CanopyError(
            f"{operation} {ERROR_MESSAGES['AMOUNT_TOO_SMALL']}",
            ErrorCode.AMOUNT_TOO_SMALL,
            {"amount": str(amount)},
        )
