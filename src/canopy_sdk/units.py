from __future__ import annotations


def scale_to_decimals(amount: str, decimals: int) -> int:
    """Convert a human-readable decimal string to on-chain base units.

    Args:
        amount: Non-negative decimal string such as ``"1.25"``.
        decimals: Decimal precision of the asset.

    Returns:
        The amount as an integer number of base units.

    Raises:
        ValueError: If ``amount`` is not a plain non-negative decimal or
            ``decimals`` is negative.

    Notes:
        - Fractional digits beyond ``decimals`` are truncated, not rounded.
        - Missing fractional digits are right-padded with zeros.
    """
    if decimals < 0:
        raise ValueError(f"decimals must be non-negative, got {decimals}")

    whole, _, fraction = amount.strip().partition(".")
    if not (whole or fraction) or not (whole + fraction).isdigit():
        raise ValueError(f"Invalid decimal amount: {amount!r}")

    padded_fraction = fraction.ljust(decimals, "0")[:decimals]
    return int((whole + padded_fraction) or "0")


def scale_from_decimals(amount: int, decimals: int) -> str:
    """Render on-chain base units as a human-readable decimal string.

    Trailing fractional zeros are stripped and no fractional part is emitted
    when the value is a whole number.
    """
    if amount < 0:
        raise ValueError(f"amount must be non-negative, got {amount}")
    if decimals < 0:
        raise ValueError(f"decimals must be non-negative, got {decimals}")

    digits = str(amount).rjust(decimals + 1, "0")
    split_at = len(digits) - decimals
    whole = digits[:split_at] or "0"
    fraction = digits[split_at:].rstrip("0")

    return f"{whole}.{fraction}" if fraction else whole
