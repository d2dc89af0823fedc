"""Conversions between human token amounts and on-chain base units: no I/O."""
from __future__ import annotations

from decimal import Decimal, InvalidOperation


def to_base_units(value: float | int | str | Decimal, decimals: int) -> int:
    """Convert a human amount into a base-unit integer.

    The value is rendered as a plain decimal string, split at the point, and
    the fractional part is padded or truncated to exactly ``decimals`` digits.
    Digits past ``decimals`` are dropped, never rounded up.

    Examples:
        to_base_units(1.5, 6) -> 1500000
        to_base_units(0.1234567, 6) -> 123456
        to_base_units(1e-7, 6) -> 0
    """
    if decimals < 0:
        raise ValueError(f"decimals must be non-negative, got {decimals}")

    try:
        number = value if isinstance(value, Decimal) else Decimal(str(value))
    except InvalidOperation as e:
        raise ValueError(f"Not a number: {value!r}") from e

    if not number.is_finite():
        raise ValueError(f"Amount must be finite, got {value!r}")
    if number < 0:
        raise ValueError(f"Amount must be non-negative, got {value!r}")

    whole, _, fraction = format(number, "f").partition(".")
    fraction = (fraction + "0" * decimals)[:decimals]
    return int(whole + fraction)


def from_base_units(amount: int | str, decimals: int) -> Decimal:
    """Convert a base-unit integer into an exact human amount."""
    return Decimal(int(amount)).scaleb(-decimals)
