"""Monetary amounts in wei.

Amounts are plain Python ints counted in wei (1 ether = 10**18 wei), so they
never lose precision. Conversions to and from ether strings go through
``decimal.Decimal``.
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Any

from .errors import InvalidInputError

__all__ = [
    "WEI_PER_ETHER",
    "as_wei",
    "from_wei",
    "to_wei",
]

WEI_PER_ETHER = 10**18


def as_wei(amount: Any, *, field_name: str = "amount") -> int:
    """Coerce an amount to an int number of wei.

    Accepts ints, integral Decimals and digit strings. Floats and fractional
    values are rejected because they cannot represent wei exactly.

    Raises
    ------
    InvalidInputError
        If the amount is not an exact integer
    """
    if isinstance(amount, bool) or isinstance(amount, float):
        raise InvalidInputError(f"{field_name} must be an integer number of wei, got {amount!r}")

    if isinstance(amount, int):
        return amount

    try:
        value = Decimal(str(amount).strip())
    except InvalidOperation as exc:
        raise InvalidInputError(f"{field_name} is not a number: {amount!r}") from exc

    if not value.is_finite() or value != value.to_integral_value():
        raise InvalidInputError(f"{field_name} must be a whole number of wei, got {amount!r}")

    return int(value)


def to_wei(ether: str | int | Decimal) -> int:
    """Convert an ether amount to wei.

    Example
    -------
    >>> to_wei("0.00042")
    420000000000000
    """
    try:
        value = Decimal(str(ether).strip()) * WEI_PER_ETHER
    except InvalidOperation as exc:
        raise InvalidInputError(f"Invalid ether amount: {ether!r}") from exc

    if not value.is_finite() or value != value.to_integral_value():
        raise InvalidInputError(f"Ether amount has more precision than 1 wei: {ether!r}")

    return int(value)


def from_wei(wei: int) -> Decimal:
    """Convert wei to an exact ether Decimal.

    Example
    -------
    >>> from_wei(10**16)
    Decimal('0.01')
    """
    value = Decimal(wei).scaleb(-18)
    # normalize() would render whole amounts like 10 as 1E+1
    if value == value.to_integral_value():
        return value.quantize(Decimal(1))
    return value.normalize()
