# Overview: Decimal helpers for money; storage is integer cents, arithmetic is Decimal.

from __future__ import annotations

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any

CENT = Decimal("0.01")
HUNDRED = Decimal("100")


class MoneyError(ValueError):
    """Raised when a value cannot be read as an amount."""


def to_decimal(value: Any) -> Decimal:
    """
    Read an amount from JSON/CSV input without float contamination.

    Floats go through str() so 0.1 becomes Decimal("0.1"), not its binary
    expansion. NaN and Infinity are rejected.
    """
    amount = _parse_decimal(value)
    if not amount.is_finite():
        raise MoneyError(f"amount must be finite: {value!r}")
    return amount


def _parse_decimal(value: Any) -> Decimal:
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        raise MoneyError("amount must be a number")
    if isinstance(value, int):
        return Decimal(value)
    if isinstance(value, float):
        return Decimal(str(value))
    if isinstance(value, str):
        text = value.strip().replace(",", "").lstrip("₹$")
        if not text:
            raise MoneyError("amount must not be blank")
        try:
            return Decimal(text)
        except InvalidOperation:
            raise MoneyError(f"invalid amount: {value!r}")
    raise MoneyError("amount must be a number")


def to_cents(amount: Decimal) -> int:
    return int((amount * HUNDRED).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def from_cents(cents: int) -> Decimal:
    return (Decimal(cents) / HUNDRED).quantize(CENT)


def quantize(amount: Decimal) -> Decimal:
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


def as_number(amount: Decimal) -> float:
    """Two-decimal float for JSON responses."""
    return float(quantize(amount))
