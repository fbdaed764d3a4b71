"""
Bill calculator and bill record builder.

calculate_totals() is a pure function of the cart lines, the discount
percent and the tax flag. build_bill() snapshots a cart into an immutable
BillRecord; it never persists (see bills_service.save_bill).

    subtotal        = sum of line totals
    discount_amount = subtotal * discount_percent / 100
    taxable_amount  = subtotal - discount_amount
    tax_amount      = taxable_amount * tax_rate / 100   (0 when tax is off)
    grand_total     = taxable_amount + tax_amount

Amounts are exact Decimals; rounding to 2 places happens only when a value
is serialized or stored.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Iterable

from ..money import HUNDRED, as_number, to_decimal
from ..time_utils import utcnow, to_utc_z
from .cart_service import Cart, CartLine

DEFAULT_TAX_RATE = Decimal("18")
ZERO = Decimal("0")


class BillError(Exception):
    """Raised for bill generation and persistence errors."""
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}


class EmptyCart(BillError):
    """A bill needs at least one line."""


class CustomerRequired(BillError):
    """A bill needs a selected customer."""


@dataclass(frozen=True)
class CustomerRef:
    id: int
    name: str


@dataclass(frozen=True)
class BillTotals:
    subtotal: Decimal
    discount_percent: Decimal
    discount_amount: Decimal
    taxable_amount: Decimal
    tax_enabled: bool
    tax_rate: Decimal
    tax_amount: Decimal
    grand_total: Decimal

    def to_dict(self) -> dict:
        return {
            "subtotal": as_number(self.subtotal),
            "discount_percent": float(self.discount_percent),
            "discount_amount": as_number(self.discount_amount),
            "taxable_amount": as_number(self.taxable_amount),
            "tax_enabled": self.tax_enabled,
            "tax_rate": float(self.tax_rate),
            "tax_amount": as_number(self.tax_amount),
            "grand_total": as_number(self.grand_total),
        }


def clamp_discount(discount_percent) -> Decimal:
    value = to_decimal(discount_percent)
    if value < ZERO:
        return ZERO
    if value > HUNDRED:
        return HUNDRED
    return value


def calculate_totals(
    lines: Iterable[CartLine],
    discount_percent=0,
    tax_enabled: bool = True,
    *,
    tax_rate=DEFAULT_TAX_RATE,
    clamp: bool = True,
) -> BillTotals:
    """Derive bill totals from cart lines. Same inputs, same output."""
    discount = clamp_discount(discount_percent) if clamp else to_decimal(discount_percent)
    rate = to_decimal(tax_rate)

    subtotal = sum((line.line_total for line in lines), ZERO)
    discount_amount = subtotal * discount / HUNDRED
    taxable_amount = subtotal - discount_amount
    tax_amount = taxable_amount * rate / HUNDRED if tax_enabled else ZERO
    grand_total = taxable_amount + tax_amount

    return BillTotals(
        subtotal=subtotal,
        discount_percent=discount,
        discount_amount=discount_amount,
        taxable_amount=taxable_amount,
        tax_enabled=bool(tax_enabled),
        tax_rate=rate,
        tax_amount=tax_amount,
        grand_total=grand_total,
    )


@dataclass(frozen=True)
class BillRecord:
    """
    Immutable snapshot of a cart at bill generation time.

    line_items is a tuple of frozen CartLines, so later cart mutations
    cannot reach it.
    """
    id: str
    customer_id: int
    customer_name: str
    line_items: tuple[CartLine, ...]
    totals: BillTotals
    notes: str | None
    created_at: datetime = field(default_factory=utcnow)

    @property
    def subtotal(self) -> Decimal:
        return self.totals.subtotal

    @property
    def discount_amount(self) -> Decimal:
        return self.totals.discount_amount

    @property
    def tax_amount(self) -> Decimal:
        return self.totals.tax_amount

    @property
    def grand_total(self) -> Decimal:
        return self.totals.grand_total

    def to_payload(self) -> dict:
        """Shape expected by a "create bill" endpoint."""
        return {
            "customer_id": self.customer_id,
            "items": [line.to_dict() for line in self.line_items],
            "total_amount": as_number(self.grand_total),
            "tax_amount": as_number(self.tax_amount),
            "discount_amount": as_number(self.discount_amount),
            "notes": self.notes,
        }

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "customer_id": self.customer_id,
            "customer_name": self.customer_name,
            "items": [line.to_dict() for line in self.line_items],
            **self.totals.to_dict(),
            "notes": self.notes,
            "created_at": to_utc_z(self.created_at),
        }


def build_bill(
    cart: Cart,
    customer: CustomerRef | None,
    discount_percent=0,
    tax_enabled: bool = True,
    notes: str | None = None,
    *,
    tax_rate=DEFAULT_TAX_RATE,
    clamp: bool = True,
) -> BillRecord:
    if cart.is_empty():
        raise EmptyCart("Please add items to the cart before generating a bill")
    if customer is None:
        raise CustomerRequired("Please select a customer before generating a bill")

    line_items = tuple(cart.lines)
    totals = calculate_totals(
        line_items, discount_percent, tax_enabled, tax_rate=tax_rate, clamp=clamp
    )

    return BillRecord(
        id=uuid.uuid4().hex,
        customer_id=customer.id,
        customer_name=customer.name,
        line_items=line_items,
        totals=totals,
        notes=(notes or "").strip() or None,
        created_at=utcnow(),
    )
