"""
Cart engine for the billing counter.

A Cart holds the lines a user is assembling into a bill. Every mutation is
checked against stock: no sequence of add/set calls can leave a line whose
quantity exceeds its stock snapshot. Nothing here does I/O; the cart only
reads the StockEntry / StockLedger objects it is handed.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from decimal import Decimal

from ..money import as_number
from .stock_ledger import StockEntry, StockLedger


class CartError(Exception):
    """Raised for rejected cart mutations."""
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}


class StockLimitExceeded(CartError):
    """Adding one more unit would exceed the item's available stock."""


class InsufficientStock(CartError):
    """Requested quantity is above the item's available stock."""


class CartLineNotFound(CartError):
    """No line for the given item id."""


@dataclass(frozen=True)
class CartLine:
    item_id: int
    name: str
    unit_price: Decimal
    quantity: int
    available_stock_snapshot: int

    @property
    def line_total(self) -> Decimal:
        return self.unit_price * self.quantity

    def with_quantity(self, quantity: int) -> "CartLine":
        return replace(self, quantity=quantity)

    def to_dict(self) -> dict:
        return {
            "item_id": self.item_id,
            "name": self.name,
            "unit_price": as_number(self.unit_price),
            "quantity": self.quantity,
            "line_total": as_number(self.line_total),
            "available_stock": self.available_stock_snapshot,
        }


class Cart:
    """
    Ordered collection of CartLine keyed by item id.

    Lines keep insertion order; updating a line's quantity does not move it.
    """

    def __init__(self):
        self._lines: dict[int, CartLine] = {}

    def __len__(self) -> int:
        return len(self._lines)

    def __contains__(self, item_id) -> bool:
        return item_id in self._lines

    def __iter__(self):
        return iter(self.lines)

    @property
    def lines(self) -> list[CartLine]:
        return list(self._lines.values())

    def is_empty(self) -> bool:
        return not self._lines

    def get(self, item_id) -> CartLine | None:
        return self._lines.get(item_id)

    def add_item(self, entry: StockEntry) -> CartLine:
        """
        Add one unit of `entry`.

        Existing line: quantity + 1 against the entry's current availability.
        New line: quantity 1, snapshotting the availability at insertion.
        """
        existing = self._lines.get(entry.id)
        new_quantity = existing.quantity + 1 if existing else 1

        if new_quantity > entry.available_quantity:
            raise StockLimitExceeded(
                f"Only {entry.available_quantity} units of {entry.name} available",
                details={
                    "item_id": entry.id,
                    "requested_quantity": new_quantity,
                    "available_quantity": entry.available_quantity,
                },
            )

        if existing:
            line = replace(
                existing,
                quantity=new_quantity,
                unit_price=entry.unit_price,
                available_stock_snapshot=entry.available_quantity,
            )
        else:
            line = CartLine(
                item_id=entry.id,
                name=entry.name,
                unit_price=entry.unit_price,
                quantity=1,
                available_stock_snapshot=entry.available_quantity,
            )

        self._lines[entry.id] = line
        return line

    def set_quantity(self, item_id, quantity: int, ledger: StockLedger | None = None) -> CartLine | None:
        """
        Set a line's quantity. quantity <= 0 removes the line (returns None).

        When a ledger is given, the stock snapshot is refreshed from it first
        so the check runs against current availability.
        """
        if quantity <= 0:
            self.remove_item(item_id)
            return None

        line = self._lines.get(item_id)
        if line is None:
            raise CartLineNotFound("Item is not in the cart", details={"item_id": item_id})

        if ledger is not None:
            line = replace(line, available_stock_snapshot=ledger.available(item_id))

        if quantity > line.available_stock_snapshot:
            raise InsufficientStock(
                f"Only {line.available_stock_snapshot} units of {line.name} available",
                details={
                    "item_id": item_id,
                    "requested_quantity": quantity,
                    "available_quantity": line.available_stock_snapshot,
                },
            )

        line = line.with_quantity(quantity)
        self._lines[item_id] = line
        return line

    def remove_item(self, item_id) -> None:
        self._lines.pop(item_id, None)

    def clear(self) -> None:
        self._lines.clear()

    def to_dict(self) -> dict:
        return {
            "items": [line.to_dict() for line in self.lines],
            "item_count": len(self._lines),
            "unit_count": sum(line.quantity for line in self._lines.values()),
        }
