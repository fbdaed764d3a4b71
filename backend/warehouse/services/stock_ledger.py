"""
Read-only stock views consulted by the cart and the production calculator.

A ledger is a snapshot: it is built from the latest product/material data
and never mutated by the code that reads it. Unknown ids read as zero
available stock so callers can tolerate partial reference data.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable


@dataclass(frozen=True)
class StockEntry:
    """One sellable item with its price and available quantity."""
    id: int
    name: str
    unit_price: Decimal
    available_quantity: int
    category: str = "General"

    def __post_init__(self):
        if self.available_quantity < 0:
            object.__setattr__(self, "available_quantity", 0)


@dataclass(frozen=True)
class MaterialStock:
    """Current stock and unit cost of one raw material."""
    material_id: int
    name: str
    available_quantity: float
    unit: str
    cost_per_unit: float = 0.0

    def __post_init__(self):
        if self.available_quantity < 0:
            object.__setattr__(self, "available_quantity", 0.0)


class StockLedger:
    """Lookup of StockEntry by item id."""

    def __init__(self, entries: Iterable[StockEntry] = ()):
        self._entries = {entry.id: entry for entry in entries}

    def __contains__(self, item_id) -> bool:
        return item_id in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, item_id) -> StockEntry | None:
        return self._entries.get(item_id)

    def available(self, item_id) -> int:
        entry = self._entries.get(item_id)
        return entry.available_quantity if entry else 0

    def entries(self) -> list[StockEntry]:
        return list(self._entries.values())


class MaterialLedger:
    """Lookup of MaterialStock by material id."""

    def __init__(self, materials: Iterable[MaterialStock] = ()):
        self._materials = {m.material_id: m for m in materials}

    def __contains__(self, material_id) -> bool:
        return material_id in self._materials

    def get(self, material_id) -> MaterialStock | None:
        return self._materials.get(material_id)

    def available(self, material_id) -> float:
        material = self._materials.get(material_id)
        return material.available_quantity if material else 0.0

    def cost_per_unit(self, material_id) -> float:
        material = self._materials.get(material_id)
        return material.cost_per_unit if material else 0.0
