"""
Production feasibility calculator.

Given a recipe and a requested quantity, works out how much of each
material is needed (wastage included), compares it with current stock, and
derives how many whole units can actually be produced.

Cost and time always describe the full requested quantity, independent of
feasibility, so a planner can see what the order would take.
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass
from decimal import Decimal

from .stock_ledger import MaterialLedger


class ProductionError(Exception):
    """Raised for production planning errors."""
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}


class InvalidQuantity(ProductionError):
    """Requested quantity must be a positive whole number."""


class RecipeNotFound(ProductionError):
    """No active recipe for the product."""


@dataclass(frozen=True)
class MaterialRequirement:
    material_id: int
    material_name: str
    required_quantity_per_unit: float
    unit: str
    wastage_percent: float = 0.0

    @property
    def per_unit_with_wastage(self) -> float:
        return self.required_quantity_per_unit * (1 + self.wastage_percent / 100)


@dataclass(frozen=True)
class ProductRecipe:
    id: int
    name: str
    materials: tuple[MaterialRequirement, ...] = ()
    complexity: str = "Medium"
    estimated_time_hours: float = 1.0


@dataclass(frozen=True)
class MaterialBreakdown:
    material_id: int
    material_name: str
    required: float
    available: float
    shortage: float
    cost: float
    unit: str

    def to_dict(self) -> dict:
        return {
            "material_id": self.material_id,
            "material_name": self.material_name,
            "required": round(self.required, 4),
            "available": round(self.available, 4),
            "shortage": round(self.shortage, 4),
            "cost": round(self.cost, 2),
            "unit": self.unit,
        }


@dataclass(frozen=True)
class ProductionCalculation:
    product_id: int
    product_name: str
    requested_quantity: int
    possible_quantity: int
    feasible: bool
    total_cost: float
    estimated_time: float
    bottlenecks: tuple[str, ...] = ()
    material_breakdown: tuple[MaterialBreakdown, ...] = ()

    def to_dict(self) -> dict:
        return {
            "product_id": self.product_id,
            "product_name": self.product_name,
            "requested_quantity": self.requested_quantity,
            "possible_quantity": self.possible_quantity,
            "feasible": self.feasible,
            "total_cost": round(self.total_cost, 2),
            "estimated_time": round(self.estimated_time, 2),
            "bottlenecks": list(self.bottlenecks),
            "material_breakdown": [m.to_dict() for m in self.material_breakdown],
        }


# Measured quantities are compared at this many decimal places.
QUANTITY_PLACES = 6


def _measure(value: float) -> Decimal:
    return Decimal(str(round(value, QUANTITY_PLACES)))


def _format_quantity(value: Decimal) -> str:
    return f"{value:.2f}".rstrip("0").rstrip(".")


def calculate_production(
    recipe: ProductRecipe,
    requested_quantity: int,
    ledger: MaterialLedger,
) -> ProductionCalculation:
    if isinstance(requested_quantity, bool) or not isinstance(requested_quantity, int) or requested_quantity <= 0:
        raise InvalidQuantity(
            "Requested quantity must be a positive whole number",
            details={"requested_quantity": requested_quantity},
        )

    breakdown: list[MaterialBreakdown] = []
    bottlenecks: list[str] = []
    possible_quantity = requested_quantity
    total_cost = 0.0

    for req in recipe.materials:
        per_unit = _measure(req.per_unit_with_wastage)
        required = per_unit * requested_quantity
        available = _measure(ledger.available(req.material_id))
        shortage = max(Decimal(0), required - available)
        cost = float(required) * ledger.cost_per_unit(req.material_id)
        total_cost += cost

        if shortage > 0 and per_unit > 0:
            supportable = int(available // per_unit)
            possible_quantity = min(possible_quantity, supportable)
            bottlenecks.append(
                f"{req.material_name}: short by {_format_quantity(shortage)} {req.unit} "
                f"(available {_format_quantity(available)} {req.unit}, "
                f"required {_format_quantity(required)} {req.unit})"
            )

        breakdown.append(MaterialBreakdown(
            material_id=req.material_id,
            material_name=req.material_name,
            required=float(required),
            available=float(available),
            shortage=float(shortage),
            cost=cost,
            unit=req.unit,
        ))

    return ProductionCalculation(
        product_id=recipe.id,
        product_name=recipe.name,
        requested_quantity=requested_quantity,
        possible_quantity=possible_quantity,
        feasible=possible_quantity == requested_quantity,
        total_cost=total_cost,
        estimated_time=recipe.estimated_time_hours * requested_quantity,
        bottlenecks=tuple(bottlenecks),
        material_breakdown=tuple(breakdown),
    )


class CalculationHistory:
    """Most-recent-first list of calculations, oldest dropped past `limit`."""

    def __init__(self, limit: int = 5):
        if limit < 1:
            raise ValueError("history limit must be >= 1")
        self._items: deque[ProductionCalculation] = deque(maxlen=limit)

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self):
        return iter(self._items)

    @property
    def limit(self) -> int:
        return self._items.maxlen

    def record(self, calculation: ProductionCalculation) -> None:
        self._items.appendleft(calculation)

    def latest(self) -> ProductionCalculation | None:
        return self._items[0] if self._items else None

    def clear(self) -> None:
        self._items.clear()

    def to_list(self) -> list[dict]:
        return [c.to_dict() for c in self._items]
