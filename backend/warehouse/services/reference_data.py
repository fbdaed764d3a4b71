"""
Reference data from the legacy REST backend.

Each upstream endpoint gets one decoder with a fixed schema. Responses may
arrive as a bare JSON array or wrapped in an envelope ({"products": [...]},
{"success": true, "data": [...]}); the decoder unwraps both and rejects
anything else. Rows that do not match the schema raise ReferenceDataError.

UpstreamClient fetches each source independently: one failing source
degrades to an empty list plus a warning and does not block the others.
Every fetch gets a generation number and ReferenceSnapshot only accepts
results newer than the last one applied (last fetch wins).
"""

from __future__ import annotations

import itertools
import logging
import threading
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Callable

import httpx

from ..money import MoneyError, to_decimal

logger = logging.getLogger(__name__)


class ReferenceDataError(ValueError):
    """Upstream payload does not match the expected schema."""


@dataclass(frozen=True)
class UpstreamProduct:
    external_id: str
    sku: str
    name: str
    price: Decimal
    current_stock: int
    category: str = "General"


@dataclass(frozen=True)
class UpstreamCustomer:
    external_id: str
    name: str
    email: str | None = None
    phone: str | None = None
    address: str | None = None


@dataclass(frozen=True)
class UpstreamMaterial:
    external_id: str
    name: str
    current_stock: float
    unit: str
    cost_per_unit: float
    reorder_level: float = 0.0
    supplier: str | None = None
    category: str = "General"


@dataclass(frozen=True)
class UpstreamRecipeMaterial:
    material_external_id: str
    material_name: str
    required_quantity: float
    unit: str
    wastage_percent: float = 0.0


@dataclass(frozen=True)
class UpstreamRecipe:
    product_external_id: str
    name: str
    estimated_time_hours: float
    complexity: str
    materials: tuple[UpstreamRecipeMaterial, ...] = ()


# -----------------------------------------------------------------------------
# Field readers
# -----------------------------------------------------------------------------

def _field(row: dict, *names: str, required: bool = True, default: Any = None) -> Any:
    for name in names:
        if name in row and row[name] is not None:
            return row[name]
    if required:
        raise ReferenceDataError(f"missing field {names[0]!r}")
    return default


def _text(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _number(value: Any, name: str) -> float:
    if isinstance(value, bool):
        raise ReferenceDataError(f"{name} must be a number")
    try:
        return float(value)
    except (TypeError, ValueError):
        raise ReferenceDataError(f"{name} must be a number, got {value!r}")


def _unwrap(payload: Any, envelope_key: str) -> list:
    if isinstance(payload, list):
        return payload
    if isinstance(payload, dict):
        for key in (envelope_key, "data", "items"):
            rows = payload.get(key)
            if isinstance(rows, list):
                return rows
    raise ReferenceDataError(f"expected a list or an object with {envelope_key!r}")


def _decode_rows(payload: Any, envelope_key: str, decode_row: Callable[[dict], Any]) -> list:
    rows = _unwrap(payload, envelope_key)
    decoded = []
    for index, row in enumerate(rows):
        if not isinstance(row, dict):
            raise ReferenceDataError(f"{envelope_key}[{index}] is not an object")
        try:
            decoded.append(decode_row(row))
        except ReferenceDataError as e:
            raise ReferenceDataError(f"{envelope_key}[{index}]: {e}")
    return decoded


# -----------------------------------------------------------------------------
# Per-endpoint decoders
# -----------------------------------------------------------------------------

def _decode_product(row: dict) -> UpstreamProduct:
    external_id = str(_field(row, "id"))
    try:
        price = to_decimal(_field(row, "price", "unit_price"))
    except MoneyError as e:
        raise ReferenceDataError(f"price: {e}")
    stock = _number(_field(row, "current_stock", "stock_quantity", "currentStock", default=0, required=False), "current_stock")
    return UpstreamProduct(
        external_id=external_id,
        sku=_text(row.get("sku")) or f"EXT-{external_id}",
        name=_text(_field(row, "name")) or f"Product {external_id}",
        price=price,
        current_stock=max(int(stock), 0),
        category=_text(row.get("category")) or "General",
    )


def decode_products(payload: Any) -> list[UpstreamProduct]:
    return _decode_rows(payload, "products", _decode_product)


def _decode_customer(row: dict) -> UpstreamCustomer:
    return UpstreamCustomer(
        external_id=str(_field(row, "id")),
        name=_text(_field(row, "name")) or "Unnamed customer",
        email=_text(row.get("email")),
        phone=_text(row.get("phone")),
        address=_text(row.get("address")),
    )


def decode_customers(payload: Any) -> list[UpstreamCustomer]:
    return _decode_rows(payload, "customers", _decode_customer)


def _decode_material(row: dict) -> UpstreamMaterial:
    return UpstreamMaterial(
        external_id=str(_field(row, "id")),
        name=_text(_field(row, "name")) or "Unnamed material",
        current_stock=max(_number(_field(row, "currentStock", "current_stock", required=False, default=0), "currentStock"), 0.0),
        unit=_text(row.get("unit")) or "unit",
        cost_per_unit=_number(_field(row, "costPerUnit", "cost_per_unit", required=False, default=0), "costPerUnit"),
        reorder_level=_number(_field(row, "reorderLevel", "reorder_level", required=False, default=0), "reorderLevel"),
        supplier=_text(row.get("supplier")),
        category=_text(row.get("category")) or "General",
    )


def decode_raw_materials(payload: Any) -> list[UpstreamMaterial]:
    return _decode_rows(payload, "materials", _decode_material)


def _decode_recipe_material(row: dict) -> UpstreamRecipeMaterial:
    return UpstreamRecipeMaterial(
        material_external_id=str(_field(row, "materialId", "material_id")),
        material_name=_text(_field(row, "materialName", "material_name", required=False)) or "",
        required_quantity=_number(_field(row, "requiredQuantity", "required_quantity"), "requiredQuantity"),
        unit=_text(row.get("unit")) or "unit",
        wastage_percent=_number(_field(row, "wastagePercent", "wastage_percent", required=False, default=0), "wastagePercent"),
    )


def _decode_recipe(row: dict) -> UpstreamRecipe:
    materials = row.get("materials") or []
    if not isinstance(materials, list):
        raise ReferenceDataError("materials must be a list")
    return UpstreamRecipe(
        product_external_id=str(_field(row, "id")),
        name=_text(_field(row, "name")) or "",
        estimated_time_hours=_number(_field(row, "estimatedTime", "estimated_time_hours", required=False, default=1), "estimatedTime"),
        complexity=(_text(row.get("complexity")) or "Medium").capitalize(),
        materials=tuple(_decode_recipe_material(m) for m in materials if isinstance(m, dict)),
    )


def decode_recipes(payload: Any) -> list[UpstreamRecipe]:
    return _decode_rows(payload, "products", _decode_recipe)


# -----------------------------------------------------------------------------
# Client
# -----------------------------------------------------------------------------

SOURCES: dict[str, tuple[str, Callable[[Any], list]]] = {
    "products": ("/products", decode_products),
    "customers": ("/customers", decode_customers),
    "raw_materials": ("/production-calculator/raw-materials", decode_raw_materials),
    "recipes": ("/production-calculator/products", decode_recipes),
}


@dataclass
class FetchResult:
    generation: int
    products: list[UpstreamProduct] = field(default_factory=list)
    customers: list[UpstreamCustomer] = field(default_factory=list)
    raw_materials: list[UpstreamMaterial] = field(default_factory=list)
    recipes: list[UpstreamRecipe] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.warnings


class UpstreamClient:
    """
    httpx client for the legacy backend's listing endpoints.

    Pass `transport` (e.g. httpx.MockTransport) to run without a network.
    """

    _generations = itertools.count(1)
    _generation_lock = threading.Lock()

    def __init__(self, base_url: str, *, timeout: float = 10.0, transport: httpx.BaseTransport | None = None):
        self._client = httpx.Client(base_url=base_url.rstrip("/"), timeout=timeout, transport=transport)

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()

    def close(self) -> None:
        self._client.close()

    def _next_generation(self) -> int:
        with self._generation_lock:
            return next(self._generations)

    def fetch(self, source: str) -> list:
        """Fetch and decode one source; raises on transport or schema errors."""
        path, decoder = SOURCES[source]
        response = self._client.get(path)
        response.raise_for_status()
        return decoder(response.json())

    def fetch_all(self, sources=None) -> FetchResult:
        result = FetchResult(generation=self._next_generation())
        for source in SOURCES if sources is None else sources:
            try:
                setattr(result, source, self.fetch(source))
            except (httpx.HTTPError, ReferenceDataError, ValueError) as e:
                logger.warning("Reference data fetch failed for %s: %s", source, e)
                result.warnings.append(f"{source}: {e}")
        return result


class ReferenceSnapshot:
    """Latest applied FetchResult; stale generations are discarded."""

    def __init__(self):
        self._lock = threading.Lock()
        self._current: FetchResult | None = None

    @property
    def current(self) -> FetchResult | None:
        return self._current

    def apply(self, result: FetchResult) -> bool:
        with self._lock:
            if self._current is not None and result.generation <= self._current.generation:
                logger.info(
                    "Discarding reference data generation %s (have %s)",
                    result.generation, self._current.generation,
                )
                return False
            self._current = result
            return True
