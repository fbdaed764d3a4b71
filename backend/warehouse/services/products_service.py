# backend/warehouse/services/products_service.py
"""
Products Service

Catalog listing/creation plus the two read models built from products:
the billing StockLedger and the stock summary (low-stock alerts, value by
category).
"""
from __future__ import annotations

from sqlalchemy import func, or_

from ..extensions import db
from ..models import Product
from ..money import from_cents, as_number
from ..validation import ConflictError
from .pagination import paginate
from .stock_ledger import StockEntry, StockLedger

PRODUCT_MUTABLE_FIELDS = {
    "sku", "name", "category", "description", "price_cents",
    "current_stock", "reorder_level", "is_active",
}


class ProductNotFound(LookupError):
    """No active product with the given id."""


def apply_product_patch(p: Product, patch: dict) -> None:
    for k, v in patch.items():
        if k not in PRODUCT_MUTABLE_FIELDS:
            continue
        setattr(p, k, v)


def list_products(
    *,
    category: str | None = None,
    search: str | None = None,
    include_inactive: bool = False,
    page: int | None = None,
    per_page: int | None = None,
) -> dict:
    """
    Product listing with optional category/name filter and pagination.

    Returns:
        Dict with 'items', 'count', and pagination metadata if paginated.
    """
    query = db.session.query(Product)
    if not include_inactive:
        query = query.filter(Product.is_active.is_(True))
    if category:
        query = query.filter(Product.category == category)
    if search:
        pattern = f"%{search.strip()}%"
        query = query.filter(or_(Product.name.ilike(pattern), Product.sku.ilike(pattern)))

    query = query.order_by(Product.name.asc(), Product.id.asc())
    return paginate(query, page, per_page, lambda p: p.to_dict())


def get_product(product_id: int) -> Product:
    product = db.session.get(Product, product_id)
    if product is None or not product.is_active:
        raise ProductNotFound(f"Product {product_id} not found")
    return product


def create_product(*, patch: dict) -> dict:
    """Create product using a validated patch dict."""
    sku = patch.get("sku")
    if sku and db.session.query(Product).filter_by(sku=sku).first():
        raise ConflictError(f"SKU already exists: {sku}")

    product = Product()
    apply_product_patch(product, patch)
    db.session.add(product)
    db.session.commit()
    return product.to_dict()


def to_stock_entry(product: Product) -> StockEntry:
    return StockEntry(
        id=product.id,
        name=product.name,
        unit_price=product.price,
        available_quantity=product.current_stock or 0,
        category=product.category or "General",
    )


def load_stock_ledger(product_ids=None) -> StockLedger:
    """
    Snapshot current stock for billing.

    product_ids narrows the snapshot to the items a cart touches.
    """
    query = db.session.query(Product).filter(Product.is_active.is_(True))
    if product_ids is not None:
        ids = list(product_ids)
        if not ids:
            return StockLedger()
        query = query.filter(Product.id.in_(ids))
    return StockLedger(to_stock_entry(p) for p in query.all())


def list_low_stock(threshold: int) -> list[dict]:
    """
    Active products at or below their reorder level (or `threshold` when a
    product has no reorder level set), lowest stock first.
    """
    limit_expr = func.coalesce(func.nullif(Product.reorder_level, 0), threshold)
    rows = (
        db.session.query(Product)
        .filter(Product.is_active.is_(True))
        .filter(Product.current_stock <= limit_expr)
        .order_by(Product.current_stock.asc(), Product.name.asc())
        .all()
    )
    items = []
    for p in rows:
        data = p.to_dict()
        data["alert_level"] = "OUT_OF_STOCK" if p.current_stock == 0 else "LOW_STOCK"
        data["reorder_quantity"] = max((p.reorder_level or threshold) * 2 - p.current_stock, 0)
        items.append(data)
    return items


def stock_summary(threshold: int) -> dict:
    """Totals over the active catalog, with a per-category breakdown."""
    products = db.session.query(Product).filter(Product.is_active.is_(True)).all()

    categories: dict[str, dict] = {}
    total_units = 0
    total_value_cents = 0
    low_stock = 0
    out_of_stock = 0

    for p in products:
        stock = p.current_stock or 0
        value_cents = stock * (p.price_cents or 0)
        total_units += stock
        total_value_cents += value_cents
        if stock == 0:
            out_of_stock += 1
        elif stock <= (p.reorder_level or threshold):
            low_stock += 1

        bucket = categories.setdefault(p.category or "General", {
            "category": p.category or "General",
            "product_count": 0,
            "total_units": 0,
            "value_cents": 0,
        })
        bucket["product_count"] += 1
        bucket["total_units"] += stock
        bucket["value_cents"] += value_cents

    return {
        "product_count": len(products),
        "total_units": total_units,
        "total_value": as_number(from_cents(total_value_cents)),
        "low_stock_count": low_stock,
        "out_of_stock_count": out_of_stock,
        "categories": [
            {
                "category": b["category"],
                "product_count": b["product_count"],
                "total_units": b["total_units"],
                "total_value": as_number(from_cents(b["value_cents"])),
            }
            for b in sorted(categories.values(), key=lambda b: b["value_cents"], reverse=True)
        ],
    }
