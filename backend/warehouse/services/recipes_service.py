"""
Production planning against the database.

Loads recipes and raw-material stock into the plain objects the feasibility
calculator works on, and manages production batches and the raw-material
analytics shown on the planning dashboard.
"""

from __future__ import annotations

from datetime import date

from ..extensions import db
from ..models import Product, ProductRecipe, ProductionBatch, RawMaterial, RecipeMaterial
from ..validation import ConflictError
from .document_service import next_document_number
from .production_service import (
    InvalidQuantity,
    MaterialRequirement,
    ProductionCalculation,
    ProductionError,
    ProductRecipe as PlanningRecipe,
    RecipeNotFound,
    calculate_production,
)
from .stock_ledger import MaterialLedger, MaterialStock

BATCH_STATUSES = {"PLANNED", "IN_PROGRESS", "COMPLETED", "ON_HOLD"}


class BatchNotFound(ProductionError):
    """No production batch with the given id."""


def list_raw_materials() -> list[dict]:
    materials = (
        db.session.query(RawMaterial)
        .filter(RawMaterial.is_active.is_(True))
        .order_by(RawMaterial.name.asc())
        .all()
    )
    return [m.to_dict() for m in materials]


def _active_recipe_row(product_id: int) -> ProductRecipe | None:
    return (
        db.session.query(ProductRecipe)
        .join(Product, Product.id == ProductRecipe.product_id)
        .filter(
            ProductRecipe.product_id == product_id,
            ProductRecipe.is_active.is_(True),
            Product.is_active.is_(True),
        )
        .order_by(ProductRecipe.id.desc())
        .first()
    )


def list_recipes() -> list[dict]:
    recipes = (
        db.session.query(ProductRecipe)
        .join(Product, Product.id == ProductRecipe.product_id)
        .filter(ProductRecipe.is_active.is_(True), Product.is_active.is_(True))
        .order_by(Product.name.asc())
        .all()
    )
    return [r.to_dict() for r in recipes]


def to_planning_recipe(row: ProductRecipe) -> PlanningRecipe:
    """The calculator keys recipes by product id."""
    return PlanningRecipe(
        id=row.product_id,
        name=row.product.name,
        materials=tuple(
            MaterialRequirement(
                material_id=m.material_id,
                material_name=m.material.name,
                required_quantity_per_unit=m.required_quantity,
                unit=m.material.unit,
                wastage_percent=m.wastage_percent or 0.0,
            )
            for m in row.materials
            # Deleted materials drop out; inactive ones read as zero stock
            if m.material is not None
        ),
        complexity=row.complexity,
        estimated_time_hours=row.estimated_time_hours or 1.0,
    )


def load_recipe(product_id: int) -> PlanningRecipe:
    row = _active_recipe_row(product_id)
    if row is None:
        raise RecipeNotFound(
            "No active recipe found for this product",
            details={"product_id": product_id},
        )
    return to_planning_recipe(row)


def load_material_ledger(material_ids=None) -> MaterialLedger:
    query = db.session.query(RawMaterial).filter(RawMaterial.is_active.is_(True))
    if material_ids is not None:
        ids = list(material_ids)
        if not ids:
            return MaterialLedger()
        query = query.filter(RawMaterial.id.in_(ids))
    return MaterialLedger(
        MaterialStock(
            material_id=m.id,
            name=m.name,
            available_quantity=m.current_stock or 0.0,
            unit=m.unit,
            cost_per_unit=m.cost_per_unit or 0.0,
        )
        for m in query.all()
    )


def calculate_for_product(product_id: int, requested_quantity: int) -> ProductionCalculation:
    recipe = load_recipe(product_id)
    ledger = load_material_ledger(m.material_id for m in recipe.materials)
    return calculate_production(recipe, requested_quantity, ledger)


def list_batches(limit: int = 20) -> list[dict]:
    batches = (
        db.session.query(ProductionBatch)
        .order_by(ProductionBatch.created_at.desc(), ProductionBatch.id.desc())
        .limit(limit)
        .all()
    )
    result = []
    for batch in batches:
        data = batch.to_dict()
        recipe = to_planning_recipe(batch.recipe)
        ledger = load_material_ledger(m.material_id for m in recipe.materials)
        current = calculate_production(recipe, batch.planned_quantity, ledger)
        data["materials"] = [m.to_dict() for m in current.material_breakdown]
        data["feasible_now"] = current.feasible
        result.append(data)
    return result


def create_batch(
    *,
    product_id: int,
    quantity: int,
    start_date: date | None = None,
    estimated_completion_date: date | None = None,
    notes: str | None = None,
) -> ProductionBatch:
    """
    Plan a production batch for the product's active recipe.

    The feasibility result at planning time is stored with the batch; an
    infeasible batch is still accepted so materials can be ordered for it.
    """
    row = _active_recipe_row(product_id)
    if row is None:
        raise RecipeNotFound(
            "No active recipe found for this product",
            details={"product_id": product_id},
        )

    recipe = to_planning_recipe(row)
    ledger = load_material_ledger(m.material_id for m in recipe.materials)
    calculation = calculate_production(recipe, quantity, ledger)

    start = start_date or date.today()
    if estimated_completion_date is not None and estimated_completion_date < start:
        raise ProductionError(
            "Estimated completion cannot be before start date",
            details={
                "start_date": start.isoformat(),
                "estimated_completion_date": estimated_completion_date.isoformat(),
            },
        )

    batch = ProductionBatch(
        batch_number=next_document_number(document_type="BATCH", prefix="BATCH"),
        product_id=product_id,
        recipe_id=row.id,
        planned_quantity=quantity,
        status="PLANNED",
        start_date=start,
        estimated_completion_date=estimated_completion_date,
        total_cost=calculation.total_cost,
        feasible_at_planning=calculation.feasible,
        notes=(notes or "").strip() or None,
    )
    db.session.add(batch)
    db.session.commit()
    return batch


def update_batch_status(batch_id: int, status: str, progress: float | None = None) -> ProductionBatch:
    status = (status or "").upper()
    if status not in BATCH_STATUSES:
        raise ProductionError(f"Invalid status: {status}", details={"allowed": sorted(BATCH_STATUSES)})

    batch = db.session.get(ProductionBatch, batch_id)
    if batch is None:
        raise BatchNotFound("Production batch not found", details={"batch_id": batch_id})

    if progress is not None:
        if not 0 <= progress <= 100:
            raise InvalidQuantity("progress must be between 0 and 100")
        batch.progress_percent = progress
    if status == "COMPLETED":
        batch.progress_percent = 100.0

    batch.status = status
    db.session.commit()
    return batch


def inventory_analytics() -> dict:
    """Raw-material stock levels, value by category and restock needs."""
    materials = (
        db.session.query(RawMaterial)
        .filter(RawMaterial.is_active.is_(True))
        .order_by(RawMaterial.name.asc())
        .all()
    )

    categories: dict[str, dict] = {}
    total_value = 0.0
    low_stock = 0
    well_stocked = 0
    restock_investment = 0.0

    for m in materials:
        value = m.current_stock * m.cost_per_unit
        total_value += value
        if m.current_stock <= m.reorder_level:
            low_stock += 1
        if m.current_stock > m.reorder_level * 2:
            well_stocked += 1
        restock_investment += max(0.0, m.reorder_level - m.current_stock) * m.cost_per_unit

        bucket = categories.setdefault(m.category, {"name": m.category, "value": 0.0, "item_count": 0, "stock_sum": 0.0})
        bucket["value"] += value
        bucket["item_count"] += 1
        bucket["stock_sum"] += m.current_stock

    return {
        "stock_analysis": [
            {
                "name": m.name,
                "current": m.current_stock,
                "reorder": m.reorder_level,
                "cost": m.cost_per_unit,
                "category": m.category,
            }
            for m in materials
        ],
        "category_distribution": [
            {
                "name": b["name"],
                "value": round(b["value"], 2),
                "item_count": b["item_count"],
                "avg_stock": round(b["stock_sum"] / b["item_count"], 2),
            }
            for b in sorted(categories.values(), key=lambda b: b["value"], reverse=True)
        ],
        "summary": {
            "total_inventory_value": round(total_value, 2),
            "low_stock_count": low_stock,
            "well_stocked_count": well_stocked,
            "total_materials": len(materials),
            "restock_investment": round(restock_investment, 2),
        },
    }


def add_recipe(
    *,
    product_id: int,
    materials: list[dict],
    estimated_time_hours: float = 1.0,
    complexity: str = "Medium",
    batch_size: int = 1,
) -> ProductRecipe:
    """
    Create the active recipe for a product, deactivating any previous one.

    materials: [{"material_id": int, "required_quantity": float, "wastage_percent": float}]
    """
    product = db.session.get(Product, product_id)
    if product is None:
        raise RecipeNotFound("Product not found", details={"product_id": product_id})

    material_ids = {item["material_id"] for item in materials}
    known = {
        row.id
        for row in db.session.query(RawMaterial.id).filter(RawMaterial.id.in_(material_ids))
    }
    unknown = sorted(material_ids - known)
    if unknown:
        raise ProductionError("Unknown raw materials", details={"material_ids": unknown})
    if len(material_ids) != len(materials):
        raise ProductionError("Each raw material may appear once per recipe")

    db.session.query(ProductRecipe).filter_by(product_id=product_id, is_active=True).update(
        {"is_active": False}
    )

    recipe = ProductRecipe(
        product_id=product_id,
        estimated_time_hours=estimated_time_hours,
        complexity=complexity,
        batch_size=batch_size,
        is_active=True,
    )
    for item in materials:
        recipe.materials.append(RecipeMaterial(
            material_id=item["material_id"],
            required_quantity=float(item["required_quantity"]),
            wastage_percent=float(item.get("wastage_percent") or 0.0),
        ))
    db.session.add(recipe)
    db.session.commit()
    return recipe


def create_raw_material(*, patch: dict) -> RawMaterial:
    """Create a raw material from a validated patch dict; code must be unique."""
    code = patch.get("code")
    if code and db.session.query(RawMaterial).filter_by(code=code).first():
        raise ConflictError(f"Material code already exists: {code}")

    material = RawMaterial(**patch)
    db.session.add(material)
    db.session.commit()
    return material
