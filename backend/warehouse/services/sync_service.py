# Overview: Import decoded upstream reference data into the local database.

from __future__ import annotations

from dataclasses import dataclass, field

from ..extensions import db
from ..models import Customer, Product, ProductRecipe, RawMaterial, RecipeMaterial
from ..money import to_cents
from .reference_data import FetchResult


@dataclass
class SyncReport:
    created: dict[str, int] = field(default_factory=dict)
    updated: dict[str, int] = field(default_factory=dict)
    skipped: list[str] = field(default_factory=list)

    def bump(self, bucket: dict[str, int], kind: str) -> None:
        bucket[kind] = bucket.get(kind, 0) + 1

    def to_dict(self) -> dict:
        return {"created": self.created, "updated": self.updated, "skipped": self.skipped}


def _sync_products(result: FetchResult, report: SyncReport) -> dict[str, int]:
    """Upsert by SKU; returns upstream id -> local product id."""
    id_map: dict[str, int] = {}
    for item in result.products:
        product = db.session.query(Product).filter_by(sku=item.sku).first()
        if product is None:
            product = Product(sku=item.sku)
            db.session.add(product)
            report.bump(report.created, "products")
        else:
            report.bump(report.updated, "products")
        product.name = item.name
        product.category = item.category
        product.price_cents = to_cents(item.price)
        product.current_stock = item.current_stock
        product.is_active = True
        db.session.flush()
        id_map[item.external_id] = product.id
    return id_map


def _sync_customers(result: FetchResult, report: SyncReport) -> None:
    for item in result.customers:
        customer = None
        if item.email:
            customer = db.session.query(Customer).filter_by(email=item.email).first()
        if customer is None:
            customer = db.session.query(Customer).filter_by(name=item.name, phone=item.phone).first()
        if customer is None:
            customer = Customer(name=item.name)
            db.session.add(customer)
            report.bump(report.created, "customers")
        else:
            report.bump(report.updated, "customers")
        customer.name = item.name
        customer.email = item.email
        customer.phone = item.phone
        customer.address = item.address


def _sync_materials(result: FetchResult, report: SyncReport) -> dict[str, int]:
    """Upsert by code (the upstream id); returns upstream id -> local material id."""
    id_map: dict[str, int] = {}
    for item in result.raw_materials:
        material = db.session.query(RawMaterial).filter_by(code=item.external_id).first()
        if material is None:
            material = RawMaterial(code=item.external_id)
            db.session.add(material)
            report.bump(report.created, "raw_materials")
        else:
            report.bump(report.updated, "raw_materials")
        material.name = item.name
        material.category = item.category
        material.current_stock = item.current_stock
        material.unit = item.unit
        material.cost_per_unit = item.cost_per_unit
        material.reorder_level = item.reorder_level
        material.supplier_name = item.supplier
        material.is_active = True
        db.session.flush()
        id_map[item.external_id] = material.id
    return id_map


def _sync_recipes(result: FetchResult, report: SyncReport, product_ids: dict[str, int], material_ids: dict[str, int]) -> None:
    for item in result.recipes:
        product_id = product_ids.get(item.product_external_id)
        if product_id is None:
            report.skipped.append(f"recipe {item.name or item.product_external_id}: unknown product")
            continue

        db.session.query(ProductRecipe).filter_by(product_id=product_id, is_active=True).update(
            {"is_active": False}
        )
        recipe = ProductRecipe(
            product_id=product_id,
            estimated_time_hours=item.estimated_time_hours,
            complexity=item.complexity,
            is_active=True,
        )
        for m in item.materials:
            material_id = material_ids.get(m.material_external_id)
            if material_id is None:
                report.skipped.append(
                    f"recipe {item.name}: unknown material {m.material_name or m.material_external_id}"
                )
                continue
            recipe.materials.append(RecipeMaterial(
                material_id=material_id,
                required_quantity=m.required_quantity,
                wastage_percent=m.wastage_percent,
            ))
        db.session.add(recipe)
        report.bump(report.created, "recipes")


def import_reference_data(result: FetchResult) -> SyncReport:
    """
    Upsert everything a fetch produced in one transaction.

    Sources that failed upstream arrive as empty lists and leave the local
    rows untouched.
    """
    report = SyncReport()
    try:
        product_ids = _sync_products(result, report)
        _sync_customers(result, report)
        material_ids = _sync_materials(result, report)
        _sync_recipes(result, report, product_ids, material_ids)
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
    return report
