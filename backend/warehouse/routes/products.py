# Overview: Flask API routes for the product catalog and stock summaries.

from flask import Blueprint, request, current_app
from ..models import Product
from ..services import products_service
from ..services.products_service import ProductNotFound
from ..validation import (
    ModelValidationPolicy,
    validate_payload,
    enforce_rules_product,
    ValidationError,
    ConflictError,
)

PRODUCT_POLICY = ModelValidationPolicy(
    writable_fields={"sku", "name", "category", "description", "price_cents", "current_stock", "reorder_level", "is_active"},
    required_on_create={"sku", "name", "price_cents"},
)

products_bp = Blueprint("products", __name__, url_prefix="/api/products")


@products_bp.get("")
def list_products():
    """
    List active products.

    Query params:
    - category: str (optional)
    - search: str (optional) - matches name or SKU
    - page: int (optional) - page number (1-indexed). If omitted, returns all items.
    - per_page: int (optional) - items per page (default 20, max 100)
    """
    return products_service.list_products(
        category=request.args.get("category"),
        search=request.args.get("search"),
        page=request.args.get("page", type=int),
        per_page=request.args.get("per_page", type=int),
    )


@products_bp.post("")
def create_product_route():
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_POLICY, partial=False)
        enforce_rules_product(patch)
    except ValidationError as e:
        return {"error": str(e)}, 400

    try:
        created = products_service.create_product(patch=patch)
    except ConflictError as e:
        return {"error": str(e)}, 409

    current_app.logger.info("Created product %s (%s)", created["id"], created["sku"])
    return created, 201


@products_bp.get("/<int:product_id>")
def get_product_route(product_id: int):
    try:
        return products_service.get_product(product_id).to_dict()
    except ProductNotFound:
        return {"error": "Product not found"}, 404


@products_bp.get("/low-stock")
def low_stock_route():
    """Products at or below their reorder level."""
    threshold = request.args.get("threshold", type=int)
    if threshold is None:
        threshold = current_app.config["LOW_STOCK_THRESHOLD"]
    items = products_service.list_low_stock(threshold)
    return {"items": items, "count": len(items), "threshold": threshold}


@products_bp.get("/stock-summary")
def stock_summary_route():
    return products_service.stock_summary(current_app.config["LOW_STOCK_THRESHOLD"])
