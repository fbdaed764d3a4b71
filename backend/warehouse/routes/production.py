# Overview: Flask API routes for production planning: recipes, feasibility, batches, analytics.

from flask import Blueprint, request, jsonify, g, current_app

from ..decorators import optional_work_session
from ..services import recipes_service
from ..services.production_service import ProductionError, RecipeNotFound
from ..services.recipes_service import BatchNotFound
from ..models import RawMaterial
from ..validation import (
    ModelValidationPolicy,
    validate_payload,
    enforce_rules_raw_material,
    parse_positive_int,
    ValidationError,
    ConflictError,
)
from ..time_utils import parse_iso_date

RAW_MATERIAL_POLICY = ModelValidationPolicy(
    writable_fields={"code", "name", "category", "current_stock", "unit", "cost_per_unit", "reorder_level", "supplier_name"},
    required_on_create={"code", "name", "unit"},
)

production_bp = Blueprint("production", __name__, url_prefix="/api/production")


@production_bp.get("/raw-materials")
def list_raw_materials_route():
    return jsonify(recipes_service.list_raw_materials()), 200


@production_bp.post("/raw-materials")
def create_raw_material_route():
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=RawMaterial, payload=payload, policy=RAW_MATERIAL_POLICY, partial=False)
        enforce_rules_raw_material(patch)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400

    try:
        material = recipes_service.create_raw_material(patch=patch)
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409

    return jsonify(material.to_dict()), 201


@production_bp.get("/recipes")
def list_recipes_route():
    return jsonify(recipes_service.list_recipes()), 200


@production_bp.post("/recipes")
def create_recipe_route():
    """
    Set a product's active recipe. Any previous recipe is deactivated.

    Body:
    - product_id: int (required)
    - materials: [{"material_id": int, "required_quantity": number, "wastage_percent": number}]
    - estimated_time_hours: number (optional, default 1)
    - complexity: Low | Medium | High (optional)
    - batch_size: int (optional, default 1)
    """
    data = request.get_json(silent=True) or {}
    try:
        product_id = parse_positive_int(data.get("product_id"), "product_id")
        materials = data.get("materials") or []
        if not isinstance(materials, list):
            raise ValidationError("materials must be a list")
        cleaned = []
        for item in materials:
            if not isinstance(item, dict):
                raise ValidationError("each material must be an object")
            required = item.get("required_quantity")
            wastage = item.get("wastage_percent", 0) or 0
            if isinstance(required, bool) or not isinstance(required, (int, float)) or required < 0:
                raise ValidationError("required_quantity must be a number >= 0")
            if isinstance(wastage, bool) or not isinstance(wastage, (int, float)) or wastage < 0:
                raise ValidationError("wastage_percent must be a number >= 0")
            cleaned.append({
                "material_id": parse_positive_int(item.get("material_id"), "material_id"),
                "required_quantity": required,
                "wastage_percent": wastage,
            })
        hours = data.get("estimated_time_hours", 1.0)
        if isinstance(hours, bool) or not isinstance(hours, (int, float)) or hours < 0:
            raise ValidationError("estimated_time_hours must be a number >= 0")
        batch_size = parse_positive_int(data.get("batch_size", 1), "batch_size")
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400

    try:
        recipe = recipes_service.add_recipe(
            product_id=product_id,
            materials=cleaned,
            estimated_time_hours=float(hours),
            complexity=(data.get("complexity") or "Medium").capitalize(),
            batch_size=batch_size,
        )
    except RecipeNotFound as e:
        return jsonify({"error": str(e), "details": e.details}), 404
    except ProductionError as e:
        return jsonify({"error": str(e), "details": e.details}), 400

    return jsonify(recipe.to_dict()), 201


@production_bp.post("/calculate")
@optional_work_session
def calculate_route():
    """
    Production feasibility for a product's active recipe.

    Body: {"product_id": int, "requested_quantity": int}

    With an X-Session-Id header the result is added to that session's
    calculation history.
    """
    data = request.get_json(silent=True) or {}
    try:
        product_id = parse_positive_int(data.get("product_id"), "product_id")
        requested_quantity = parse_positive_int(data.get("requested_quantity"), "requested_quantity")
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400

    try:
        calculation = recipes_service.calculate_for_product(product_id, requested_quantity)
    except RecipeNotFound as e:
        return jsonify({"error": str(e), "details": e.details}), 404
    except ProductionError as e:
        return jsonify({"error": str(e), "details": e.details}), 400
    except Exception:
        current_app.logger.exception("Failed to calculate production")
        return jsonify({"error": "Internal server error"}), 500

    if g.work_session is not None:
        with g.work_session.lock:
            g.work_session.history.record(calculation)

    return jsonify({"calculation": calculation.to_dict()}), 200


@production_bp.get("/batches")
def list_batches_route():
    limit = request.args.get("limit", default=20, type=int)
    return jsonify(recipes_service.list_batches(limit=max(1, min(limit, 100)))), 200


@production_bp.post("/batches")
def create_batch_route():
    """
    Plan a production batch.

    Body:
    - product_id: int (required)
    - quantity: int (required)
    - start_date: YYYY-MM-DD (optional, default today)
    - estimated_completion: YYYY-MM-DD (optional)
    - notes: str (optional)
    """
    data = request.get_json(silent=True) or {}
    try:
        product_id = parse_positive_int(data.get("product_id"), "product_id")
        quantity = parse_positive_int(data.get("quantity"), "quantity")
        start_date = parse_iso_date(data.get("start_date"))
        completion = parse_iso_date(data.get("estimated_completion"))
    except (ValidationError, ValueError) as e:
        return jsonify({"error": str(e)}), 400

    try:
        batch = recipes_service.create_batch(
            product_id=product_id,
            quantity=quantity,
            start_date=start_date,
            estimated_completion_date=completion,
            notes=data.get("notes"),
        )
    except RecipeNotFound as e:
        return jsonify({"error": str(e), "details": e.details}), 404
    except ProductionError as e:
        return jsonify({"error": str(e), "details": e.details}), 400
    except Exception:
        current_app.logger.exception("Failed to create production batch")
        return jsonify({"error": "Internal server error"}), 500

    current_app.logger.info("Planned batch %s (%s x product %s)", batch.batch_number, quantity, product_id)
    return jsonify({"batch": batch.to_dict()}), 201


@production_bp.patch("/batches/<int:batch_id>")
def update_batch_route(batch_id: int):
    data = request.get_json(silent=True) or {}
    progress = data.get("progress")
    if progress is not None and (isinstance(progress, bool) or not isinstance(progress, (int, float))):
        return jsonify({"error": "progress must be a number"}), 400

    try:
        batch = recipes_service.update_batch_status(batch_id, data.get("status"), progress)
    except BatchNotFound as e:
        return jsonify({"error": str(e), "details": e.details}), 404
    except ProductionError as e:
        return jsonify({"error": str(e), "details": e.details}), 400

    return jsonify({"batch": batch.to_dict()}), 200


@production_bp.get("/analytics")
def analytics_route():
    return jsonify(recipes_service.inventory_analytics()), 200
