# Overview: Flask API routes for work sessions, the session cart and its calculation history.

from flask import Blueprint, request, jsonify, g, current_app

from ..decorators import require_work_session, get_registry
from ..money import MoneyError, to_decimal
from ..services import products_service
from ..services.billing_service import calculate_totals
from ..services.cart_service import CartError, CartLineNotFound
from ..validation import parse_int, parse_positive_int, parse_bool, ValidationError

sessions_bp = Blueprint("sessions", __name__, url_prefix="/api/sessions")


def _totals_options():
    """Discount percent and tax flag from the query string."""
    discount = to_decimal(request.args.get("discount_percent", 0))
    tax_enabled = parse_bool(request.args.get("tax_enabled"), "tax_enabled", True)
    return discount, tax_enabled


def _cart_response(work_session, options):
    """Cart lines plus live totals."""
    discount, tax_enabled = options
    cart = work_session.cart
    totals = calculate_totals(
        cart.lines,
        discount,
        tax_enabled,
        tax_rate=current_app.config["TAX_RATE_PERCENT"],
        clamp=current_app.config["CLAMP_DISCOUNT"],
    )
    return {**cart.to_dict(), "totals": totals.to_dict()}


@sessions_bp.post("")
def create_session_route():
    work_session = get_registry().create()
    current_app.logger.info("Opened work session")
    return jsonify({"session": work_session.to_dict()}), 201


@sessions_bp.delete("/current")
@require_work_session
def close_session_route():
    get_registry().close(g.work_session.token)
    return jsonify({"closed": True}), 200


@sessions_bp.get("/current")
@require_work_session
def get_session_route():
    return jsonify({"session": g.work_session.to_dict()}), 200


@sessions_bp.get("/current/cart")
@require_work_session
def get_cart_route():
    """
    Current cart with totals.

    Query params:
    - discount_percent: number (optional, default 0)
    - tax_enabled: bool (optional, default true)
    """
    try:
        options = _totals_options()
    except (ValidationError, MoneyError) as e:
        return jsonify({"error": str(e)}), 400

    with g.work_session.lock:
        return jsonify(_cart_response(g.work_session, options)), 200


@sessions_bp.post("/current/cart/items")
@require_work_session
def add_cart_item_route():
    """Add one unit of a product. Body: {"product_id": int}"""
    data = request.get_json(silent=True) or {}
    try:
        product_id = parse_positive_int(data.get("product_id"), "product_id")
        options = _totals_options()
    except (ValidationError, MoneyError) as e:
        return jsonify({"error": str(e)}), 400

    entry = products_service.load_stock_ledger([product_id]).get(product_id)
    if entry is None:
        return jsonify({"error": "Product not found"}), 404

    try:
        with g.work_session.lock:
            line = g.work_session.cart.add_item(entry)
            cart = _cart_response(g.work_session, options)
    except CartError as e:
        return jsonify({"error": str(e), "details": e.details}), 409
    except Exception:
        current_app.logger.exception("Failed to add cart item")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify({"line": line.to_dict(), "cart": cart}), 201


@sessions_bp.put("/current/cart/items/<int:product_id>")
@require_work_session
def set_cart_quantity_route(product_id: int):
    """
    Set a line's quantity. Body: {"quantity": int}

    Quantity 0 or below removes the line. Stock is re-read before the check.
    """
    data = request.get_json(silent=True) or {}
    try:
        quantity = parse_int(data.get("quantity"), "quantity")
        options = _totals_options()
    except (ValidationError, MoneyError) as e:
        return jsonify({"error": str(e)}), 400

    try:
        with g.work_session.lock:
            ledger = products_service.load_stock_ledger([product_id]) if quantity > 0 else None
            line = g.work_session.cart.set_quantity(product_id, quantity, ledger)
            cart = _cart_response(g.work_session, options)
    except CartLineNotFound as e:
        return jsonify({"error": str(e), "details": e.details}), 404
    except CartError as e:
        return jsonify({"error": str(e), "details": e.details}), 409
    except Exception:
        current_app.logger.exception("Failed to update cart quantity")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify({"line": line.to_dict() if line else None, "cart": cart}), 200


@sessions_bp.delete("/current/cart/items/<int:product_id>")
@require_work_session
def remove_cart_item_route(product_id: int):
    try:
        options = _totals_options()
    except (ValidationError, MoneyError) as e:
        return jsonify({"error": str(e)}), 400

    with g.work_session.lock:
        g.work_session.cart.remove_item(product_id)
        cart = _cart_response(g.work_session, options)
    return jsonify({"cart": cart}), 200


@sessions_bp.delete("/current/cart")
@require_work_session
def clear_cart_route():
    try:
        options = _totals_options()
    except (ValidationError, MoneyError) as e:
        return jsonify({"error": str(e)}), 400

    with g.work_session.lock:
        g.work_session.cart.clear()
        cart = _cart_response(g.work_session, options)
    return jsonify({"cart": cart}), 200


@sessions_bp.get("/current/calculations")
@require_work_session
def calculation_history_route():
    """Most recent production calculations, newest first."""
    history = g.work_session.history
    with g.work_session.lock:
        items = history.to_list()
    return jsonify({"items": items, "limit": history.limit}), 200
