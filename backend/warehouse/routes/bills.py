# Overview: Flask API routes for generating, listing and exporting bills.

from flask import Blueprint, request, jsonify, g, current_app, Response

from ..decorators import require_work_session
from ..services import bills_service
from ..services.billing_service import BillError
from ..services.bills_service import BillNotFound, StockConflict
from ..services.customers_service import CustomerNotFound
from ..validation import parse_positive_int, parse_bool, ValidationError
from ..time_utils import utcnow

bills_bp = Blueprint("bills", __name__, url_prefix="/api/bills")


@bills_bp.post("")
@require_work_session
def create_bill_route():
    """
    Generate a bill from the session cart and save it.

    Body:
    - customer_id: int (required)
    - discount_percent: number (optional, default 0)
    - tax_enabled: bool (optional, default true)
    - notes: str (optional)

    Stock is decremented in the same transaction. Afterwards the cart is
    kept or emptied according to CART_POLICY_AFTER_BILL.
    """
    data = request.get_json(silent=True) or {}

    try:
        customer_id = data.get("customer_id")
        if customer_id is not None:
            customer_id = parse_positive_int(customer_id, "customer_id")
        tax_enabled = parse_bool(data.get("tax_enabled"), "tax_enabled", True)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400

    try:
        record, bill = bills_service.generate_bill(
            g.work_session,
            customer_id=customer_id,
            discount_percent=data.get("discount_percent", 0),
            tax_enabled=tax_enabled,
            notes=data.get("notes"),
            tax_rate=current_app.config["TAX_RATE_PERCENT"],
            clamp=current_app.config["CLAMP_DISCOUNT"],
            cart_policy=current_app.config["CART_POLICY_AFTER_BILL"],
        )
    except CustomerNotFound:
        return jsonify({"error": "Customer not found"}), 404
    except StockConflict as e:
        return jsonify({"error": str(e), "details": e.details}), 409
    except BillError as e:
        return jsonify({"error": str(e), "details": e.details}), 400
    except ValueError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to generate bill")
        return jsonify({"error": "Internal server error"}), 500

    current_app.logger.info(
        "Saved bill %s for customer %s (total %s)",
        bill.bill_number, record.customer_id, record.grand_total,
    )
    return jsonify({
        "bill": bill.to_dict(include_lines=True),
        "payload": record.to_payload(),
        "cart": g.work_session.cart.to_dict(),
    }), 201


@bills_bp.get("")
def list_bills_route():
    """
    List bills, newest first.

    Query params:
    - customer_id: int (optional)
    - page: int (optional) - page number (1-indexed). If omitted, returns all items.
    - per_page: int (optional) - items per page (default 20, max 100)
    """
    return jsonify(bills_service.list_bills(
        customer_id=request.args.get("customer_id", type=int),
        page=request.args.get("page", type=int),
        per_page=request.args.get("per_page", type=int),
    )), 200


@bills_bp.get("/<int:bill_id>")
def get_bill_route(bill_id: int):
    try:
        bill = bills_service.get_bill(bill_id)
    except BillNotFound:
        return jsonify({"error": "Bill not found"}), 404
    return jsonify({"bill": bill.to_dict(include_lines=True)}), 200


@bills_bp.get("/export.csv")
def export_bills_route():
    csv_text = bills_service.export_bills_csv(
        customer_id=request.args.get("customer_id", type=int),
    )
    filename = f"bills-{utcnow():%Y%m%d}.csv"
    return Response(
        csv_text,
        mimetype="text/csv",
        headers={"Content-Disposition": f"attachment; filename={filename}"},
    )
