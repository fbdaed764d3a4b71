# Overview: Flask API routes for customers.

from flask import Blueprint, request
from ..models import Customer
from ..services import customers_service
from ..services.customers_service import CustomerNotFound
from ..validation import (
    ModelValidationPolicy,
    validate_payload,
    enforce_rules_customer,
    ValidationError,
    ConflictError,
)

CUSTOMER_POLICY = ModelValidationPolicy(
    writable_fields={"name", "email", "phone", "address"},
    required_on_create={"name"},
)

customers_bp = Blueprint("customers", __name__, url_prefix="/api/customers")


@customers_bp.get("")
def list_customers():
    return customers_service.list_customers(search=request.args.get("search"))


@customers_bp.post("")
def create_customer_route():
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=Customer, payload=payload, policy=CUSTOMER_POLICY, partial=False)
        enforce_rules_customer(patch)
    except ValidationError as e:
        return {"error": str(e)}, 400

    try:
        return customers_service.create_customer(patch=patch), 201
    except ConflictError as e:
        return {"error": str(e)}, 409


@customers_bp.get("/<int:customer_id>")
def get_customer_route(customer_id: int):
    try:
        return customers_service.get_customer(customer_id).to_dict()
    except CustomerNotFound:
        return {"error": "Customer not found"}, 404
