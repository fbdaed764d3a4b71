# Overview: Customer listing, lookup and creation.

from __future__ import annotations

from sqlalchemy import or_

from ..extensions import db
from ..models import Customer
from ..validation import ConflictError
from .billing_service import CustomerRef


class CustomerNotFound(LookupError):
    """No active customer with the given id."""


def list_customers(search: str | None = None) -> dict:
    query = db.session.query(Customer).filter(Customer.is_active.is_(True))
    if search:
        pattern = f"%{search.strip()}%"
        query = query.filter(or_(
            Customer.name.ilike(pattern),
            Customer.email.ilike(pattern),
            Customer.phone.ilike(pattern),
        ))
    customers = query.order_by(Customer.name.asc(), Customer.id.asc()).all()
    return {"items": [c.to_dict() for c in customers], "count": len(customers)}


def get_customer(customer_id: int) -> Customer:
    customer = db.session.get(Customer, customer_id)
    if customer is None or not customer.is_active:
        raise CustomerNotFound(f"Customer {customer_id} not found")
    return customer


def customer_ref(customer_id: int | None) -> CustomerRef | None:
    """The billing core's view of a selected customer; None when unselected."""
    if customer_id is None:
        return None
    customer = get_customer(customer_id)
    return CustomerRef(id=customer.id, name=customer.name)


def create_customer(*, patch: dict) -> dict:
    email = patch.get("email")
    if email and db.session.query(Customer).filter_by(email=email).first():
        raise ConflictError(f"Customer email already exists: {email}")

    customer = Customer(**patch)
    db.session.add(customer)
    db.session.commit()
    return customer.to_dict()
