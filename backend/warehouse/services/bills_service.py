"""
Bill persistence.

Takes an immutable BillRecord from the builder and writes it as a Bill with
a sequential bill number, decrementing product stock in the same
transaction. Stock is re-checked here because the cart only validated
against the snapshot it was given.
"""

from __future__ import annotations

import csv
import io

from ..extensions import db
from ..models import Bill, BillLine, Product
from ..money import to_cents
from .billing_service import BillError, BillRecord, build_bill
from .concurrency import lock_for_update, run_with_retry
from .customers_service import customer_ref
from .document_service import next_document_number
from .pagination import paginate
from .session_service import WorkSession

CART_POLICY_RETAIN = "retain"
CART_POLICY_CLEAR = "clear"
CART_POLICIES = {CART_POLICY_RETAIN, CART_POLICY_CLEAR}


class BillNotFound(BillError):
    """No bill with the given id."""


class StockConflict(BillError):
    """Stock changed since the cart was built and no longer covers a line."""


def _check_and_decrement_stock(record: BillRecord) -> None:
    product_ids = [line.item_id for line in record.line_items]
    products = {
        p.id: p
        for p in lock_for_update(
            db.session.query(Product).filter(Product.id.in_(product_ids))
        ).all()
    }

    insufficient = []
    for line in record.line_items:
        product = products.get(line.item_id)
        on_hand = product.current_stock if product and product.is_active else 0
        if on_hand < line.quantity:
            insufficient.append({
                "product_id": line.item_id,
                "requested_quantity": line.quantity,
                "on_hand": on_hand,
            })

    if insufficient:
        raise StockConflict(
            "Insufficient stock to save bill",
            details={"items": insufficient},
        )

    for line in record.line_items:
        products[line.item_id].current_stock -= line.quantity


def save_bill(record: BillRecord) -> Bill:
    """Persist a built bill and decrement stock atomically."""
    def _op():
        _check_and_decrement_stock(record)

        totals = record.totals
        bill = Bill(
            bill_number=next_document_number(document_type="BILL", prefix="BILL"),
            draft_id=record.id,
            customer_id=record.customer_id,
            customer_name=record.customer_name,
            subtotal_cents=to_cents(totals.subtotal),
            discount_percent=float(totals.discount_percent),
            discount_cents=to_cents(totals.discount_amount),
            tax_enabled=totals.tax_enabled,
            tax_rate_percent=float(totals.tax_rate),
            tax_cents=to_cents(totals.tax_amount),
            total_cents=to_cents(totals.grand_total),
            notes=record.notes,
            created_at=record.created_at,
        )
        for position, line in enumerate(record.line_items, start=1):
            bill.lines.append(BillLine(
                product_id=line.item_id,
                position=position,
                name=line.name,
                quantity=line.quantity,
                unit_price_cents=to_cents(line.unit_price),
                line_total_cents=to_cents(line.line_total),
            ))

        db.session.add(bill)
        db.session.commit()
        return bill

    try:
        return run_with_retry(_op)
    except BillError:
        db.session.rollback()
        raise


def generate_bill(
    work_session: WorkSession,
    *,
    customer_id: int | None,
    discount_percent=0,
    tax_enabled: bool = True,
    notes: str | None = None,
    tax_rate,
    clamp: bool = True,
    cart_policy: str = CART_POLICY_RETAIN,
) -> tuple[BillRecord, Bill]:
    """
    Build a bill from the session cart, persist it, then apply the
    post-generation cart policy.
    """
    if cart_policy not in CART_POLICIES:
        raise ValueError(f"Unknown cart policy: {cart_policy}")

    with work_session.lock:
        record = build_bill(
            work_session.cart,
            customer_ref(customer_id),
            discount_percent,
            tax_enabled,
            notes,
            tax_rate=tax_rate,
            clamp=clamp,
        )
        bill = save_bill(record)
        if cart_policy == CART_POLICY_CLEAR:
            work_session.cart.clear()
    return record, bill


def list_bills(
    *,
    customer_id: int | None = None,
    page: int | None = None,
    per_page: int | None = None,
) -> dict:
    query = db.session.query(Bill)
    if customer_id is not None:
        query = query.filter(Bill.customer_id == customer_id)
    query = query.order_by(Bill.created_at.desc(), Bill.id.desc())

    return paginate(query, page, per_page, lambda b: b.to_dict())


def get_bill(bill_id: int) -> Bill:
    bill = db.session.get(Bill, bill_id)
    if bill is None:
        raise BillNotFound("Bill not found", details={"bill_id": bill_id})
    return bill


EXPORT_COLUMNS = [
    "bill_number", "created_at", "customer_id", "customer_name", "item_count",
    "subtotal", "discount_amount", "tax_amount", "total_amount", "notes",
]


def export_bills_csv(customer_id: int | None = None) -> str:
    """CSV of all bills (newest first), one row per bill."""
    bills = list_bills(customer_id=customer_id)["items"]

    buffer = io.StringIO()
    writer = csv.DictWriter(buffer, fieldnames=EXPORT_COLUMNS, extrasaction="ignore")
    writer.writeheader()
    for bill in bills:
        row = dict(bill)
        row["subtotal"] = f"{bill['subtotal']:.2f}"
        row["discount_amount"] = f"{bill['discount_amount']:.2f}"
        row["tax_amount"] = f"{bill['tax_amount']:.2f}"
        row["total_amount"] = f"{bill['total_amount']:.2f}"
        row["notes"] = bill["notes"] or ""
        writer.writerow(row)
    return buffer.getvalue()

