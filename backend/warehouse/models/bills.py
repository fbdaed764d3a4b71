from __future__ import annotations

from ..extensions import db
from ..money import from_cents, as_number
from ..time_utils import to_utc_z


class Bill(db.Model):
    """
    Persisted customer bill.

    A Bill is written once from a built bill record and never edited here.
    Totals are stored (not recomputed) so the document matches what the
    customer was shown at generation time.
    """
    __tablename__ = "bills"
    __table_args__ = (
        db.UniqueConstraint("bill_number", name="uq_bills_bill_number"),
        db.Index("ix_bills_customer_created", "customer_id", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    # Human-readable number (e.g., "BILL-000123")
    bill_number = db.Column(db.String(64), nullable=False)
    # Identifier assigned by the in-memory builder before persistence
    draft_id = db.Column(db.String(64), nullable=False, index=True)

    customer_id = db.Column(db.Integer, db.ForeignKey("customers.id"), nullable=False, index=True)
    customer_name = db.Column(db.String(255), nullable=False)

    status = db.Column(db.String(16), nullable=False, default="ISSUED", index=True)

    # All amounts in cents
    subtotal_cents = db.Column(db.Integer, nullable=False)
    discount_percent = db.Column(db.Numeric(5, 2, asdecimal=False), nullable=False, default=0)
    discount_cents = db.Column(db.Integer, nullable=False, default=0)
    tax_enabled = db.Column(db.Boolean, nullable=False, default=True)
    tax_rate_percent = db.Column(db.Numeric(5, 2, asdecimal=False), nullable=False, default=0)
    tax_cents = db.Column(db.Integer, nullable=False, default=0)
    total_cents = db.Column(db.Integer, nullable=False)

    notes = db.Column(db.Text, nullable=True)

    # Stamped by the builder, not the database
    created_at = db.Column(db.DateTime(timezone=True), nullable=False)

    customer = db.relationship("Customer", backref=db.backref("bills", lazy=True))
    lines = db.relationship(
        "BillLine",
        backref="bill",
        lazy=True,
        order_by="BillLine.position",
        cascade="all, delete-orphan",
    )

    def to_dict(self, include_lines: bool = False) -> dict:
        data = {
            "id": self.id,
            "bill_number": self.bill_number,
            "draft_id": self.draft_id,
            "customer_id": self.customer_id,
            "customer_name": self.customer_name,
            "status": self.status,
            "subtotal": as_number(from_cents(self.subtotal_cents)),
            "discount_percent": float(self.discount_percent or 0),
            "discount_amount": as_number(from_cents(self.discount_cents)),
            "tax_enabled": self.tax_enabled,
            "tax_rate": float(self.tax_rate_percent or 0),
            "tax_amount": as_number(from_cents(self.tax_cents)),
            "total_amount": as_number(from_cents(self.total_cents)),
            "item_count": len(self.lines),
            "notes": self.notes,
            "created_at": to_utc_z(self.created_at),
        }
        if include_lines:
            data["items"] = [line.to_dict() for line in self.lines]
        return data


class BillLine(db.Model):
    """Individual line items on a bill, in cart order."""
    __tablename__ = "bill_lines"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    bill_id = db.Column(db.Integer, db.ForeignKey("bills.id"), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)
    position = db.Column(db.Integer, nullable=False)

    name = db.Column(db.String(255), nullable=False)
    quantity = db.Column(db.Integer, nullable=False)
    unit_price_cents = db.Column(db.Integer, nullable=False)
    line_total_cents = db.Column(db.Integer, nullable=False)

    product = db.relationship("Product")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "bill_id": self.bill_id,
            "product_id": self.product_id,
            "name": self.name,
            "quantity": self.quantity,
            "unit_price": as_number(from_cents(self.unit_price_cents)),
            "line_total": as_number(from_cents(self.line_total_cents)),
        }
