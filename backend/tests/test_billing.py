"""
Bill calculator and bill builder tests.
"""

from decimal import Decimal

import pytest

from warehouse.money import MoneyError
from warehouse.services.billing_service import (
    BillTotals,
    CustomerRef,
    CustomerRequired,
    EmptyCart,
    build_bill,
    calculate_totals,
    clamp_discount,
)
from warehouse.services.cart_service import Cart
from warehouse.services.stock_ledger import StockEntry


def cart_with(*items):
    """items: (id, price, quantity, stock)"""
    cart = Cart()
    for item_id, price, quantity, stock in items:
        e = StockEntry(id=item_id, name=f"Item {item_id}", unit_price=Decimal(price), available_quantity=stock)
        for _ in range(quantity):
            cart.add_item(e)
    return cart


CUSTOMER = CustomerRef(id=7, name="Asha Traders")


class TestCalculateTotals:

    def test_discount_and_tax(self):
        cart = cart_with((1, "100", 2, 10))
        totals = calculate_totals(cart.lines, 10, True)

        assert totals.subtotal == Decimal("200")
        assert totals.discount_amount == Decimal("20")
        assert totals.taxable_amount == Decimal("180")
        assert totals.tax_amount == Decimal("32.4")
        assert totals.grand_total == Decimal("212.4")

    def test_tax_disabled(self):
        cart = cart_with((1, "100", 2, 10))
        totals = calculate_totals(cart.lines, 10, False)

        assert totals.tax_amount == 0
        assert totals.grand_total == totals.taxable_amount == Decimal("180")

    def test_empty_lines_are_zero(self):
        totals = calculate_totals([], 15, True)
        assert totals.subtotal == totals.grand_total == 0

    def test_subtotal_is_sum_of_line_totals(self):
        cart = cart_with((1, "19.99", 3, 10), (2, "0.50", 4, 10), (3, "1200", 1, 1))
        totals = calculate_totals(cart.lines)

        assert totals.subtotal == sum(line.quantity * line.unit_price for line in cart.lines)
        assert totals.subtotal == Decimal("1261.97")

    @pytest.mark.parametrize("discount", [0, 12.5, 50, 100])
    def test_grand_total_bounds(self, discount):
        cart = cart_with((1, "333.33", 3, 5))
        totals = calculate_totals(cart.lines, discount, True)

        assert totals.grand_total >= totals.taxable_amount >= 0
        assert totals.tax_amount == totals.taxable_amount * Decimal("0.18")

    def test_full_discount(self):
        cart = cart_with((1, "100", 1, 1))
        totals = calculate_totals(cart.lines, 100, True)
        assert totals.taxable_amount == 0
        assert totals.grand_total == 0

    def test_recompute_is_identical(self):
        cart = cart_with((1, "45.10", 2, 5), (2, "3.33", 3, 5))
        first = calculate_totals(cart.lines, 7.5, True)
        second = calculate_totals(cart.lines, 7.5, True)
        assert first == second
        assert first.to_dict() == second.to_dict()

    def test_discount_is_clamped(self):
        cart = cart_with((1, "100", 1, 1))
        assert calculate_totals(cart.lines, 150).discount_amount == Decimal("100")
        assert calculate_totals(cart.lines, -5).discount_amount == 0

    def test_unclamped_discount_passes_through(self):
        cart = cart_with((1, "100", 1, 1))
        totals = calculate_totals(cart.lines, -10, False, clamp=False)
        assert totals.grand_total == Decimal("110")

    def test_custom_tax_rate(self):
        cart = cart_with((1, "100", 1, 1))
        assert calculate_totals(cart.lines, 0, True, tax_rate="5").tax_amount == Decimal("5")

    def test_clamp_discount_bounds(self):
        assert clamp_discount("42.5") == Decimal("42.5")
        assert clamp_discount(101) == Decimal("100")
        assert clamp_discount(-1) == Decimal("0")

    @pytest.mark.parametrize("value", [float("nan"), "NaN", "Infinity", Decimal("-Infinity")])
    def test_non_finite_discount_rejected(self, value):
        with pytest.raises(MoneyError):
            clamp_discount(value)
        with pytest.raises(MoneyError):
            calculate_totals([], value, True, clamp=False)


class TestBuildBill:

    def test_builds_snapshot(self):
        cart = cart_with((1, "100", 2, 10))
        bill = build_bill(cart, CUSTOMER, 10, True, notes="  rush order  ")

        assert bill.customer_id == 7
        assert bill.customer_name == "Asha Traders"
        assert bill.grand_total == Decimal("212.4")
        assert bill.notes == "rush order"
        assert len(bill.id) == 32
        assert isinstance(bill.totals, BillTotals)

    def test_empty_cart_rejected(self):
        with pytest.raises(EmptyCart):
            build_bill(Cart(), CUSTOMER)

    def test_missing_customer_rejected(self):
        with pytest.raises(CustomerRequired):
            build_bill(cart_with((1, "100", 1, 1)), None)

    def test_empty_cart_checked_before_customer(self):
        with pytest.raises(EmptyCart):
            build_bill(Cart(), None)

    def test_bill_unaffected_by_later_cart_changes(self):
        cart = cart_with((1, "100", 2, 10), (2, "50", 1, 10))
        bill = build_bill(cart, CUSTOMER)
        before = bill.to_dict()

        cart.set_quantity(1, 5)
        cart.remove_item(2)
        cart.clear()

        assert bill.to_dict() == before
        assert [line.quantity for line in bill.line_items] == [2, 1]

    def test_ids_are_unique(self):
        cart = cart_with((1, "100", 1, 10))
        assert build_bill(cart, CUSTOMER).id != build_bill(cart, CUSTOMER).id

    def test_payload_shape(self):
        cart = cart_with((1, "100", 2, 10))
        payload = build_bill(cart, CUSTOMER, 10, True).to_payload()

        assert payload["customer_id"] == 7
        assert payload["total_amount"] == 212.4
        assert payload["tax_amount"] == 32.4
        assert payload["discount_amount"] == 20.0
        assert payload["items"][0]["quantity"] == 2
        assert payload["notes"] is None
