"""
Product and customer API tests.
"""

import pytest


class TestProducts:

    def test_create_and_get(self, client, db_session):
        response = client.post("/api/products", json={
            "sku": "CHR-001",
            "name": "Oak Chair",
            "category": "Furniture",
            "price_cents": 249900,
            "current_stock": 12,
        })

        assert response.status_code == 201
        assert response.json["price"] == 2499.0

        product_id = response.json["id"]
        response = client.get(f"/api/products/{product_id}")
        assert response.status_code == 200
        assert response.json["sku"] == "CHR-001"

    def test_duplicate_sku(self, client, db_session, make_product):
        make_product(sku="CHR-001")
        response = client.post("/api/products", json={"sku": "CHR-001", "name": "Other", "price_cents": 100})
        assert response.status_code == 409

    @pytest.mark.parametrize("payload", [
        {"name": "No SKU", "price_cents": 100},
        {"sku": "X-1", "name": "Negative", "price_cents": -1},
        {"sku": "X-2", "name": "Negative stock", "price_cents": 100, "current_stock": -5},
        {"sku": "X-3", "name": "Unknown field", "price_cents": 100, "colour": "red"},
    ])
    def test_invalid_payloads(self, client, db_session, payload):
        assert client.post("/api/products", json=payload).status_code == 400

    def test_list_filters(self, client, db_session, make_product):
        make_product(name="Oak Chair", category="Furniture")
        make_product(name="Cushion", category="Soft Furnishing")

        assert client.get("/api/products").json["count"] == 2
        assert client.get("/api/products?category=Furniture").json["count"] == 1
        names = [p["name"] for p in client.get("/api/products?search=cush").json["items"]]
        assert names == ["Cushion"]

    def test_list_paginated(self, client, db_session, make_product):
        for i in range(5):
            make_product(name=f"Item {i}")

        listing = client.get("/api/products?page=2&per_page=2").json
        assert listing["count"] == 2
        assert listing["pagination"]["total_pages"] == 3

    def test_get_missing(self, client, db_session):
        assert client.get("/api/products/999").status_code == 404

    def test_low_stock(self, client, db_session, make_product):
        make_product(name="Empty", stock=0, reorder_level=5)
        make_product(name="Low", stock=3, reorder_level=5)
        make_product(name="Plenty", stock=50, reorder_level=5)
        make_product(name="Under default threshold", stock=8)

        response = client.get("/api/products/low-stock")

        items = {i["name"]: i for i in response.json["items"]}
        assert set(items) == {"Empty", "Low", "Under default threshold"}
        assert items["Empty"]["alert_level"] == "OUT_OF_STOCK"
        assert items["Low"]["alert_level"] == "LOW_STOCK"
        assert items["Low"]["reorder_quantity"] == 7

    def test_stock_summary(self, client, db_session, make_product):
        make_product(name="Chair", price_cents=10000, stock=3, category="Furniture")
        make_product(name="Cushion", price_cents=500, stock=0, category="Soft Furnishing")

        summary = client.get("/api/products/stock-summary").json

        assert summary["product_count"] == 2
        assert summary["total_units"] == 3
        assert summary["total_value"] == 300.0
        assert summary["out_of_stock_count"] == 1
        assert summary["low_stock_count"] == 1


class TestCustomers:

    def test_create_and_list(self, client, db_session):
        response = client.post("/api/customers", json={"name": "Blue Oak", "email": "orders@blueoak.example.com"})
        assert response.status_code == 201

        listing = client.get("/api/customers?search=blue").json
        assert listing["count"] == 1
        assert listing["items"][0]["email"] == "orders@blueoak.example.com"

    def test_duplicate_email(self, client, db_session, customer):
        response = client.post("/api/customers", json={"name": "Copy", "email": "asha@example.com"})
        assert response.status_code == 409

    def test_invalid_email(self, client, db_session):
        response = client.post("/api/customers", json={"name": "Bad", "email": "not-an-email"})
        assert response.status_code == 400

    def test_name_required(self, client, db_session):
        assert client.post("/api/customers", json={"email": "a@b.example.com"}).status_code == 400

    def test_get(self, client, db_session, customer):
        assert client.get(f"/api/customers/{customer.id}").json["name"] == "Asha Traders"
        assert client.get("/api/customers/999").status_code == 404


def test_health(client, db_session):
    response = client.get("/api/health")
    assert response.status_code == 200
    assert response.json["checks"]["database"]["status"] == "healthy"


def test_version(client, db_session):
    assert "api_version" in client.get("/api/version").json
