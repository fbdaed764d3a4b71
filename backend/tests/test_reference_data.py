"""
Upstream reference data tests.

Verifies:
- Decoders accept bare arrays and envelopes, reject malformed rows
- One failing source degrades to an empty list with a warning
- Stale fetch generations are discarded
"""

from decimal import Decimal

import httpx
import pytest

from warehouse.services.reference_data import (
    FetchResult,
    ReferenceDataError,
    ReferenceSnapshot,
    UpstreamClient,
    decode_customers,
    decode_products,
    decode_raw_materials,
    decode_recipes,
)


PRODUCTS = [
    {"id": 1, "name": "Oak Chair", "sku": "CHR-001", "price": "2499.00", "current_stock": 12, "category": "Furniture"},
    {"id": 2, "name": "Cushion", "unit_price": 349, "stock_quantity": -3},
]

MATERIALS = [
    {"id": "m1", "name": "Oak Plank", "currentStock": 300, "unit": "kg", "costPerUnit": 180, "reorderLevel": 80, "supplier": "Timberline"},
]

RECIPES = [
    {
        "id": 1,
        "name": "Oak Chair",
        "estimatedTime": 2.5,
        "complexity": "high",
        "materials": [
            {"materialId": "m1", "materialName": "Oak Plank", "requiredQuantity": 6, "unit": "kg", "wastagePercent": 10},
        ],
    },
]


class TestDecoders:

    def test_products_bare_array(self):
        products = decode_products(PRODUCTS)

        assert products[0].sku == "CHR-001"
        assert products[0].price == Decimal("2499.00")
        assert products[1].sku == "EXT-2"
        assert products[1].current_stock == 0
        assert products[1].category == "General"

    @pytest.mark.parametrize("payload", [
        {"products": PRODUCTS},
        {"success": True, "data": PRODUCTS},
        {"items": PRODUCTS},
    ])
    def test_products_envelopes(self, payload):
        assert [p.external_id for p in decode_products(payload)] == ["1", "2"]

    def test_customers_envelope(self):
        customers = decode_customers({"customers": [{"id": 4, "name": " Asha ", "email": "", "phone": "123"}]})

        assert customers[0].name == "Asha"
        assert customers[0].email is None
        assert customers[0].phone == "123"

    def test_raw_materials_camel_case(self):
        material = decode_raw_materials({"materials": MATERIALS})[0]

        assert material.current_stock == 300.0
        assert material.cost_per_unit == 180.0
        assert material.reorder_level == 80.0
        assert material.supplier == "Timberline"

    def test_recipes(self):
        recipe = decode_recipes({"products": RECIPES})[0]

        assert recipe.product_external_id == "1"
        assert recipe.complexity == "High"
        assert recipe.materials[0].material_external_id == "m1"
        assert recipe.materials[0].wastage_percent == 10.0

    @pytest.mark.parametrize("payload", [
        None,
        "products",
        {"unexpected": []},
        [1, 2],
        [{"name": "no id"}],
        [{"id": 1, "name": "Bad price", "price": "abc"}],
    ])
    def test_malformed_products_rejected(self, payload):
        with pytest.raises(ReferenceDataError):
            decode_products(payload)

    def test_material_number_must_be_numeric(self):
        with pytest.raises(ReferenceDataError):
            decode_raw_materials([{"id": 1, "name": "Oak", "currentStock": "lots"}])


def _transport(routes: dict):
    def handler(request: httpx.Request) -> httpx.Response:
        response = routes.get(request.url.path)
        if response is None:
            return httpx.Response(404, json={"error": "not found"})
        return response

    return httpx.MockTransport(handler)


class TestUpstreamClient:

    def test_fetch_all(self):
        transport = _transport({
            "/api/products": httpx.Response(200, json={"products": PRODUCTS}),
            "/api/customers": httpx.Response(200, json=[{"id": 1, "name": "Asha"}]),
            "/api/production-calculator/raw-materials": httpx.Response(200, json={"success": True, "data": MATERIALS}),
            "/api/production-calculator/products": httpx.Response(200, json={"products": RECIPES}),
        })

        with UpstreamClient("http://upstream.test/api", transport=transport) as client:
            result = client.fetch_all()

        assert result.ok
        assert len(result.products) == 2
        assert len(result.customers) == 1
        assert len(result.raw_materials) == 1
        assert len(result.recipes) == 1

    def test_failing_source_degrades_to_empty(self):
        transport = _transport({
            "/api/products": httpx.Response(200, json=PRODUCTS),
            "/api/customers": httpx.Response(500, json={"error": "boom"}),
            "/api/production-calculator/raw-materials": httpx.Response(200, json={"unexpected": True}),
            "/api/production-calculator/products": httpx.Response(200, json=RECIPES),
        })

        with UpstreamClient("http://upstream.test/api", transport=transport) as client:
            result = client.fetch_all()

        assert not result.ok
        assert len(result.products) == 2
        assert result.customers == []
        assert result.raw_materials == []
        assert len(result.recipes) == 1
        assert [w.split(":")[0] for w in result.warnings] == ["customers", "raw_materials"]

    def test_invalid_json_is_a_warning(self):
        transport = _transport({"/api/products": httpx.Response(200, content=b"<html>")})

        with UpstreamClient("http://upstream.test/api", transport=transport) as client:
            result = client.fetch_all(["products"])

        assert result.products == []
        assert len(result.warnings) == 1

    def test_generations_increase(self):
        transport = _transport({})
        with UpstreamClient("http://upstream.test/api", transport=transport) as client:
            first = client.fetch_all([])
            second = client.fetch_all([])

        assert second.generation > first.generation


class TestReferenceSnapshot:

    def test_stale_generation_discarded(self):
        snapshot = ReferenceSnapshot()
        newer = FetchResult(generation=5)
        older = FetchResult(generation=4)

        assert snapshot.apply(newer)
        assert not snapshot.apply(older)
        assert snapshot.current is newer

    def test_same_generation_not_reapplied(self):
        snapshot = ReferenceSnapshot()
        result = FetchResult(generation=1)
        assert snapshot.apply(result)
        assert not snapshot.apply(FetchResult(generation=1))
