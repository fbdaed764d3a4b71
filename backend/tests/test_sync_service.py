from decimal import Decimal

import httpx

from warehouse.models import Customer, Product, ProductRecipe, RawMaterial
from warehouse.services.reference_data import (
    FetchResult,
    UpstreamCustomer,
    UpstreamMaterial,
    UpstreamProduct,
    UpstreamRecipe,
    UpstreamRecipeMaterial,
)
from warehouse.services.sync_service import import_reference_data


def fetch_result(generation=1, **lists):
    return FetchResult(generation=generation, **lists)


PRODUCTS = [UpstreamProduct(external_id="1", sku="CHR-001", name="Oak Chair", price=Decimal("2499.00"), current_stock=12)]
MATERIALS = [UpstreamMaterial(external_id="m1", name="Oak Plank", current_stock=300.0, unit="kg", cost_per_unit=180.0)]
RECIPES = [
    UpstreamRecipe(
        product_external_id="1",
        name="Oak Chair",
        estimated_time_hours=2.5,
        complexity="Medium",
        materials=(UpstreamRecipeMaterial("m1", "Oak Plank", 6.0, "kg", 10.0),),
    ),
]


def test_import_creates_rows(db_session):
    report = import_reference_data(fetch_result(
        products=PRODUCTS,
        customers=[UpstreamCustomer(external_id="9", name="Asha Traders", email="asha@example.com")],
        raw_materials=MATERIALS,
        recipes=RECIPES,
    ))

    assert report.created == {"products": 1, "customers": 1, "raw_materials": 1, "recipes": 1}
    assert report.skipped == []

    product = db_session.query(Product).filter_by(sku="CHR-001").one()
    assert product.price_cents == 249900
    assert product.current_stock == 12

    recipe = db_session.query(ProductRecipe).filter_by(product_id=product.id, is_active=True).one()
    assert recipe.materials[0].material.code == "m1"
    assert recipe.materials[0].wastage_percent == 10.0


def test_reimport_updates_in_place(db_session):
    import_reference_data(fetch_result(products=PRODUCTS, raw_materials=MATERIALS, recipes=RECIPES))

    changed = [UpstreamProduct(external_id="1", sku="CHR-001", name="Oak Chair", price=Decimal("2599.00"), current_stock=4)]
    report = import_reference_data(fetch_result(products=changed, raw_materials=MATERIALS, recipes=RECIPES))

    assert report.updated == {"products": 1, "raw_materials": 1}
    assert db_session.query(Product).count() == 1
    assert db_session.query(Product).one().price_cents == 259900
    assert db_session.query(ProductRecipe).filter_by(is_active=True).count() == 1
    assert db_session.query(ProductRecipe).count() == 2


def test_customer_matched_by_email(db_session, customer):
    report = import_reference_data(fetch_result(customers=[
        UpstreamCustomer(external_id="9", name="Asha Traders Pvt", email="asha@example.com", phone="555"),
    ]))

    assert report.updated == {"customers": 1}
    assert db_session.query(Customer).count() == 1
    assert db_session.query(Customer).one().phone == "555"


def test_recipe_with_unknown_references_skipped(db_session):
    orphan = UpstreamRecipe(
        product_external_id="77",
        name="Ghost Table",
        estimated_time_hours=1.0,
        complexity="Low",
    )
    report = import_reference_data(fetch_result(products=PRODUCTS, recipes=RECIPES + [orphan]))

    assert len(report.skipped) == 2
    assert any("unknown material" in reason for reason in report.skipped)
    assert any("unknown product" in reason for reason in report.skipped)
    assert db_session.query(RawMaterial).count() == 0


def test_sync_pull_command(app, db_session, monkeypatch):
    routes = {
        "/api/products": [{"id": 1, "name": "Oak Chair", "sku": "CHR-001", "price": 2499, "current_stock": 12}],
        "/api/customers": {"customers": [{"id": 1, "name": "Asha Traders"}]},
    }

    def handler(request):
        if request.url.path in routes:
            return httpx.Response(200, json=routes[request.url.path])
        return httpx.Response(503)

    original_init = httpx.Client.__init__

    def patched_init(self, *args, **kwargs):
        kwargs["transport"] = httpx.MockTransport(handler)
        original_init(self, *args, **kwargs)

    monkeypatch.setattr(httpx.Client, "__init__", patched_init)

    result = app.test_cli_runner().invoke(args=["sync", "pull", "--base-url", "http://upstream.test/api"])

    assert result.exit_code == 0, result.output
    assert "WARN raw_materials" in result.output
    assert "PASS created 1 products" in result.output
    assert db_session.query(Product).filter_by(sku="CHR-001").count() == 1
