"""
Production planning API tests.

Verifies:
- Feasibility against live raw-material stock
- Session calculation history (newest first, capped)
- Batch planning and status updates
- Recipe and raw-material maintenance
"""

from datetime import date

from warehouse.extensions import db
from warehouse.models import RawMaterial


def calculate(client, product_id, quantity, headers=None):
    return client.post(
        "/api/production/calculate",
        json={"product_id": product_id, "requested_quantity": quantity},
        headers=headers or {},
    )


class TestCalculate:

    def test_shortage(self, client, db_session, chair_recipe):
        chair, oak = chair_recipe

        response = calculate(client, chair.id, 5)

        assert response.status_code == 200
        result = response.json["calculation"]
        assert result["feasible"] is False
        assert result["possible_quantity"] == 3
        assert result["material_breakdown"][0]["shortage"] == 20.0
        assert result["total_cost"] == 5000.0
        assert result["estimated_time"] == 10.0
        assert len(result["bottlenecks"]) == 1

    def test_feasible(self, client, db_session, chair_recipe):
        chair, _ = chair_recipe
        result = calculate(client, chair.id, 3).json["calculation"]

        assert result["feasible"] is True
        assert result["bottlenecks"] == []

    def test_inactive_material_reads_as_zero(self, client, db_session, chair_recipe):
        chair, oak = chair_recipe
        oak.is_active = False
        db_session.commit()

        result = calculate(client, chair.id, 1).json["calculation"]
        assert result["possible_quantity"] == 0

    def test_no_recipe(self, client, db_session, make_product):
        product = make_product()
        assert calculate(client, product.id, 1).status_code == 404

    def test_invalid_quantity(self, client, db_session, chair_recipe):
        chair, _ = chair_recipe
        assert calculate(client, chair.id, 0).status_code == 400
        assert calculate(client, chair.id, "many").status_code == 400

    def test_history_is_per_session_and_capped(self, client, db_session, chair_recipe, session_headers):
        chair, _ = chair_recipe
        for quantity in range(1, 8):
            calculate(client, chair.id, quantity, headers=session_headers)
        calculate(client, chair.id, 99)

        history = client.get("/api/sessions/current/calculations", headers=session_headers).json

        assert history["limit"] == 5
        assert [c["requested_quantity"] for c in history["items"]] == [7, 6, 5, 4, 3]

    def test_unknown_session_header(self, client, db_session, chair_recipe):
        chair, _ = chair_recipe
        response = calculate(client, chair.id, 1, headers={"X-Session-Id": "stale"})
        assert response.status_code == 401


class TestBatches:

    def test_create_and_list(self, client, db_session, chair_recipe):
        chair, _ = chair_recipe

        response = client.post("/api/production/batches", json={
            "product_id": chair.id,
            "quantity": 5,
            "start_date": "2026-11-01",
            "estimated_completion": "2026-11-05",
            "notes": "Showroom order",
        })

        assert response.status_code == 201
        batch = response.json["batch"]
        assert batch["batch_number"] == "BATCH-000001"
        assert batch["status"] == "PLANNED"
        assert batch["feasible_at_planning"] is False
        assert batch["total_cost"] == 5000.0
        assert batch["start_date"] == "2026-11-01"

        batches = client.get("/api/production/batches").json
        assert len(batches) == 1
        assert batches[0]["feasible_now"] is False
        assert batches[0]["materials"][0]["material_name"] == "Oak Plank"

    def test_start_date_defaults_to_today(self, client, db_session, chair_recipe):
        chair, _ = chair_recipe
        batch = client.post("/api/production/batches", json={"product_id": chair.id, "quantity": 1}).json["batch"]
        assert batch["start_date"] == date.today().isoformat()

    def test_completion_before_start(self, client, db_session, chair_recipe):
        chair, _ = chair_recipe
        response = client.post("/api/production/batches", json={
            "product_id": chair.id,
            "quantity": 1,
            "start_date": "2026-11-05",
            "estimated_completion": "2026-11-01",
        })
        assert response.status_code == 400

    def test_bad_date(self, client, db_session, chair_recipe):
        chair, _ = chair_recipe
        response = client.post("/api/production/batches", json={
            "product_id": chair.id, "quantity": 1, "start_date": "next week",
        })
        assert response.status_code == 400

    def test_status_update(self, client, db_session, chair_recipe):
        chair, _ = chair_recipe
        batch_id = client.post("/api/production/batches", json={"product_id": chair.id, "quantity": 1}).json["batch"]["id"]

        response = client.patch(f"/api/production/batches/{batch_id}", json={"status": "in_progress", "progress": 40})
        assert response.status_code == 200
        assert response.json["batch"]["status"] == "IN_PROGRESS"
        assert response.json["batch"]["progress"] == 40.0

        response = client.patch(f"/api/production/batches/{batch_id}", json={"status": "COMPLETED"})
        assert response.json["batch"]["progress"] == 100.0

    def test_status_update_errors(self, client, db_session, chair_recipe):
        chair, _ = chair_recipe
        batch_id = client.post("/api/production/batches", json={"product_id": chair.id, "quantity": 1}).json["batch"]["id"]

        assert client.patch(f"/api/production/batches/{batch_id}", json={"status": "SHIPPED"}).status_code == 400
        assert client.patch(f"/api/production/batches/{batch_id}", json={"status": "ON_HOLD", "progress": 150}).status_code == 400
        assert client.patch("/api/production/batches/999", json={"status": "ON_HOLD"}).status_code == 404


class TestRecipesAndMaterials:

    def test_create_material(self, client, db_session):
        response = client.post("/api/production/raw-materials", json={
            "code": "RM-OAK",
            "name": "Oak Plank",
            "unit": "kg",
            "current_stock": "12.5",
            "cost_per_unit": 180,
        })

        assert response.status_code == 201
        assert response.json["current_stock"] == 12.5
        assert response.json["supplier"] == "Unknown"
        assert client.get("/api/production/raw-materials").json[0]["code"] == "RM-OAK"

    def test_duplicate_material_code(self, client, db_session, make_material):
        code = make_material().code
        response = client.post("/api/production/raw-materials", json={"code": code, "name": "Copy", "unit": "kg"})
        assert response.status_code == 409

    def test_negative_material_stock(self, client, db_session):
        response = client.post("/api/production/raw-materials", json={
            "code": "RM-X", "name": "Bad", "unit": "kg", "current_stock": -1,
        })
        assert response.status_code == 400

    def test_replace_recipe(self, client, db_session, chair_recipe, make_material):
        chair, oak = chair_recipe
        screws = make_material(name="Wood Screws", unit="pcs", stock=100, cost_per_unit=1.0)

        response = client.post("/api/production/recipes", json={
            "product_id": chair.id,
            "materials": [
                {"material_id": oak.id, "required_quantity": 5},
                {"material_id": screws.id, "required_quantity": 16, "wastage_percent": 5},
            ],
            "estimated_time_hours": 1.5,
            "complexity": "low",
        })

        assert response.status_code == 201
        assert response.json["complexity"] == "Low"

        recipes = client.get("/api/production/recipes").json
        assert len(recipes) == 1
        assert len(recipes[0]["materials"]) == 2

        result = calculate(client, chair.id, 6).json["calculation"]
        assert result["possible_quantity"] == 5

    def test_recipe_with_unknown_material(self, client, db_session, make_product):
        product = make_product()
        response = client.post("/api/production/recipes", json={
            "product_id": product.id,
            "materials": [{"material_id": 999, "required_quantity": 1}],
        })
        assert response.status_code == 400
        assert response.json["details"]["material_ids"] == [999]


def test_analytics(client, db_session, make_material):
    make_material(name="Oak Plank", stock=5.0, reorder_level=10.0, cost_per_unit=100.0, category="Wood")
    make_material(name="Varnish", stock=50.0, reorder_level=10.0, cost_per_unit=2.0, category="Finishing")

    data = client.get("/api/production/analytics").json

    summary = data["summary"]
    assert summary["total_materials"] == 2
    assert summary["total_inventory_value"] == 600.0
    assert summary["low_stock_count"] == 1
    assert summary["well_stocked_count"] == 1
    assert summary["restock_investment"] == 500.0
    assert data["category_distribution"][0]["name"] == "Wood"


def test_inactive_materials_hidden(client, db_session, make_material):
    material = make_material()
    db.session.get(RawMaterial, material.id).is_active = False
    db.session.commit()

    assert client.get("/api/production/raw-materials").json == []
