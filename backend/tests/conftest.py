"""
Pytest fixtures for warehouse backend tests.

Provides test database setup, catalog factories, and a test client with a
work session.
"""

import pytest
from warehouse import create_app
from warehouse.extensions import db
from warehouse.models import Customer, Product, RawMaterial
from warehouse.services import recipes_service


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'SESSION_IDLE_MINUTES': 0,
    })

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    """Create fresh database for each test."""
    with app.app_context():
        # Clear all data but keep schema
        meta = db.metadata
        for table in reversed(meta.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()

        yield db.session

        # Cleanup after test
        db.session.rollback()


@pytest.fixture(scope='function')
def make_product(db_session):
    """Factory for active products. Price is in rupees, stored as cents."""
    counter = {"n": 0}

    def _make(name="Oak Chair", price_cents=10000, stock=10, category="Furniture", reorder_level=0, sku=None):
        counter["n"] += 1
        product = Product(
            sku=sku or f"SKU-{counter['n']:03d}",
            name=name,
            category=category,
            price_cents=price_cents,
            current_stock=stock,
            reorder_level=reorder_level,
        )
        db_session.add(product)
        db_session.commit()
        return product

    return _make


@pytest.fixture(scope='function')
def customer(db_session):
    customer = Customer(name="Asha Traders", email="asha@example.com", phone="+91 98100 00001")
    db_session.add(customer)
    db_session.commit()
    return customer


@pytest.fixture(scope='function')
def make_material(db_session):
    counter = {"n": 0}

    def _make(name="Oak Plank", stock=30.0, unit="kg", cost_per_unit=100.0, reorder_level=10.0, category="Wood"):
        counter["n"] += 1
        material = RawMaterial(
            code=f"RM-{counter['n']:03d}",
            name=name,
            category=category,
            current_stock=stock,
            unit=unit,
            cost_per_unit=cost_per_unit,
            reorder_level=reorder_level,
        )
        db_session.add(material)
        db_session.commit()
        return material

    return _make


@pytest.fixture(scope='function')
def chair_recipe(make_product, make_material):
    """Chair needing 10 kg oak per unit (no wastage) with 30 kg oak on hand."""
    chair = make_product(name="Oak Chair", stock=0)
    oak = make_material(name="Oak Plank", stock=30.0, cost_per_unit=100.0)
    recipes_service.add_recipe(
        product_id=chair.id,
        materials=[{"material_id": oak.id, "required_quantity": 10.0, "wastage_percent": 0.0}],
        estimated_time_hours=2.0,
        complexity="Medium",
    )
    return chair, oak


@pytest.fixture(scope='function')
def work_session(app):
    """Fresh in-memory work session, closed after the test."""
    registry = app.extensions["work_sessions"]
    session = registry.create()
    yield session
    registry.close(session.token)


@pytest.fixture(scope='function')
def session_headers(work_session) -> dict:
    """X-Session-Id headers for the work_session fixture."""
    return {'X-Session-Id': work_session.token}
