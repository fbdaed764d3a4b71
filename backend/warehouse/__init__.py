# backend/warehouse/__init__.py
from datetime import timedelta

from flask import Flask, request

from .config import Config
from .extensions import db, migrate


def create_app(overrides: dict | None = None) -> Flask:
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(Config)
    if overrides:
        app.config.update(overrides)

    app.logger.setLevel(app.config.get("LOG_LEVEL", "INFO"))

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)

    # Import models so Alembic can discover metadata reliably
    from . import models  # noqa: F401

    # Per-user carts and calculation histories live in process memory
    from .services.session_service import SessionRegistry
    from .services.reference_data import ReferenceSnapshot
    idle_minutes = int(app.config.get("SESSION_IDLE_MINUTES", 0))
    app.extensions["work_sessions"] = SessionRegistry(
        history_limit=int(app.config["CALCULATION_HISTORY_LIMIT"]),
        idle_timeout=timedelta(minutes=idle_minutes) if idle_minutes > 0 else None,
    )
    app.extensions["reference_snapshot"] = ReferenceSnapshot()

    # Register blueprints
    from .routes.system import system_bp
    from .routes.products import products_bp
    from .routes.customers import customers_bp
    from .routes.sessions import sessions_bp
    from .routes.bills import bills_bp
    from .routes.production import production_bp

    app.register_blueprint(system_bp)
    app.register_blueprint(products_bp)
    app.register_blueprint(customers_bp)
    app.register_blueprint(sessions_bp)
    app.register_blueprint(bills_bp)
    app.register_blueprint(production_bp)

    @app.after_request
    def add_cors_headers(response):
        origin = request.headers.get("Origin")
        allowed_origins = {
            "http://localhost:5173",
            "http://127.0.0.1:5173",
            "http://localhost:3000",
            "http://127.0.0.1:3000",
        }
        if origin in allowed_origins:
            response.headers["Access-Control-Allow-Origin"] = origin
            response.headers["Vary"] = "Origin"
            response.headers["Access-Control-Allow-Headers"] = "Content-Type, X-Session-Id"
            response.headers["Access-Control-Allow-Methods"] = "GET,POST,PUT,DELETE,PATCH,OPTIONS"
        return response

    # Register CLI commands
    from .cli import register_commands
    register_commands(app)

    return app
