# backend/warehouse/config.py
from __future__ import annotations
import os


def _env_bool(name: str, default: bool) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/warehouse.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///warehouse.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    # Billing
    TAX_RATE_PERCENT = os.environ.get("TAX_RATE_PERCENT", "18")
    CLAMP_DISCOUNT = _env_bool("CLAMP_DISCOUNT", True)
    # "retain" keeps the cart for quick re-bill, "clear" empties it after a bill is saved
    CART_POLICY_AFTER_BILL = os.environ.get("CART_POLICY_AFTER_BILL", "retain")

    # Production planning
    CALCULATION_HISTORY_LIMIT = int(os.environ.get("CALCULATION_HISTORY_LIMIT", "5"))

    # Stock summary
    LOW_STOCK_THRESHOLD = int(os.environ.get("LOW_STOCK_THRESHOLD", "10"))

    # Legacy REST backend used by `flask sync pull`
    UPSTREAM_API_URL = os.environ.get("UPSTREAM_API_URL", "http://localhost:5000/api")
    UPSTREAM_TIMEOUT = float(os.environ.get("UPSTREAM_TIMEOUT", "10"))

    # Work sessions idle longer than this are dropped; 0 disables expiry
    SESSION_IDLE_MINUTES = int(os.environ.get("SESSION_IDLE_MINUTES", "480"))
