# backend/retailpos/config.py
from __future__ import annotations
import os


def _env_flag(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/retailpos.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL",
        "sqlite:///retailpos.sqlite3",
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    # Reject checkout when a tracked product would go below zero
    ENFORCE_STOCK = _env_flag("ENFORCE_STOCK", True)

    ORDER_NUMBER_PREFIX = os.environ.get("ORDER_NUMBER_PREFIX", "ORD")
    ORDERS_PAGE_SIZE = int(os.environ.get("ORDERS_PAGE_SIZE", "20"))

    # Saved register carts are dropped after this many hours
    CART_BACKUP_TTL_HOURS = int(os.environ.get("CART_BACKUP_TTL_HOURS", "24"))
    PRODUCT_SEARCH_LIMIT = int(os.environ.get("PRODUCT_SEARCH_LIMIT", "20"))


class TestingConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    LOG_LEVEL = "WARNING"
