# backend/icebox/config.py
from __future__ import annotations
import os


def _env_bool(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/icebox.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location (Postgres in production)
        "sqlite:///icebox.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # New normal piles start with this low-stock threshold.
    # Deformed piles always use 0 regardless of this value.
    DEFAULT_MIN_STOCK_ALERT = int(os.environ.get("ICEBOX_DEFAULT_MIN_STOCK_ALERT", "20"))

    DEFAULT_LIST_LIMIT = int(os.environ.get("ICEBOX_DEFAULT_LIST_LIMIT", "50"))
    MAX_LIST_LIMIT = 500

    LOG_LEVEL = os.environ.get("ICEBOX_LOG_LEVEL", "INFO")
    LOG_JSON = _env_bool("ICEBOX_LOG_JSON", True)
