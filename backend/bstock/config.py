# backend/bstock/config.py
from __future__ import annotations
import os


def _env_flag(name: str, default: str = "false") -> bool:
    return os.environ.get(name, default).strip().lower() in ("1", "true", "yes", "on")


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/bstock.sqlite3 unless DATABASE_URL is set
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL",
        "sqlite:///bstock.sqlite3",
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    # Sessions expire after this many hours regardless of activity
    SESSION_TTL_HOURS = int(os.environ.get("SESSION_TTL_HOURS", "24"))

    # Enables /subscriptions/dev/set-plan/<name> (plan switch without payment)
    DEV_ENDPOINTS_ENABLED = _env_flag("DEV_ENDPOINTS_ENABLED")

    # Plan assigned to newly registered organizations
    DEFAULT_PLAN_NAME = os.environ.get("DEFAULT_PLAN_NAME", "free")
