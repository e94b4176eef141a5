# backend/stockroom/config.py
from __future__ import annotations
import os


def _int_env(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    return int(raw)


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/stockroom.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///stockroom.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ENGINE_OPTIONS = {"pool_pre_ping": True}

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    # Flat tax rates in basis points (1900 = 19%)
    SALES_TAX_RATE_BPS = _int_env("SALES_TAX_RATE_BPS", 1900)
    PURCHASE_TAX_RATE_BPS = _int_env("PURCHASE_TAX_RATE_BPS", 0)

    # Status names (per status category) whose lines move stock.
    STOCK_EFFECT_STATUSES = {
        "sales_order": ("confirmed",),
        "purchase_order": ("confirmed",),
        "sales_return": ("confirmed", "completed"),
        "purchase_return": ("confirmed", "completed"),
    }

    UNIT_OF_WORK_TIMEOUT_SECONDS = _int_env("UNIT_OF_WORK_TIMEOUT_SECONDS", 30)
    UNIT_OF_WORK_RETRY_ATTEMPTS = 3

    SESSION_TTL_HOURS = _int_env("SESSION_TTL_HOURS", 24)

    # Shared secret for the forecasting service endpoints (None = open)
    SERVICE_API_KEY = os.environ.get("SERVICE_API_KEY")

    SMTP_HOST = os.environ.get("SMTP_HOST")
    SMTP_PORT = _int_env("SMTP_PORT", 465)
    SMTP_USER = os.environ.get("SMTP_USER")
    SMTP_PASSWORD = os.environ.get("SMTP_PASSWORD")
    MAIL_FROM_NAME = os.environ.get("MAIL_FROM_NAME", "Stockroom")
    # Shortage alerts go out on a background thread; False sends inline
    ALERT_EMAIL_IN_BACKGROUND = True
