from __future__ import annotations

import logging
import os
from pathlib import Path

from dotenv import load_dotenv


_PACKAGE_DIR = Path(__file__).resolve().parent
_PROJECT_ROOT = _PACKAGE_DIR.parent

# Root .env is canonical; billsplit/.env remains a fallback.
load_dotenv(_PROJECT_ROOT / ".env")
load_dotenv(_PACKAGE_DIR / ".env")


def _non_empty_env(name: str, default: str) -> str:
    """Returns env var `name` if set and non-empty, else `default`."""
    value = os.getenv(name)
    if value is not None and value != "":
        return value
    return default


def _parse_int_env(name: str, default: int) -> int:
    """Parses env var `name` as int, else returns `default`."""
    raw = _non_empty_env(name, default=str(default))
    try:
        return int(raw)
    except (TypeError, ValueError):
        return default


class BaseConfig:

    # Standard logging level name applied to app.logger by the factory.
    LOG_LEVEL: str = _non_empty_env("LOG_LEVEL", default="INFO").upper()

    # Reflect any Origin in CORS headers (local frontends on another port).
    CORS_ALLOW_ALL: bool = False

    # Upper bound on the number of line items accepted in one request body.
    MAX_BILL_ITEMS: int = _parse_int_env("MAX_BILL_ITEMS", default=500)


class DevelopmentConfig(BaseConfig):
    DEBUG:   bool = True
    TESTING: bool = False

    LOG_LEVEL: str = _non_empty_env("LOG_LEVEL", default="DEBUG").upper()
    CORS_ALLOW_ALL: bool = True


class TestingConfig(BaseConfig):

    DEBUG:   bool = True
    TESTING: bool = True

    CORS_ALLOW_ALL: bool = True
    MAX_BILL_ITEMS: int = 50


class ProductionConfig(BaseConfig):

    DEBUG:   bool = False
    TESTING: bool = False


def validate_production_config(app) -> None:
    """
    Fail-fast guard for production configuration.

    Must be called in the app factory immediately after
    app.config.from_object(ProductionConfig).

    Raises ValueError if any required production value is missing or invalid.
    """
    level = app.config.get("LOG_LEVEL")
    if not isinstance(logging.getLevelName(level), int):
        raise ValueError(
            f"LOG_LEVEL={level!r} is not a valid logging level. "
            "Use one of DEBUG, INFO, WARNING, ERROR, CRITICAL."
        )
    if app.config.get("MAX_BILL_ITEMS", 0) < 1:
        raise ValueError("MAX_BILL_ITEMS must be a positive integer in production.")


# ── Config selector ────────────────────────────────────────────────────────
#
# Used by the app factory:
#   config_name = resolve_config_name(config_name)
#   app.config.from_object(config_by_name[config_name])
# ──────────────────────────────────────────────────────────────────────────

config_by_name: dict[str, type[BaseConfig]] = {
    "development": DevelopmentConfig,
    "testing":     TestingConfig,
    "production":  ProductionConfig,
}


def resolve_config_name(config_name: str | None = None) -> str:
    """
    Returns `config_name` if given, else FLASK_ENV, else "development".
    FLASK_ENV is read at call time, not import time.
    """
    if config_name:
        return config_name
    return _non_empty_env("FLASK_ENV", default="development")
