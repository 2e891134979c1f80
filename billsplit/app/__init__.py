"""
app/__init__.py — Flask application factory.

Pattern: create_app(config_name) creates and returns a configured Flask app.
         Nothing is initialised at import time, which allows multiple
         isolated test app instances.

Responsibilities:
  1. Load configuration from config_by_name[config_name]
  2. Configure app.logger from LOG_LEVEL
  3. Register the bills blueprint under /api/v1/bills
  4. Register global error handlers (AppError → JSON, Exception → 500)
  5. Register a custom JSON provider to serialise Decimal as string
"""

from __future__ import annotations

import traceback
from decimal import Decimal

from flask import Flask, jsonify, request
from flask.json.provider import DefaultJSONProvider
from marshmallow import ValidationError
from werkzeug.exceptions import HTTPException

from billsplit.config import (
    config_by_name,
    resolve_config_name,
    validate_production_config,
)


# ── Custom JSON provider ───────────────────────────────────────────────────
# Flask's default JSON encoder does not handle Decimal.
# Monetary amounts are serialised as strings to preserve precision.

class DecimalJSONProvider(DefaultJSONProvider):
    """
    Extends Flask's default JSON provider to serialise Decimal as str.

    Example: Decimal("10.50") → "10.50" (not 10.5 or 10.500000001)

    Keys keep insertion order; Flask 2.3+ ignores the JSON_SORT_KEYS config.
    """

    sort_keys = False

    def default(self, o):
        if isinstance(o, Decimal):
            return str(o)
        return super().default(o)


# ── Application factory ────────────────────────────────────────────────────

def create_app(config_name: str | None = None) -> Flask:
    """
    Creates and returns a configured Flask application instance.

    Args:
        config_name: One of "development", "testing", "production".
                     Resolved via config_by_name in config.py.
                     Defaults to FLASK_ENV, then "development".
    """
    app = Flask(__name__)
    app.json_provider_class = DecimalJSONProvider
    app.json = DecimalJSONProvider(app)

    # ── Configuration ──────────────────────────────────────────────────────
    config_name = resolve_config_name(config_name)
    config_class = config_by_name.get(config_name, config_by_name["development"])
    app.config.from_object(config_class)

    if config_name == "production":
        validate_production_config(app)  # raises ValueError if misconfigured

    app.logger.setLevel(app.config["LOG_LEVEL"])

    _register_blueprints(app)
    _register_error_handlers(app)
    _register_cors(app)

    app.logger.debug("billsplit app created with %s config", config_class.__name__)
    return app


def _register_blueprints(app: Flask) -> None:
    """Registers route blueprints under the /api/v1 prefix."""
    from billsplit.app.routes.bills import bills_bp

    app.register_blueprint(bills_bp, url_prefix="/api/v1/bills")


def _first_error(messages, path: tuple = ()) -> tuple[tuple, str]:
    """
    Walks a marshmallow messages structure depth-first and returns
    (field path, first message). Nested list indices appear in the path
    as they do in marshmallow, e.g. ("items", 0, "person").
    """
    if isinstance(messages, dict):
        for key, value in messages.items():
            sub_path = path if key == "_schema" else path + (key,)
            return _first_error(value, sub_path)
        return path, "Invalid input."
    if isinstance(messages, list):
        if not messages:
            return path, "Invalid value."
        return _first_error(messages[0], path)
    return path, str(messages)


def _register_error_handlers(app: Flask) -> None:
    """
    Registers global error handlers.

    Handlers:
      AppError        → structured JSON error envelope with the correct HTTP status
      ValidationError → marshmallow schema errors formatted as MISSING_FIELD /
                        INVALID_FIELD (or a registered code) responses (400)
      Exception       → generic INTERNAL_ERROR (500); full traceback logged

    Stack traces never leave the server.
    """
    from billsplit.app.errors import AppError, ErrorCode

    known_codes = {
        value for name, value in vars(ErrorCode).items()
        if not name.startswith("_")
    }

    @app.errorhandler(AppError)
    def handle_app_error(error: AppError):
        """Routes never catch AppError; they let it propagate here."""
        if error.http_status >= 500:
            app.logger.error("AppError %s: %s", error.code, error.message)
        return jsonify(error.to_dict()), error.http_status

    @app.errorhandler(ValidationError)
    def handle_validation_error(error: ValidationError):
        """
        Converts marshmallow ValidationError into the standard error envelope.

        Only the FIRST error is returned. If its message is a registered
        ErrorCode constant it is used as the code directly.
        """
        path, raw_message = _first_error(error.messages)

        if raw_message in known_codes:
            code = raw_message
            message = _code_to_message(code)
        elif raw_message.startswith("Missing data for required field"):
            code = ErrorCode.MISSING_FIELD
            message = raw_message
        else:
            code = ErrorCode.INVALID_FIELD
            message = raw_message

        response_body = {"error": {"code": code, "message": message}}
        if path:
            response_body["error"]["field"] = ".".join(str(p) for p in path)

        return jsonify(response_body), 400

    @app.errorhandler(Exception)
    def handle_unexpected_error(error: Exception):
        """
        Catches all unhandled exceptions (including a malformed bill date)
        and returns a generic 500 response. The traceback goes to app.logger.
        """
        if isinstance(error, HTTPException):
            return error  # 404, 405, malformed JSON body: keep werkzeug's response

        app.logger.error(
            "Unhandled exception: %s\n%s",
            str(error),
            traceback.format_exc(),
        )
        return jsonify({
            "error": {
                "code": ErrorCode.INTERNAL_ERROR,
                "message": "An unexpected error occurred. Please try again later.",
            }
        }), 500


def _register_cors(app: Flask) -> None:
    """
    Adds CORS headers for browser-based local development when
    CORS_ALLOW_ALL is set (development and testing configs).
    """

    @app.after_request
    def add_cors_headers(response):
        if app.config.get("CORS_ALLOW_ALL"):
            origin = request.headers.get("Origin")
            response.headers["Access-Control-Allow-Origin"] = origin if origin else "*"
            response.headers["Vary"] = "Origin"
            response.headers["Access-Control-Allow-Methods"] = "POST, OPTIONS"
            response.headers["Access-Control-Allow-Headers"] = "Content-Type"

        return response


def _code_to_message(code: str) -> str:
    """
    Returns a human-readable default message for a known error code.
    Used when a ValidationError message IS the error code constant itself.
    """
    _messages = {
        "PERSON_NOT_ALLOWED_ON_SHARED_ITEM": "A shared item must not name a person.",
        "TOO_MANY_ITEMS": "The bill has more items than this server accepts.",
    }
    return _messages.get(code, "Invalid input.")
