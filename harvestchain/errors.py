# harvestchain/errors.py
from __future__ import annotations

import logging
import traceback

from flask import current_app, jsonify
from pydantic import ValidationError as PydanticValidationError
from pymongo.errors import ConnectionFailure
from werkzeug.exceptions import HTTPException

log = logging.getLogger(__name__)


class HarvestChainError(Exception):
    """Base error. Carries the message and status sent back in the envelope."""

    status_code = 500
    default_message = "Internal Server Error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(HarvestChainError):
    status_code = 400
    default_message = "Invalid request"


class ConflictError(HarvestChainError):
    status_code = 400
    default_message = "Record already exists"


class AuthError(HarvestChainError):
    status_code = 401
    default_message = "Unauthorized"


class NotFoundError(HarvestChainError):
    status_code = 404
    default_message = "Not found"


class ConfigurationError(HarvestChainError):
    status_code = 500
    default_message = "Server is not configured"


class StoreUnavailableError(HarvestChainError):
    status_code = 503
    default_message = "Database connection not available"


def pydantic_message(exc: PydanticValidationError) -> str:
    """Flatten a pydantic error into one readable line."""
    errors = exc.errors()
    missing = [".".join(str(p) for p in e["loc"]) for e in errors if e["type"] == "missing"]
    if missing:
        return f"Missing required fields: {', '.join(missing)}"
    first = errors[0]
    field = ".".join(str(p) for p in first["loc"])
    return f"{field}: {first['msg']}" if field else first["msg"]


def _envelope(message: str, status: int, **extra):
    body = {"success": False, "message": message}
    body.update(extra)
    return jsonify(body), status


def _debug_enabled() -> bool:
    return current_app.config.get("APP_ENV") != "production"


def register_error_handlers(app):
    @app.errorhandler(HarvestChainError)
    def _handle_app_error(e: HarvestChainError):
        if e.status_code >= 500:
            current_app.logger.error("%s: %s", type(e).__name__, e.message)
        return _envelope(e.message, e.status_code)

    @app.errorhandler(PydanticValidationError)
    def _handle_payload_error(e: PydanticValidationError):
        return _envelope(pydantic_message(e), 400)

    @app.errorhandler(ConnectionFailure)
    def _handle_store_down(e: ConnectionFailure):
        from harvestchain.mongo import get_store

        current_app.logger.error("Mongo connection failure: %s", e)
        get_store().mark_error()
        return _envelope("Database connection not available", 503)

    @app.errorhandler(HTTPException)
    def _handle_http(e: HTTPException):
        if e.code == 404:
            return _envelope("API endpoint not found", 404)
        return _envelope(e.description or e.name, e.code or 500)

    @app.errorhandler(Exception)
    def _handle_unexpected(e: Exception):
        current_app.logger.exception("Unhandled error: %s", e)
        extra = {}
        if _debug_enabled():
            extra["error"] = traceback.format_exc()
        return _envelope(str(e) or "Internal Server Error", 500, **extra)
