"""
API: Error Handlers

AuthError -> code HTTP porté par l'exception. Toute autre exception -> 500
avec message générique et log ERROR.
"""

from datetime import datetime, timezone

from flask import Flask, jsonify
from pydantic import ValidationError
from werkzeug.exceptions import HTTPException

from ..core.exceptions import AccountLockedError, AuthError
from ..logging.structured_logger import StructuredLogger


def _error_body(message: str) -> dict:
    return {
        "status": "error",
        "message": message,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


def register_error_handlers(app: Flask, logger: StructuredLogger) -> None:
    @app.errorhandler(AuthError)
    def handle_auth_error(err: AuthError):
        body = _error_body(err.message)
        if isinstance(err, AccountLockedError) and err.locked_until is not None:
            body["lockedUntil"] = err.locked_until.isoformat()
        if err.status_code >= 500:
            logger.error("Request failed", error=type(err).__name__, reason=err.message)
        return jsonify(body), err.status_code

    @app.errorhandler(ValidationError)
    def handle_validation_error(err: ValidationError):
        fields = sorted({".".join(str(p) for p in e["loc"]) for e in err.errors()})
        return jsonify(_error_body(f"Invalid request: {', '.join(fields)}")), 400

    @app.errorhandler(HTTPException)
    def handle_http_exception(err: HTTPException):
        return jsonify(_error_body(err.description or err.name)), err.code

    @app.errorhandler(Exception)
    def handle_unexpected_error(err: Exception):
        logger.error("Unhandled error", error=type(err).__name__, detail=str(err))
        return jsonify(_error_body("Internal server error")), 500
