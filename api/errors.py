"""
Uniform response envelope and global error handlers.

Every response body has the shape
    {"success": bool, "message"?: str, "data"?: any, "error"?: str}
Successful responses carry a message, failures carry an error; never both.
5xx responses always use a generic error string.
"""
import logging

from flask import jsonify
from werkzeug.exceptions import HTTPException
from marshmallow import ValidationError as SchemaValidationError

from utils.exceptions import AppError, UnauthenticatedError

logger = logging.getLogger(__name__)


def success_response(message: str, data=None, status: int = 200):
    payload = {"success": True, "message": message}
    if data is not None:
        payload["data"] = data
    return jsonify(payload), status


def error_response(error: str, status: int):
    return jsonify({"success": False, "error": error}), status


def _flatten_messages(messages) -> str:
    if isinstance(messages, dict):
        parts = []
        for field, value in messages.items():
            parts.append(f"{field}: {_flatten_messages(value)}")
        return "; ".join(parts)
    if isinstance(messages, (list, tuple)):
        return ", ".join(_flatten_messages(m) for m in messages)
    return str(messages)


def register_error_handlers(app):
    @app.errorhandler(AppError)
    def handle_app_error(err: AppError):
        if err.status_code >= 500:
            logger.error("%s: %s", err.__class__.__name__, err.message, exc_info=err.__cause__)
        elif isinstance(err, UnauthenticatedError):
            logger.info("Unauthenticated: %s", err.message)
        return error_response(err.public_message, err.status_code)

    # Marshmallow validation errors map to 400
    @app.errorhandler(SchemaValidationError)
    def handle_validation_error(err: SchemaValidationError):
        return error_response(f"Invalid input: {_flatten_messages(err.messages)}", 400)

    # Werkzeug HTTPExceptions (404 routing, 405, bad JSON...) keep their status codes
    @app.errorhandler(HTTPException)
    def handle_http_exception(err: HTTPException):
        status = err.code or 500
        if status >= 500:
            return error_response("An unexpected error occurred", status)
        return error_response(err.description or err.name, status)

    # 500 Internal Error (catch-all)
    @app.errorhandler(Exception)
    def internal_error(err: Exception):
        logger.exception("Unhandled exception", exc_info=err)
        return error_response("An unexpected error occurred", 500)
