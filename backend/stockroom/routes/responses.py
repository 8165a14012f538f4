# Overview: Shared mapping from service exceptions to JSON error responses.

from flask import current_app, jsonify, request

from ..extensions import db
from ..permissions import PermissionDeniedError
from ..validation import ConflictError, NotFoundError, ValidationError


def success(status: int = 200, **payload):
    return jsonify({"success": True, **payload}), status


def error(message: str, status: int):
    return jsonify({"error": message}), status


def json_payload() -> dict:
    """Request body as a dict. A missing body is {}; any other non-object body is a ValidationError."""
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError("Invalid JSON payload")
    return data


def error_response(exc: Exception, action: str):
    """
    Translate a service-layer exception into (json, status).

    Anything unexpected is logged with a traceback and reported as a generic 500.
    The session is rolled back in every case.
    """
    db.session.rollback()

    if isinstance(exc, ValidationError):
        return error(str(exc), 400)
    if isinstance(exc, NotFoundError):
        return error(str(exc), 404)
    if isinstance(exc, ConflictError):
        return error(str(exc), 409)
    if isinstance(exc, PermissionDeniedError):
        return jsonify({"error": "Permission denied", "message": str(exc)}), 403
    if isinstance(exc, KeyError):
        return error(f"Missing required field: {exc}", 400)

    current_app.logger.exception("Failed to %s", action)
    return error("Internal server error", 500)
