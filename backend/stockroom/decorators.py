# Overview: Request and permission decorators for API routes.

from functools import wraps
from flask import request, jsonify, g

from .permissions import user_has_permission, validate_permission_code
from .services import session_service


def _is_authenticated() -> bool:
    return hasattr(g, 'current_user')


def require_auth(f):
    """
    Require a valid bearer token.

    Sets:
    - g.current_user: The authenticated User object
    - g.session_context: The full SessionContext object

    Returns 401 if there is no Authorization header or the token is invalid,
    expired or revoked.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        auth_header = request.headers.get("Authorization")

        if not auth_header or not auth_header.startswith("Bearer "):
            return jsonify({"error": "Authentication required"}), 401

        token = auth_header.split(" ", 1)[1]

        context = session_service.validate_session(token)

        if not context:
            return jsonify({"error": "Invalid or expired token"}), 401

        g.current_user = context.user
        g.session_context = context
        g.auth_token = token

        return f(*args, **kwargs)

    return decorated_function


def require_permission(permission_code: str):
    """Require the current user's role to grant permission_code."""
    if not validate_permission_code(permission_code):
        raise ValueError(f"Unknown permission code: {permission_code}")

    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            # Ensure @require_auth was called first
            if not _is_authenticated():
                return jsonify({"error": "Authentication required"}), 401

            if not user_has_permission(g.current_user, permission_code):
                return jsonify({
                    "error": "Permission denied",
                    "required_permission": permission_code,
                }), 403

            return f(*args, **kwargs)

        return decorated_function
    return decorator
