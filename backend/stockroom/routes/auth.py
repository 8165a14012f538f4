# Overview: Flask API routes for auth operations; parses input and returns JSON responses.

# backend/stockroom/routes/auth.py
"""
Authentication API routes

Bearer-token sessions issued against the user directory. Users without a
password on file cannot log in.
"""

from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import require_auth
from ..permissions import permissions_for_role
from ..services import session_service, user_service
from ..validation import ValidationError
from .responses import json_payload


auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


def _permission_list(user) -> list[str]:
    return sorted(permissions_for_role(user.role))


@auth_bp.post("/login")
def login_route():
    """
    Authenticate user and create session token.

    Returns user info, the role's permission codes and the session token.
    The token must be sent as "Authorization: Bearer <token>".
    """
    try:
        data = json_payload()
        email = data.get("email")
        password = data.get("password")

        if not all([email, password]):
            return jsonify({"error": "email and password required"}), 400

        user = user_service.authenticate(email, password)
        if not user:
            current_app.logger.warning("Failed login for %s", email)
            return jsonify({"error": "Invalid credentials"}), 401

        session, token = session_service.create_session(user.id)

        return jsonify({
            "user": user.to_dict(),
            "permissions": _permission_list(user),
            "token": token,
            "expiresAt": session.to_dict()["expiresAt"],
            "message": "Login successful",
        }), 200

    except ValidationError as e:
        return jsonify({"error": str(e)}), 400

    except Exception:
        current_app.logger.exception("Failed to login user")
        return jsonify({"error": "Internal server error"}), 500


@auth_bp.post("/logout")
def logout_route():
    """
    Revoke session token (logout).

    WHY: Explicit logout prevents token reuse.
    """
    try:
        auth_header = request.headers.get("Authorization")
        if not auth_header or not auth_header.startswith("Bearer "):
            return jsonify({"error": "Authorization header required"}), 401

        token = auth_header.split(" ", 1)[1]

        if not session_service.revoke_session(token, reason="User logout"):
            return jsonify({"error": "Invalid or expired token"}), 401

        return jsonify({"message": "Logout successful"}), 200

    except Exception:
        current_app.logger.exception("Failed to logout user")
        return jsonify({"error": "Internal server error"}), 500


@auth_bp.get("/me")
@require_auth
def me_route():
    """Current user and permission codes, for UI filtering."""
    user = g.current_user
    return jsonify({
        "user": user.to_dict(),
        "permissions": _permission_list(user),
    })
