# Overview: Flask API routes for user administration; parses input and returns JSON responses.

"""
User administration routes (admin only).

    GET    /api/users                      list
    POST   /api/users   {name, email, role, storeLocation?, password?}
    PUT    /api/users   {userId, updates}
    DELETE /api/users   {userId}

Deleting a user also deletes the requests they submitted.
"""

from flask import Blueprint, g, jsonify

from ..decorators import require_auth, require_permission
from ..services import user_service
from ..validation import coerce_int
from .responses import error, error_response, json_payload, success


users_bp = Blueprint("users", __name__, url_prefix="/api/users")


@users_bp.get("")
@require_auth
@require_permission("MANAGE_USERS")
def list_users_route():
    try:
        return jsonify([user.to_dict() for user in user_service.list_users()])
    except Exception as e:
        return error_response(e, "fetch users")


@users_bp.post("")
@require_auth
@require_permission("MANAGE_USERS")
def create_user_route():
    try:
        data = json_payload()
        user = user_service.create_user(
            name=data.get("name"),
            email=data.get("email"),
            role=data.get("role"),
            store_location=data.get("storeLocation"),
            password=data.get("password"),
        )
        return success(201, user=user.to_dict())
    except Exception as e:
        return error_response(e, "create user")


@users_bp.put("")
@require_auth
@require_permission("MANAGE_USERS")
def update_user_route():
    try:
        data = json_payload()
        user = user_service.update_user(
            coerce_int(data["userId"], "userId"),
            data.get("updates") or {},
        )
        return success(user=user.to_dict())
    except Exception as e:
        return error_response(e, "update user")


@users_bp.delete("")
@require_auth
@require_permission("MANAGE_USERS")
def delete_user_route():
    try:
        data = json_payload()
        user_id = coerce_int(data["userId"], "userId")
        if user_id == g.current_user.id:
            return error("You cannot delete your own account", 400)
        user_service.delete_user(user_id)
        return success()
    except Exception as e:
        return error_response(e, "delete user")
