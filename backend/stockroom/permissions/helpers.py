# Overview: Permission lookups and the store-scope guard used by routes and services.

from __future__ import annotations

from .definitions import PERMISSION_DEFINITIONS
from .roles import Role, parse_role, permissions_for_role


class PermissionDeniedError(Exception):
    """Raised when the acting user is not allowed to perform an action."""
    pass


def get_all_permission_codes():
    """Get list of all permission codes."""
    return [perm[0] for perm in PERMISSION_DEFINITIONS]


def get_permission_definition(code):
    """Get full definition for a permission code."""
    for perm in PERMISSION_DEFINITIONS:
        if perm[0] == code:
            return {
                "code": perm[0],
                "name": perm[1],
                "description": perm[2],
                "category": perm[3],
            }
    return None


def validate_permission_code(code):
    """Check if a permission code is valid."""
    return code in get_all_permission_codes()


def user_has_permission(user, permission_code: str) -> bool:
    if user is None:
        return False
    return permission_code in permissions_for_role(user.role)


def require_user_permission(user, permission_code: str) -> None:
    if not user_has_permission(user, permission_code):
        raise PermissionDeniedError(f"Permission {permission_code} required")


def request_scope(user) -> str | None:
    """
    Store location the user is confined to, or None for warehouse-wide access.

    Store managers are confined to their own store; everyone else sees all.
    """
    role = parse_role(user.role)
    if role is Role.STORE_MANAGER:
        return user.store_location
    if role in (Role.ADMIN, Role.WAREHOUSE_MANAGER):
        return None
    raise LookupError(f"Unhandled role {role.value}")


def assert_store_scope(user, store_location: str) -> None:
    """
    Ensure the user may act on behalf of store_location.

    Admins act for any store. Store managers only for their own.
    Warehouse managers never act for a store.
    """
    if user is None:
        raise PermissionDeniedError("Authentication required")
    role = parse_role(user.role)
    if role is Role.ADMIN:
        return
    if role is Role.STORE_MANAGER:
        if not user.store_location or user.store_location != store_location:
            raise PermissionDeniedError(f"Not allowed to act for store {store_location}")
        return
    if role is Role.WAREHOUSE_MANAGER:
        raise PermissionDeniedError("Warehouse managers cannot act on behalf of a store")
    raise LookupError(f"Unhandled role {role.value}")
