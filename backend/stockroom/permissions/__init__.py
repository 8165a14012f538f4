# Overview: Permission system package.
# Single authorization boundary: roles, permission codes and store scoping.

from .categories import PermissionCategory
from .definitions import (
    PERMISSION_DEFINITIONS,
    INVENTORY_PERMISSIONS,
    CATALOG_PERMISSIONS,
    REQUEST_PERMISSIONS,
    USER_PERMISSIONS,
)
from .roles import Role, DEFAULT_ROLE_PERMISSIONS, parse_role, permissions_for_role
from .helpers import (
    PermissionDeniedError,
    get_all_permission_codes,
    get_permission_definition,
    validate_permission_code,
    user_has_permission,
    require_user_permission,
    request_scope,
    assert_store_scope,
)

__all__ = [
    "PermissionCategory",
    "PERMISSION_DEFINITIONS",
    "INVENTORY_PERMISSIONS",
    "CATALOG_PERMISSIONS",
    "REQUEST_PERMISSIONS",
    "USER_PERMISSIONS",
    "Role",
    "DEFAULT_ROLE_PERMISSIONS",
    "parse_role",
    "permissions_for_role",
    "PermissionDeniedError",
    "get_all_permission_codes",
    "get_permission_definition",
    "validate_permission_code",
    "user_has_permission",
    "require_user_permission",
    "request_scope",
    "assert_store_scope",
]
