# Overview: Role type and the role -> permission table.
#
# Every Role member must have an entry in DEFAULT_ROLE_PERMISSIONS;
# permissions_for_role raises on anything else instead of denying silently.

from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    ADMIN = "admin"
    WAREHOUSE_MANAGER = "warehouse-manager"
    STORE_MANAGER = "store-manager"


def parse_role(value) -> Role:
    """Return the Role for a stored/submitted role string; ValueError if unknown."""
    if isinstance(value, Role):
        return value
    try:
        return Role(value)
    except ValueError:
        allowed = ", ".join(r.value for r in Role)
        raise ValueError(f"Invalid role {value!r}. Must be one of: {allowed}")


DEFAULT_ROLE_PERMISSIONS: dict[Role, frozenset[str]] = {
    Role.ADMIN: frozenset({
        "VIEW_INVENTORY",
        "MANAGE_INVENTORY",
        "VIEW_STOCK_ITEMS",
        "MANAGE_STOCK_ITEMS",
        "VIEW_REQUESTS",
        "CREATE_REQUESTS",
        "EDIT_REQUESTS",
        "PROCESS_REQUESTS",
        "DELETE_REQUESTS",
        "MANAGE_USERS",
    }),
    Role.WAREHOUSE_MANAGER: frozenset({
        "VIEW_INVENTORY",
        "MANAGE_INVENTORY",
        "VIEW_STOCK_ITEMS",
        "MANAGE_STOCK_ITEMS",
        "VIEW_REQUESTS",
        "PROCESS_REQUESTS",
        "DELETE_REQUESTS",
    }),
    Role.STORE_MANAGER: frozenset({
        "VIEW_INVENTORY",
        "VIEW_STOCK_ITEMS",
        "VIEW_REQUESTS",
        "CREATE_REQUESTS",
        "EDIT_REQUESTS",
    }),
}


def permissions_for_role(role) -> frozenset[str]:
    role = parse_role(role)
    try:
        return DEFAULT_ROLE_PERMISSIONS[role]
    except KeyError:
        raise LookupError(f"No permission table for role {role.value}")
