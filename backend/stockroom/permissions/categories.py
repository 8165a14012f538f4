# Overview: Permission category constants for grouping related permissions.


class PermissionCategory:
    """Permission categories for organization and UI display."""
    INVENTORY = "INVENTORY"
    CATALOG = "CATALOG"
    REQUESTS = "REQUESTS"
    USERS = "USERS"
