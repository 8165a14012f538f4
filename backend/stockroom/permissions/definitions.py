# Overview: All permission definitions organized by category.
# Each permission is defined as: (code, name, description, category)

from .categories import PermissionCategory


# -- INVENTORY --

INVENTORY_PERMISSIONS = [
    (
        "VIEW_INVENTORY",
        "View Inventory",
        "View warehouse available quantities",
        PermissionCategory.INVENTORY,
    ),
    (
        "MANAGE_INVENTORY",
        "Manage Inventory",
        "Receive stock, create and delete products",
        PermissionCategory.INVENTORY,
    ),
]


# -- CATALOG --

CATALOG_PERMISSIONS = [
    (
        "VIEW_STOCK_ITEMS",
        "View Stock Items",
        "View the product catalog and look up barcodes",
        PermissionCategory.CATALOG,
    ),
    (
        "MANAGE_STOCK_ITEMS",
        "Manage Stock Items",
        "Add products to the catalog",
        PermissionCategory.CATALOG,
    ),
]


# -- REQUESTS --

REQUEST_PERMISSIONS = [
    (
        "VIEW_REQUESTS",
        "View Requests",
        "View stock requests (store managers see their own store only)",
        PermissionCategory.REQUESTS,
    ),
    (
        "CREATE_REQUESTS",
        "Create Requests",
        "Submit stock requests for a store",
        PermissionCategory.REQUESTS,
    ),
    (
        "EDIT_REQUESTS",
        "Edit Requests",
        "Edit or cancel pending requests for a store",
        PermissionCategory.REQUESTS,
    ),
    (
        "PROCESS_REQUESTS",
        "Process Requests",
        "Accept, reject, fulfil and ship requests",
        PermissionCategory.REQUESTS,
    ),
    (
        "DELETE_REQUESTS",
        "Delete Requests",
        "Delete requests in any state (administrative override)",
        PermissionCategory.REQUESTS,
    ),
]


# -- USERS --

USER_PERMISSIONS = [
    (
        "MANAGE_USERS",
        "Manage Users",
        "Create, edit and delete user accounts",
        PermissionCategory.USERS,
    ),
]


PERMISSION_DEFINITIONS = (
    INVENTORY_PERMISSIONS
    + CATALOG_PERMISSIONS
    + REQUEST_PERMISSIONS
    + USER_PERMISSIONS
)
