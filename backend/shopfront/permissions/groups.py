# Overview: Convenience permission bundles used when seeding roles.

from .definitions import Permission, PERMISSION_DEFINITIONS

PERMISSION_GROUPS = {
    "USERS_ALL": [
        Permission.USERS_CREATE,
        Permission.USERS_READ_ALL,
        Permission.USERS_UPDATE_ALL,
        Permission.USERS_DELETE,
        Permission.USERS_LIST,
    ],
    "STAFF_ALL": [
        Permission.STAFF_CREATE,
        Permission.STAFF_READ_ALL,
        Permission.STAFF_UPDATE_ALL,
        Permission.STAFF_DELETE,
        Permission.STAFF_LIST,
    ],
    "ROLES_ALL": [
        Permission.ROLES_CREATE,
        Permission.ROLES_READ,
        Permission.ROLES_UPDATE,
        Permission.ROLES_DELETE,
        Permission.ROLES_LIST,
    ],
    "PRODUCTS_ALL": [
        Permission.PRODUCTS_CREATE,
        Permission.PRODUCTS_READ,
        Permission.PRODUCTS_UPDATE,
        Permission.PRODUCTS_DELETE,
        Permission.PRODUCTS_LIST,
    ],
    "CATEGORIES_ALL": [
        Permission.CATEGORIES_CREATE,
        Permission.CATEGORIES_READ,
        Permission.CATEGORIES_UPDATE,
        Permission.CATEGORIES_DELETE,
        Permission.CATEGORIES_LIST,
    ],
    "ORDERS_ALL": [
        Permission.ORDERS_CREATE,
        Permission.ORDERS_READ_ALL,
        Permission.ORDERS_UPDATE_ALL,
        Permission.ORDERS_DELETE,
        Permission.ORDERS_LIST_ALL,
    ],
    # What a cashier-like role needs to work with its own orders
    "ORDERS_OWN": [
        Permission.ORDERS_CREATE,
        Permission.ORDERS_READ_OWN,
        Permission.ORDERS_UPDATE_OWN,
        Permission.ORDERS_LIST_OWN,
    ],
    "PRODUCT_HISTORY_ALL": [
        Permission.PRODUCT_HISTORY_CREATE,
        Permission.PRODUCT_HISTORY_READ,
        Permission.PRODUCT_HISTORY_LIST,
    ],
    "ALL": [perm[0] for perm in PERMISSION_DEFINITIONS],
}
