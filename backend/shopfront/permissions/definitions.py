# Overview: All permission definitions organized by resource.
# Each permission is defined as: (code, name, description, category)
# Codes have the form resource:action or resource:action:scope.

from .categories import PermissionCategory


class Permission:
    """Permission token constants. The set is closed: nothing else is valid."""

    USERS_CREATE = "users:create"
    USERS_READ_OWN = "users:read:own"
    USERS_READ_ALL = "users:read:all"
    USERS_UPDATE_OWN = "users:update:own"
    USERS_UPDATE_ALL = "users:update:all"
    USERS_DELETE = "users:delete"
    USERS_LIST = "users:list"

    STAFF_CREATE = "staff:create"
    STAFF_READ_OWN = "staff:read:own"
    STAFF_READ_ALL = "staff:read:all"
    STAFF_UPDATE_OWN = "staff:update:own"
    STAFF_UPDATE_ALL = "staff:update:all"
    STAFF_DELETE = "staff:delete"
    STAFF_LIST = "staff:list"

    ROLES_CREATE = "roles:create"
    ROLES_READ = "roles:read"
    ROLES_UPDATE = "roles:update"
    ROLES_DELETE = "roles:delete"
    ROLES_LIST = "roles:list"

    PRODUCTS_CREATE = "products:create"
    PRODUCTS_READ = "products:read"
    PRODUCTS_UPDATE = "products:update"
    PRODUCTS_DELETE = "products:delete"
    PRODUCTS_LIST = "products:list"

    CATEGORIES_CREATE = "categories:create"
    CATEGORIES_READ = "categories:read"
    CATEGORIES_UPDATE = "categories:update"
    CATEGORIES_DELETE = "categories:delete"
    CATEGORIES_LIST = "categories:list"

    ORDERS_CREATE = "orders:create"
    ORDERS_READ_OWN = "orders:read:own"
    ORDERS_READ_ALL = "orders:read:all"
    ORDERS_UPDATE_OWN = "orders:update:own"
    ORDERS_UPDATE_ALL = "orders:update:all"
    ORDERS_DELETE = "orders:delete"
    ORDERS_LIST_OWN = "orders:list:own"
    ORDERS_LIST_ALL = "orders:list:all"

    # Product history is append-only: no update/delete tokens
    PRODUCT_HISTORY_CREATE = "product-history:create"
    PRODUCT_HISTORY_READ = "product-history:read"
    PRODUCT_HISTORY_LIST = "product-history:list"

    AUDIT_LOGS_READ = "audit-logs:read"
    AUDIT_LOGS_LIST = "audit-logs:list"


# -- USERS --

USER_PERMISSIONS = [
    (Permission.USERS_CREATE, "Create Users", "Register customer accounts", PermissionCategory.USERS),
    (Permission.USERS_READ_OWN, "Read Own User", "View own customer profile", PermissionCategory.USERS),
    (Permission.USERS_READ_ALL, "Read Users", "View any customer profile", PermissionCategory.USERS),
    (Permission.USERS_UPDATE_OWN, "Update Own User", "Edit own customer profile", PermissionCategory.USERS),
    (Permission.USERS_UPDATE_ALL, "Update Users", "Edit any customer profile", PermissionCategory.USERS),
    (Permission.USERS_DELETE, "Delete Users", "Soft-delete and restore customers", PermissionCategory.USERS),
    (Permission.USERS_LIST, "List Users", "Browse the customer list", PermissionCategory.USERS),
]


# -- STAFF --

STAFF_PERMISSIONS = [
    (Permission.STAFF_CREATE, "Create Staff", "Create staff accounts", PermissionCategory.STAFF),
    (Permission.STAFF_READ_OWN, "Read Own Staff", "View own staff profile", PermissionCategory.STAFF),
    (Permission.STAFF_READ_ALL, "Read Staff", "View any staff profile", PermissionCategory.STAFF),
    (Permission.STAFF_UPDATE_OWN, "Update Own Staff", "Edit own staff profile", PermissionCategory.STAFF),
    (Permission.STAFF_UPDATE_ALL, "Update Staff", "Edit any staff profile, including roles", PermissionCategory.STAFF),
    (Permission.STAFF_DELETE, "Delete Staff", "Remove staff accounts", PermissionCategory.STAFF),
    (Permission.STAFF_LIST, "List Staff", "Browse the staff list", PermissionCategory.STAFF),
]


# -- ROLES --

ROLE_PERMISSIONS = [
    (Permission.ROLES_CREATE, "Create Roles", "Define new roles", PermissionCategory.ROLES),
    (Permission.ROLES_READ, "Read Roles", "View a role and the permission catalog", PermissionCategory.ROLES),
    (Permission.ROLES_UPDATE, "Update Roles", "Rename roles and change their permissions", PermissionCategory.ROLES),
    (Permission.ROLES_DELETE, "Delete Roles", "Delete roles with no staff assigned", PermissionCategory.ROLES),
    (Permission.ROLES_LIST, "List Roles", "Browse roles", PermissionCategory.ROLES),
]


# -- CATALOG --

PRODUCT_PERMISSIONS = [
    (Permission.PRODUCTS_CREATE, "Create Products", "Add products to the catalog", PermissionCategory.PRODUCTS),
    (Permission.PRODUCTS_READ, "Read Products", "View product details including cost price", PermissionCategory.PRODUCTS),
    (Permission.PRODUCTS_UPDATE, "Update Products", "Edit products and restore deleted ones", PermissionCategory.PRODUCTS),
    (Permission.PRODUCTS_DELETE, "Delete Products", "Soft-delete products", PermissionCategory.PRODUCTS),
    (Permission.PRODUCTS_LIST, "List Products", "Browse products including deleted ones", PermissionCategory.PRODUCTS),
]

CATEGORY_PERMISSIONS = [
    (Permission.CATEGORIES_CREATE, "Create Categories", "Add categories to the tree", PermissionCategory.CATEGORIES),
    (Permission.CATEGORIES_READ, "Read Categories", "View a category", PermissionCategory.CATEGORIES),
    (Permission.CATEGORIES_UPDATE, "Update Categories", "Rename or move categories", PermissionCategory.CATEGORIES),
    (Permission.CATEGORIES_DELETE, "Delete Categories", "Delete empty leaf categories", PermissionCategory.CATEGORIES),
    (Permission.CATEGORIES_LIST, "List Categories", "Browse categories and the tree", PermissionCategory.CATEGORIES),
]


# -- ORDERS --

ORDER_PERMISSIONS = [
    (Permission.ORDERS_CREATE, "Create Orders", "Place orders on behalf of customers", PermissionCategory.ORDERS),
    (Permission.ORDERS_READ_OWN, "Read Own Orders", "View orders you created", PermissionCategory.ORDERS),
    (Permission.ORDERS_READ_ALL, "Read Orders", "View any order", PermissionCategory.ORDERS),
    (Permission.ORDERS_UPDATE_OWN, "Update Own Orders", "Edit orders you created", PermissionCategory.ORDERS),
    (Permission.ORDERS_UPDATE_ALL, "Update Orders", "Edit any order", PermissionCategory.ORDERS),
    (Permission.ORDERS_DELETE, "Delete Orders", "Delete orders and restore their stock", PermissionCategory.ORDERS),
    (Permission.ORDERS_LIST_OWN, "List Own Orders", "Browse orders you created", PermissionCategory.ORDERS),
    (Permission.ORDERS_LIST_ALL, "List Orders", "Browse and filter all orders", PermissionCategory.ORDERS),
]


# -- HISTORY / AUDIT --

PRODUCT_HISTORY_PERMISSIONS = [
    (Permission.PRODUCT_HISTORY_CREATE, "Adjust Inventory", "Record manual stock adjustments", PermissionCategory.PRODUCT_HISTORY),
    (Permission.PRODUCT_HISTORY_READ, "Read Product History", "View a history entry", PermissionCategory.PRODUCT_HISTORY),
    (Permission.PRODUCT_HISTORY_LIST, "List Product History", "Browse product history", PermissionCategory.PRODUCT_HISTORY),
]

AUDIT_LOG_PERMISSIONS = [
    (Permission.AUDIT_LOGS_READ, "Read Audit Log", "View audit entries by id, request or entity", PermissionCategory.AUDIT_LOGS),
    (Permission.AUDIT_LOGS_LIST, "List Audit Log", "Browse and filter the audit trail", PermissionCategory.AUDIT_LOGS),
]


PERMISSION_DEFINITIONS = (
    USER_PERMISSIONS
    + STAFF_PERMISSIONS
    + ROLE_PERMISSIONS
    + PRODUCT_PERMISSIONS
    + CATEGORY_PERMISSIONS
    + ORDER_PERMISSIONS
    + PRODUCT_HISTORY_PERMISSIONS
    + AUDIT_LOG_PERMISSIONS
)

ALL_PERMISSIONS = frozenset(perm[0] for perm in PERMISSION_DEFINITIONS)
