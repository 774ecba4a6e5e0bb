# Overview: Resource, action and scope vocabularies for permission tokens.


class PermissionCategory:
    """Permission categories for grouping and UI display (one per resource)."""
    USERS = "USERS"
    STAFF = "STAFF"
    ROLES = "ROLES"
    PRODUCTS = "PRODUCTS"
    CATEGORIES = "CATEGORIES"
    ORDERS = "ORDERS"
    PRODUCT_HISTORY = "PRODUCT_HISTORY"
    AUDIT_LOGS = "AUDIT_LOGS"


class Resource:
    USERS = "users"
    STAFF = "staff"
    ROLES = "roles"
    PRODUCTS = "products"
    CATEGORIES = "categories"
    ORDERS = "orders"
    PRODUCT_HISTORY = "product-history"
    AUDIT_LOGS = "audit-logs"

    ALL = (USERS, STAFF, ROLES, PRODUCTS, CATEGORIES, ORDERS, PRODUCT_HISTORY, AUDIT_LOGS)


class Action:
    CREATE = "create"
    READ = "read"
    UPDATE = "update"
    DELETE = "delete"
    LIST = "list"

    ALL = (CREATE, READ, UPDATE, DELETE, LIST)


class Scope:
    OWN = "own"
    ALL = "all"

    VALUES = (OWN, ALL)
