# Overview: Permission system package.
# Re-exports the permission catalog and the pure check functions.

from .categories import PermissionCategory, Resource, Action, Scope
from .definitions import (
    Permission,
    PERMISSION_DEFINITIONS,
    ALL_PERMISSIONS,
    USER_PERMISSIONS,
    STAFF_PERMISSIONS,
    ROLE_PERMISSIONS,
    PRODUCT_PERMISSIONS,
    CATEGORY_PERMISSIONS,
    ORDER_PERMISSIONS,
    PRODUCT_HISTORY_PERMISSIONS,
    AUDIT_LOG_PERMISSIONS,
)
from .groups import PERMISSION_GROUPS
from .helpers import (
    get_all_permission_codes,
    get_permissions_by_category,
    get_permission_definition,
    validate_permission_code,
    has_permission,
    has_any_permission,
    has_all_permissions,
    has_permission_with_scope,
    build_permission,
)

__all__ = [
    "PermissionCategory",
    "Resource",
    "Action",
    "Scope",
    "Permission",
    "PERMISSION_DEFINITIONS",
    "ALL_PERMISSIONS",
    "USER_PERMISSIONS",
    "STAFF_PERMISSIONS",
    "ROLE_PERMISSIONS",
    "PRODUCT_PERMISSIONS",
    "CATEGORY_PERMISSIONS",
    "ORDER_PERMISSIONS",
    "PRODUCT_HISTORY_PERMISSIONS",
    "AUDIT_LOG_PERMISSIONS",
    "PERMISSION_GROUPS",
    "get_all_permission_codes",
    "get_permissions_by_category",
    "get_permission_definition",
    "validate_permission_code",
    "has_permission",
    "has_any_permission",
    "has_all_permissions",
    "has_permission_with_scope",
    "build_permission",
]
