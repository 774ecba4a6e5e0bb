# Overview: Pure functions for permission lookups, validation and coverage checks.

from typing import Iterable, Optional

from .categories import Scope
from .definitions import ALL_PERMISSIONS, PERMISSION_DEFINITIONS


def get_all_permission_codes():
    """Get list of all permission codes."""
    return [perm[0] for perm in PERMISSION_DEFINITIONS]


def get_permissions_by_category(category):
    """Get all permissions in a category."""
    return [perm for perm in PERMISSION_DEFINITIONS if perm[3] == category]


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


def validate_permission_code(code) -> bool:
    """Check if a permission code is valid."""
    return code in ALL_PERMISSIONS


def has_permission(user_permissions: Iterable[str], required: str) -> bool:
    return required in set(user_permissions or ())


def has_any_permission(user_permissions: Iterable[str], required: Iterable[str]) -> bool:
    held = set(user_permissions or ())
    return any(code in held for code in required)


def has_all_permissions(user_permissions: Iterable[str], required: Iterable[str]) -> bool:
    """True when every required token is held. An empty requirement is satisfied."""
    held = set(user_permissions or ())
    return all(code in held for code in required)


def build_permission(resource: str, action: str, scope: Optional[str] = None) -> Optional[str]:
    """
    Compose resource:action[:scope] and validate it against the closed set.

    Returns None (not an error) when the composed token is not a known permission.
    """
    code = f"{resource}:{action}:{scope}" if scope else f"{resource}:{action}"
    return code if code in ALL_PERMISSIONS else None


def has_permission_with_scope(
    user_permissions: Iterable[str],
    resource: str,
    action: str,
    scope: Optional[str] = None,
) -> bool:
    """
    Scope-aware check: holding resource:action:all covers resource:action:own.

    The :all token is tried first (only if it exists for this resource/action),
    then the exact resource:action[:scope] token.
    """
    held = set(user_permissions or ())

    all_code = build_permission(resource, action, Scope.ALL)
    if all_code and all_code in held:
        return True

    exact = build_permission(resource, action, scope)
    return exact is not None and exact in held
