"""
Permission catalog and checker tests.

Verifies:
- Every token follows resource:action[:scope] and is unique
- Scope-aware checks (:all covers :own)
- Groups only reference known tokens
"""

import pytest

from shopfront.permissions import (
    ALL_PERMISSIONS,
    PERMISSION_DEFINITIONS,
    PERMISSION_GROUPS,
    Action,
    Permission,
    Resource,
    Scope,
    build_permission,
    get_all_permission_codes,
    get_permission_definition,
    get_permissions_by_category,
    has_all_permissions,
    has_any_permission,
    has_permission,
    has_permission_with_scope,
    validate_permission_code,
)


class TestCatalog:
    def test_codes_are_unique(self):
        codes = [d[0] for d in PERMISSION_DEFINITIONS]
        assert len(codes) == len(set(codes))
        assert set(codes) == ALL_PERMISSIONS

    def test_codes_follow_token_grammar(self):
        for code in get_all_permission_codes():
            parts = code.split(":")
            assert len(parts) in (2, 3), code
            assert parts[0] in Resource.ALL, code
            assert parts[1] in Action.ALL, code
            if len(parts) == 3:
                assert parts[2] in (Scope.OWN, Scope.ALL), code

    def test_groups_reference_known_tokens(self):
        for name, codes in PERMISSION_GROUPS.items():
            for code in codes:
                assert validate_permission_code(code), f"{name}: {code}"

    def test_all_group_holds_every_permission(self):
        assert set(PERMISSION_GROUPS["ALL"]) == ALL_PERMISSIONS

    def test_definition_lookup(self):
        definition = get_permission_definition(Permission.ORDERS_DELETE)
        assert definition["code"] == "orders:delete"
        assert definition["category"] == "ORDERS"
        assert get_permission_definition("orders:explode") is None

    def test_by_category(self):
        codes = {d[0] for d in get_permissions_by_category("AUDIT_LOGS")}
        assert codes == {Permission.AUDIT_LOGS_READ, Permission.AUDIT_LOGS_LIST}


class TestCheckers:
    def test_has_permission(self):
        assert has_permission(["orders:create"], "orders:create")
        assert not has_permission(["orders:create"], "orders:delete")
        assert not has_permission(None, "orders:create")

    def test_any_and_all(self):
        held = ["products:read", "products:list"]
        assert has_any_permission(held, ["products:delete", "products:read"])
        assert not has_any_permission(held, ["products:delete"])
        assert has_all_permissions(held, ["products:read", "products:list"])
        assert not has_all_permissions(held, ["products:read", "products:delete"])
        assert has_all_permissions(held, [])

    def test_build_permission_rejects_unknown(self):
        assert build_permission("orders", "read", "own") == "orders:read:own"
        assert build_permission("products", "read") == "products:read"
        assert build_permission("products", "read", "own") is None
        assert build_permission("nothing", "read") is None

    @pytest.mark.parametrize(
        "held,scope,expected",
        [
            (["orders:read:all"], Scope.OWN, True),
            (["orders:read:all"], Scope.ALL, True),
            (["orders:read:own"], Scope.OWN, True),
            (["orders:read:own"], Scope.ALL, False),
            ([], Scope.OWN, False),
        ],
    )
    def test_scope_all_covers_own(self, held, scope, expected):
        assert has_permission_with_scope(held, Resource.ORDERS, Action.READ, scope) is expected

    def test_unscoped_resource(self):
        assert has_permission_with_scope(["products:read"], Resource.PRODUCTS, Action.READ)
        assert not has_permission_with_scope([], Resource.PRODUCTS, Action.READ)
