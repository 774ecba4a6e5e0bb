"""
Authorization tests.

Verifies:
- Unauthenticated requests to private endpoints return 401
- Staff without the route's permission get 403 (with required_permissions)
- Storefront user tokens are refused on back-office endpoints
- Staff tokens are refused on storefront order endpoints
- Root role can reach every private endpoint
"""

import pytest

from conftest import staff_headers


PRIVATE_ENDPOINTS = [
    ("GET", "/api/private/users"),
    ("POST", "/api/private/users"),
    ("GET", "/api/private/users/1"),
    ("GET", "/api/private/staff"),
    ("POST", "/api/private/staff"),
    ("GET", "/api/private/staff/roles"),
    ("POST", "/api/private/staff/roles"),
    ("GET", "/api/private/staff/permissions"),
    ("GET", "/api/private/categories"),
    ("POST", "/api/private/categories"),
    ("GET", "/api/private/categories/tree"),
    ("GET", "/api/private/products"),
    ("POST", "/api/private/products"),
    ("GET", "/api/private/product-history"),
    ("GET", "/api/private/orders"),
    ("POST", "/api/private/orders"),
    ("DELETE", "/api/private/orders/1"),
    ("GET", "/api/private/audit-logs"),
]


# =============================================================================
# UNAUTHENTICATED ACCESS - 401
# =============================================================================


class TestUnauthenticatedAccess:
    """All protected endpoints return 401 without a token."""

    @pytest.mark.parametrize("method,path", PRIVATE_ENDPOINTS)
    def test_requires_auth(self, client, method, path):
        resp = getattr(client, method.lower())(path)
        assert resp.status_code == 401, f"{method} {path} returned {resp.status_code}"
        assert resp.get_json() == {"success": False, "error": "Unauthorized"}

    @pytest.mark.parametrize("header", ["Bearer", "Bearer not-a-jwt", "Basic abc", "token"])
    def test_malformed_header(self, client, header):
        resp = client.get("/api/private/products", headers={"Authorization": header})
        assert resp.status_code == 401

    def test_token_for_missing_staff(self, client, db_session, admin, admin_headers):
        db_session.delete(admin)
        db_session.commit()
        resp = client.get("/api/private/products", headers=admin_headers)
        assert resp.status_code == 401


# =============================================================================
# CASHIER DENIED PRIVILEGED OPERATIONS - 403
# =============================================================================


class TestCashierDenied:
    """Cashier role (own orders, product reads) cannot manage anything else."""

    @pytest.mark.parametrize(
        "method,path,required",
        [
            ("GET", "/api/private/users", "users:list"),
            ("POST", "/api/private/staff", "staff:create"),
            ("GET", "/api/private/staff/roles", "roles:list"),
            ("POST", "/api/private/products", "products:create"),
            ("DELETE", "/api/private/products/1", "products:delete"),
            ("POST", "/api/private/categories", "categories:create"),
            ("DELETE", "/api/private/orders/1", "orders:delete"),
            ("GET", "/api/private/audit-logs", "audit-logs:list"),
            ("POST", "/api/private/product-history", "product-history:create"),
        ],
    )
    def test_forbidden(self, client, cashier_headers, method, path, required):
        resp = getattr(client, method.lower())(path, json={}, headers=cashier_headers)
        assert resp.status_code == 403, f"{method} {path} returned {resp.status_code}"
        body = resp.get_json()
        assert body["success"] is False
        assert body["error"] == "Forbidden"
        assert body["required_permissions"] == [required]

    def test_can_list_products(self, client, cashier_headers):
        resp = client.get("/api/private/products", headers=cashier_headers)
        assert resp.status_code == 200


class TestTokenTypes:
    def test_user_token_on_private_endpoint(self, client, user_headers):
        resp = client.get("/api/private/products", headers=user_headers)
        assert resp.status_code == 403

    def test_staff_token_on_storefront_orders(self, client, admin_headers):
        resp = client.get("/api/public/orders", headers=admin_headers)
        assert resp.status_code == 403

    def test_storefront_orders_need_auth(self, client):
        resp = client.get("/api/public/orders")
        assert resp.status_code == 401


class TestPermissionsAreLive:
    """Permissions are read from the role on every request, not from the token."""

    def test_role_change_applies_immediately(self, client, db_session, cashier, cashier_role, cashier_headers):
        assert client.get("/api/private/products", headers=cashier_headers).status_code == 200

        cashier_role.permissions = []
        db_session.commit()

        assert client.get("/api/private/products", headers=cashier_headers).status_code == 403


class TestRootAccess:
    @pytest.mark.parametrize(
        "path",
        [
            "/api/private/users",
            "/api/private/staff",
            "/api/private/staff/roles",
            "/api/private/staff/permissions",
            "/api/private/categories",
            "/api/private/categories/tree",
            "/api/private/products",
            "/api/private/product-history",
            "/api/private/orders",
            "/api/private/audit-logs",
        ],
    )
    def test_root_can_read(self, client, admin_headers, path):
        resp = client.get(path, headers=admin_headers)
        assert resp.status_code == 200, f"{path} returned {resp.status_code}"
        assert resp.get_json()["success"] is True


class TestScopeSubsumption:
    """Holding the :all token is enough on routes gated by the :own token."""

    def test_all_scope_only(self, client, make_role, make_staff, cashier):
        role = make_role("auditor", ["orders:list:all", "orders:read:all", "staff:read:all"])
        auditor = make_staff(role, username="auditor")
        headers = staff_headers(auditor)

        assert client.get("/api/private/orders", headers=headers).status_code == 200
        assert client.get(f"/api/private/staff/{cashier.id}", headers=headers).status_code == 200

    def test_no_scope_at_all(self, client, make_role, make_staff):
        role = make_role("nobody", [])
        headers = staff_headers(make_staff(role, username="nobody"))

        resp = client.get("/api/private/orders", headers=headers)
        assert resp.status_code == 403
        assert resp.get_json()["required_permissions"] == ["orders:list:own", "orders:list:all"]
