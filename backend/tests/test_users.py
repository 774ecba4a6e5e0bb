"""
Customer administration tests.

Verifies:
- Create/update with uniqueness and language checks
- Soft delete hides users from lists and blocks updates until restored
"""

import pytest

from shopfront.models import AuditLog


class TestUsers:
    def test_create(self, client, db_session, admin_headers):
        resp = client.post(
            "/api/private/users",
            json={"fullname": "Dilnoza", "phone": "+998901234567", "language": "ru"},
            headers=admin_headers,
        )
        assert resp.status_code == 200
        data = resp.get_json()["data"]
        assert data["language"] == "ru"
        assert data["deleted_at"] is None
        assert db_session.query(AuditLog).filter_by(entity_type="user", action="CREATE").count() == 1

    def test_default_language(self, client, admin_headers):
        resp = client.post("/api/private/users", json={"fullname": "Default"}, headers=admin_headers)
        assert resp.get_json()["data"]["language"] == "uz"

    @pytest.mark.parametrize(
        "body",
        [
            {},
            {"fullname": "X", "language": "en"},
            {"fullname": "X", "deleted_at": "2024-01-01T00:00:00Z"},
        ],
    )
    def test_invalid(self, client, admin_headers, body):
        resp = client.post("/api/private/users", json=body, headers=admin_headers)
        assert resp.status_code == 400

    def test_duplicate_phone(self, client, admin_headers, make_user):
        make_user(phone="+998900000000")
        resp = client.post(
            "/api/private/users",
            json={"fullname": "Copy", "phone": "+998900000000"},
            headers=admin_headers,
        )
        assert resp.status_code == 400
        assert resp.get_json()["error"] == "Phone already exists"

    def test_update(self, client, admin_headers, customer):
        resp = client.put(f"/api/private/users/{customer.id}", json={"fullname": "Alice B."}, headers=admin_headers)
        assert resp.status_code == 200
        assert resp.get_json()["data"]["fullname"] == "Alice B."

    def test_soft_delete_and_restore(self, client, admin_headers, customer):
        resp = client.delete(f"/api/private/users/{customer.id}", headers=admin_headers)
        assert resp.status_code == 200

        listed = client.get("/api/private/users", headers=admin_headers).get_json()["data"]
        assert listed["count"] == 0
        listed = client.get("/api/private/users?include_deleted=1", headers=admin_headers).get_json()["data"]
        assert listed["count"] == 1

        resp = client.put(f"/api/private/users/{customer.id}", json={"fullname": "Nope"}, headers=admin_headers)
        assert resp.status_code == 400
        assert resp.get_json()["error"] == "Cannot update deleted user"

        assert client.delete(f"/api/private/users/{customer.id}", headers=admin_headers).status_code == 400

        resp = client.post(f"/api/private/users/{customer.id}/restore", headers=admin_headers)
        assert resp.status_code == 200
        assert resp.get_json()["data"]["deleted_at"] is None

    def test_get_missing(self, client, admin_headers):
        resp = client.get("/api/private/users/404", headers=admin_headers)
        assert resp.status_code == 404
        assert resp.get_json() == {"success": False, "error": "User not found"}

    def test_search(self, client, admin_headers, make_user):
        make_user(fullname="Timur", phone="+998911111111")
        make_user(fullname="Zarina")
        data = client.get("/api/private/users?search=9111", headers=admin_headers).get_json()["data"]
        assert [u["fullname"] for u in data["users"]] == ["Timur"]
