"""
Authentication tests.

Verifies:
- Login issues an access token and an httpOnly refresh cookie
- Unknown username and wrong password look identical to the caller
- Refresh rotates: the old token stops working, the new one works
- Revoked or unknown refresh tokens are rejected and logged
- Logout revokes the refresh token and clears the cookie
"""

import logging

from shopfront.context import ServiceContext
from shopfront.models import AuditLog, RefreshToken
from shopfront.services import auth_service, token_service
from shopfront.time_utils import utcnow

from conftest import TEST_PASSWORD, bearer, cookie_from_response, refresh_cookie_header


def login(client, username="admin", password=TEST_PASSWORD):
    return client.post("/api/public/auth/login", json={"username": username, "password": password})


class TestLogin:
    def test_success(self, client, db_session, admin):
        resp = login(client)
        assert resp.status_code == 200
        data = resp.get_json()["data"]
        assert data["token"]
        assert data["staff"]["username"] == "admin"
        assert "password_hash" not in data["staff"]

        cookie_headers = [h for h in resp.headers.getlist("Set-Cookie") if h.startswith("auth=")]
        assert cookie_headers
        assert "HttpOnly" in cookie_headers[0]
        assert "Path=/api/public/auth" in cookie_headers[0]

        assert db_session.query(RefreshToken).filter_by(staff_id=admin.id, revoked=False).count() == 1
        assert db_session.query(AuditLog).filter_by(action="LOGIN", entity_id=admin.id).count() == 1

    def test_wrong_password_and_unknown_user_look_the_same(self, client, admin):
        wrong = login(client, password="not-the-password")
        unknown = login(client, username="nobody")
        assert wrong.status_code == unknown.status_code == 401
        assert wrong.get_json() == unknown.get_json() == {"success": False, "error": "Unauthorized"}

    def test_short_password_is_validation_error(self, client, admin):
        resp = login(client, password="short")
        assert resp.status_code == 400

    def test_access_token_authenticates(self, client, admin):
        token = login(client).get_json()["data"]["token"]
        resp = client.get("/api/public/auth/me", headers=bearer(token))
        assert resp.status_code == 200
        me = resp.get_json()["data"]
        assert me["type"] == "staff"
        assert "orders:delete" in me["permissions"]


class TestRefresh:
    def test_rotation(self, client, admin):
        first = cookie_from_response(login(client))

        resp = client.post("/api/public/auth/refresh", headers=refresh_cookie_header(first))
        assert resp.status_code == 200
        assert resp.get_json()["data"]["token"]
        second = cookie_from_response(resp)
        assert second and second != first

        # Old token is spent
        replay = client.post("/api/public/auth/refresh", headers=refresh_cookie_header(first))
        assert replay.status_code == 401

        again = client.post("/api/public/auth/refresh", headers=refresh_cookie_header(second))
        assert again.status_code == 200

    def test_missing_cookie(self, client):
        resp = client.post("/api/public/auth/refresh")
        assert resp.status_code == 401

    def test_access_token_cannot_be_used_as_refresh(self, client, admin):
        access = login(client).get_json()["data"]["token"]
        resp = client.post("/api/public/auth/refresh", headers=refresh_cookie_header(access))
        assert resp.status_code == 401

    def test_refresh_token_cannot_be_used_as_bearer(self, client, admin):
        refresh = cookie_from_response(login(client))
        resp = client.get("/api/public/auth/me", headers=bearer(refresh))
        assert resp.status_code == 401

    def test_revoked_token_is_rejected_and_logged(self, app, db_session, admin, caplog):
        ctx = ServiceContext.system(db_session)
        token, expires_at = token_service.issue_refresh_token("staff", admin.id)
        auth_service.save_refresh_token(db_session, token, expires_at, staff_id=admin.id)
        db_session.commit()

        assert auth_service.validate_refresh_token(ctx, token) is not None
        assert auth_service.revoke_refresh_token(db_session, token) is True
        db_session.commit()

        with caplog.at_level(logging.WARNING):
            assert auth_service.validate_refresh_token(ctx, token) is None
        assert any("revoked" in r.getMessage() for r in caplog.records)

    def test_revoke_is_single_winner(self, db_session, admin):
        token, expires_at = token_service.issue_refresh_token("staff", admin.id)
        auth_service.save_refresh_token(db_session, token, expires_at, staff_id=admin.id)
        db_session.commit()

        assert auth_service.revoke_refresh_token(db_session, token) is True
        assert auth_service.revoke_refresh_token(db_session, token) is False

    def test_tokens_minted_together_are_distinct(self, app, admin):
        a, _ = token_service.issue_refresh_token("staff", admin.id)
        b, _ = token_service.issue_refresh_token("staff", admin.id)
        assert a != b
        assert token_service.hash_token(a) != token_service.hash_token(b)


class TestLogout:
    def test_revokes_and_clears_cookie(self, client, db_session, admin):
        refresh = cookie_from_response(login(client))

        resp = client.post("/api/public/auth/logout", headers=refresh_cookie_header(refresh))
        assert resp.status_code == 200
        assert cookie_from_response(resp) == ""

        record = db_session.query(RefreshToken).filter_by(token_hash=token_service.hash_token(refresh)).one()
        db_session.refresh(record)
        assert record.revoked is True
        assert db_session.query(AuditLog).filter_by(action="LOGOUT", entity_id=admin.id).count() == 1

        resp = client.post("/api/public/auth/refresh", headers=refresh_cookie_header(refresh))
        assert resp.status_code == 401

    def test_without_cookie_still_succeeds(self, client):
        resp = client.post("/api/public/auth/logout")
        assert resp.status_code == 200
        assert resp.get_json()["success"] is True


class TestUserProfile:
    def test_user_me(self, client, user_headers, customer):
        resp = client.get("/api/public/auth/me", headers=user_headers)
        assert resp.status_code == 200
        data = resp.get_json()["data"]
        assert data["type"] == "user"
        assert data["id"] == customer.id

    def test_deleted_user_token_is_rejected(self, client, db_session, user_headers, customer):
        customer.deleted_at = utcnow()
        db_session.commit()
        resp = client.get("/api/public/auth/me", headers=user_headers)
        assert resp.status_code == 401
