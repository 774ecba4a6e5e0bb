"""
Application wiring tests: health check, envelopes for framework errors,
request ids, CORS and the catch-all error handler.
"""

from werkzeug.middleware.proxy_fix import ProxyFix

from shopfront import create_app
from shopfront.models import AuditLog
from shopfront.services import users_service


def test_health(client):
    resp = client.get("/api/health")
    assert resp.status_code == 200
    body = resp.get_json()
    assert body["success"] is True
    assert body["data"]["status"] == "ok"
    assert body["data"]["database"]["status"] == "healthy"


def test_unknown_route_uses_envelope(client):
    resp = client.get("/api/nope")
    assert resp.status_code == 404
    assert resp.get_json() == {"success": False, "error": "Not Found"}


def test_wrong_method_uses_envelope(client):
    resp = client.put("/api/health")
    assert resp.status_code == 405
    assert resp.get_json()["success"] is False


def test_request_id_generated(client):
    resp = client.get("/api/health")
    assert len(resp.headers["X-Request-Id"]) == 32


def test_request_id_echoed(client):
    resp = client.get("/api/health", headers={"X-Request-Id": "trace-abc"})
    assert resp.headers["X-Request-Id"] == "trace-abc"


def test_oversized_request_id_replaced(client):
    resp = client.get("/api/health", headers={"X-Request-Id": "x" * 200})
    assert resp.headers["X-Request-Id"] != "x" * 200


def test_cors_allowed_origin(client):
    resp = client.get("/api/health", headers={"Origin": "http://localhost:5173"})
    assert resp.headers["Access-Control-Allow-Origin"] == "http://localhost:5173"
    assert resp.headers["Access-Control-Allow-Credentials"] == "true"


def test_cors_unknown_origin(client):
    resp = client.get("/api/health", headers={"Origin": "https://evil.example"})
    assert "Access-Control-Allow-Origin" not in resp.headers


def test_unexpected_error_is_not_leaked(client, admin_headers, monkeypatch, caplog):
    def explode(*args, **kwargs):
        raise RuntimeError("connection string with password")

    monkeypatch.setattr(users_service, "list_users", explode)

    resp = client.get("/api/private/users", headers=admin_headers)
    assert resp.status_code == 500
    assert resp.get_json() == {"success": False, "error": "Internal Server Error"}
    assert "password" not in resp.get_data(as_text=True)
    assert any(r.exc_info for r in caplog.records)


def test_malformed_json_is_rejected(client, admin_headers):
    resp = client.post(
        "/api/private/categories",
        data="{not json",
        headers={**admin_headers, "Content-Type": "application/json"},
    )
    assert resp.status_code == 400
    assert resp.get_json()["success"] is False


def test_forwarded_for_is_ignored_without_trusted_proxy(client, db_session, admin_headers):
    resp = client.post(
        "/api/private/categories",
        json={"name": "Spoofed"},
        headers={**admin_headers, "X-Forwarded-For": "6.6.6.6"},
        environ_base={"REMOTE_ADDR": "10.0.0.7"},
    )
    assert resp.status_code == 200
    entry = db_session.query(AuditLog).one()
    assert entry.meta["ip_address"] == "10.0.0.7"


def test_trusted_proxy_count_installs_proxy_fix(app):
    assert not isinstance(app.wsgi_app, ProxyFix)

    proxied = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'APP_ENV': 'test',
        'TRUSTED_PROXY_COUNT': 1,
    })
    assert isinstance(proxied.wsgi_app, ProxyFix)
