"""
CLI command tests (flask system / staff / roles / perms).
"""

from shopfront.cli import ROOT_ROLE_NAME
from shopfront.models import AuditLog, Role, Staff
from shopfront.permissions import ALL_PERMISSIONS


def test_system_init_is_idempotent(app, db_session):
    runner = app.test_cli_runner()

    result = runner.invoke(args=["system", "init", "--username", "boss", "--password", "Password123"])
    assert result.exit_code == 0, result.output
    assert "PASS Created staff: boss" in result.output

    role = db_session.query(Role).filter_by(name=ROOT_ROLE_NAME).one()
    assert set(role.permissions) == ALL_PERMISSIONS
    staff = db_session.query(Staff).filter_by(username="boss").one()
    assert staff.role_id == role.id
    assert db_session.query(AuditLog).filter_by(actor_type="SYSTEM").count() == 2

    result = runner.invoke(args=["system", "init", "--username", "boss", "--password", "Password123"])
    assert "already exists" in result.output
    assert db_session.query(Staff).count() == 1


def test_staff_create_unknown_role(app, db_session):
    runner = app.test_cli_runner()
    result = runner.invoke(args=[
        "staff", "create",
        "--fullname", "Jane", "--username", "jane", "--password", "Password123", "--role", "ghost",
    ])
    assert "FAIL Role 'ghost' not found" in result.output
    assert db_session.query(Staff).count() == 0


def test_sync_root_grants_missing(app, db_session, make_role):
    make_role(ROOT_ROLE_NAME, ["orders:create"])
    runner = app.test_cli_runner()

    result = runner.invoke(args=["roles", "sync-root"])
    assert "PASS Granted" in result.output
    role = db_session.query(Role).filter_by(name=ROOT_ROLE_NAME).one()
    assert set(role.permissions) == ALL_PERMISSIONS

    result = runner.invoke(args=["roles", "sync-root"])
    assert "already holds every permission" in result.output


def test_perms_list(app):
    runner = app.test_cli_runner()

    result = runner.invoke(args=["perms", "list", "--category", "orders"])
    assert "orders:list:all" in result.output
    assert "users:create" not in result.output

    result = runner.invoke(args=["perms", "list", "--category", "bogus"])
    assert "FAIL Unknown category" in result.output
