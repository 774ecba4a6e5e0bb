# Overview: Flask CLI command groups for bootstrap and inspection.

# backend/shopfront/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap:
# - python -m flask system init [--username admin] [--password "..."]
#   Idempotent: creates the "root" role holding every permission and a first staff account.
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Staff:
# - python -m flask staff list
# - python -m flask staff create --fullname "Jane Doe" --username jane --password "..." --role root
#
# Roles / permissions:
# - python -m flask roles list
# - python -m flask roles sync-root
#   Re-grant every known permission to the root role (run after adding permissions).
# - python -m flask perms list [--category ORDERS]

import click
from flask import current_app
from flask.cli import with_appcontext

from .context import ServiceContext
from .extensions import db
from .models import Role, Staff
from .permissions import PERMISSION_DEFINITIONS, PERMISSION_GROUPS, get_permissions_by_category
from .services import roles_service, staff_service

ROOT_ROLE_NAME = "root"


def _system_ctx() -> ServiceContext:
    return ServiceContext.system(db.session)


def _ensure_root_role(ctx: ServiceContext) -> Role:
    role = db.session.query(Role).filter_by(name=ROOT_ROLE_NAME).first()
    if role:
        return role
    result = roles_service.create_role(ctx, {"name": ROOT_ROLE_NAME, "permissions": PERMISSION_GROUPS["ALL"]})
    if not result.success:
        raise click.ClickException(f"FAIL Could not create root role: {result.error}")
    return db.session.get(Role, result.data["id"])


@click.group('system')
def system_group():
    """System bootstrap commands."""


@system_group.command('init')
@click.option('--fullname', default='Administrator', help='Full name of the first staff account')
@click.option('--username', default='admin', help='Username of the first staff account')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password')
@with_appcontext
def init_system(fullname, username, password):
    """
    Create the root role and the first staff account.

    Safe to re-run: existing rows are kept as they are.

    SECURITY: the root role holds every permission. Hand out narrower roles
    to everyone else.
    """
    click.echo("START Initializing shopfront...")
    ctx = _system_ctx()

    role = _ensure_root_role(ctx)
    click.echo(f"PASS Root role ready: {role.name} (ID: {role.id}, {len(role.permissions or [])} permissions)")

    existing = db.session.query(Staff).filter_by(username=username).first()
    if existing:
        click.echo(f"PASS Staff '{username}' already exists (ID: {existing.id})")
        return

    result = staff_service.create_staff(ctx, {
        "fullname": fullname,
        "username": username,
        "password": password,
        "role_id": role.id,
    })
    if not result.success:
        click.echo(f"FAIL Failed to create staff: {result.error}")
        return
    click.echo(f"PASS Created staff: {username} (ID: {result.data['id']}) with role '{ROOT_ROLE_NAME}'")
    click.echo("SECURITY Password hashed with argon2")


@system_group.command('reset-db')
@click.option('--yes', is_flag=True, help='Confirm dropping every table')
@with_appcontext
def reset_db(yes):
    """DEV/TEST only: drop and recreate all tables."""
    if current_app.config.get("APP_ENV") == "production":
        click.echo("FAIL Refusing to reset the database in production")
        return
    if not yes:
        click.echo("FAIL Pass --yes to confirm")
        return
    db.drop_all()
    db.create_all()
    click.echo("PASS Database reset")


@click.group('staff')
def staff_group():
    """Staff account commands."""


@staff_group.command('list')
@with_appcontext
def list_staff_cli():
    rows = db.session.query(Staff).order_by(Staff.id.asc()).all()
    if not rows:
        click.echo("No staff found. Run 'python -m flask system init' first.")
        return
    for staff in rows:
        role_name = staff.role.name if staff.role else "-"
        click.echo(f"{staff.id:>4}  {staff.username:<24} {staff.fullname:<32} role={role_name}")


@staff_group.command('create')
@click.option('--fullname', prompt=True, help='Full name')
@click.option('--username', prompt=True, help='Username')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password')
@click.option('--role', 'role_name', prompt=True, help='Role name')
@with_appcontext
def create_staff_cli(fullname, username, password, role_name):
    """Create a staff account with an existing role."""
    role = db.session.query(Role).filter_by(name=role_name).first()
    if not role:
        click.echo(f"FAIL Role '{role_name}' not found")
        return

    result = staff_service.create_staff(_system_ctx(), {
        "fullname": fullname,
        "username": username,
        "password": password,
        "role_id": role.id,
    })
    if not result.success:
        click.echo(f"FAIL Failed to create staff: {result.error}")
        return
    click.echo(f"PASS Created staff: {username} (ID: {result.data['id']}) with role '{role_name}'")


@click.group('roles')
def roles_group():
    """Role commands."""


@roles_group.command('list')
@with_appcontext
def list_roles_cli():
    for role in db.session.query(Role).order_by(Role.name.asc()).all():
        click.echo(f"{role.id:>4}  {role.name:<24} permissions={len(role.permissions or [])} staff={len(role.staff)}")


@roles_group.command('sync-root')
@with_appcontext
def sync_root_role():
    """Grant every known permission to the root role."""
    ctx = _system_ctx()
    role = _ensure_root_role(ctx)
    missing = sorted(set(PERMISSION_GROUPS["ALL"]) - set(role.permissions or []))
    if not missing:
        click.echo("PASS Root role already holds every permission")
        return

    result = roles_service.update_role(ctx, role.id, {"permissions": PERMISSION_GROUPS["ALL"]})
    if not result.success:
        click.echo(f"FAIL Failed to update root role: {result.error}")
        return
    click.echo(f"PASS Granted {len(missing)} permission(s) to root: {', '.join(missing)}")


@click.group('perms')
def perms_group():
    """Permission catalog commands."""


@perms_group.command('list')
@click.option('--category', help='Filter by category (e.g. ORDERS)')
@with_appcontext
def list_permissions_cli(category):
    categories = sorted({definition[3] for definition in PERMISSION_DEFINITIONS})
    if category:
        categories = [c for c in categories if c == category.upper()]
        if not categories:
            click.echo(f"FAIL Unknown category: {category}")
            return
    for name in categories:
        click.echo(name)
        for code, display_name, _description, _category in get_permissions_by_category(name):
            click.echo(f"  {code:<28} {display_name}")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(staff_group)
    app.cli.add_command(roles_group)
    app.cli.add_command(perms_group)
