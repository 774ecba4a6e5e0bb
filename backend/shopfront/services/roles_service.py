# Overview: Service-layer operations for roles; encapsulates business logic and database work.

"""
Role management.

A role is a name plus a list of permission codes. Codes are validated
against the closed catalog, deduplicated and stored sorted so that
"did the permissions change?" is a plain list comparison.

Deleting a role that still has staff assigned is refused.
"""

from sqlalchemy import func

from ..context import ServiceContext
from ..models import Role, Staff
from ..permissions import validate_permission_code
from ..results import ok, fail, not_found
from .audit_service import AuditEntry, ENTITY_ROLE, audit_in_transaction


def normalize_permissions(codes) -> list[str] | str:
    """Sorted unique codes, or an error string naming the first bad code."""
    if not isinstance(codes, list):
        return "permissions must be a list"
    for code in codes:
        if not isinstance(code, str) or not validate_permission_code(code):
            return f"Invalid permission: {code}"
    return sorted(set(codes))


def _staff_counts(session) -> dict[int, int]:
    rows = session.query(Staff.role_id, func.count(Staff.id)).group_by(Staff.role_id).all()
    return {role_id: count for role_id, count in rows}


def list_roles(ctx: ServiceContext, *, page: int = 1, limit: int = 20, search: str | None = None):
    query = ctx.session.query(Role)
    if search:
        query = query.filter(Role.name.ilike(f"%{search}%"))

    count = query.count()
    roles = query.order_by(Role.id.asc()).offset((page - 1) * limit).limit(limit).all()
    counts = _staff_counts(ctx.session)

    items = []
    for role in roles:
        data = role.to_dict()
        data["staff_count"] = counts.get(role.id, 0)
        items.append(data)
    return ok({"count": count, "roles": items})


def get_role(ctx: ServiceContext, role_id: int):
    role = ctx.session.get(Role, role_id)
    if role is None:
        ctx.logger.warning("Roles: Role not found", roleId=role_id)
        return not_found("Role not found")
    data = role.to_dict()
    data["staff_count"] = _staff_counts(ctx.session).get(role.id, 0)
    return ok(data)


def create_role(ctx: ServiceContext, patch: dict):
    session = ctx.session

    permissions = normalize_permissions(patch.get("permissions", []))
    if isinstance(permissions, str):
        return fail(permissions)

    if session.query(Role).filter_by(name=patch["name"]).first():
        ctx.logger.warning("Roles: Role name already exists", name=patch["name"])
        return fail("Role name already exists")

    role = Role(name=patch["name"], permissions=permissions)
    session.add(role)
    session.flush()

    audit_in_transaction(session, ctx, AuditEntry(
        entity_type=ENTITY_ROLE,
        entity_id=role.id,
        action="CREATE",
        new_data=role.to_dict(),
    ))
    session.commit()

    ctx.logger.info("Roles: Role created", roleId=role.id)
    return ok(role.to_dict())


def update_role(ctx: ServiceContext, role_id: int, patch: dict):
    """
    Rename and/or replace the permission list.

    Audited as PERMISSION_CHANGE when the permission list changes,
    otherwise UPDATE.
    """
    session = ctx.session
    role = session.get(Role, role_id)
    if role is None:
        ctx.logger.warning("Roles: Role not found", roleId=role_id)
        return not_found("Role not found")

    if "name" in patch and patch["name"] != role.name:
        clash = session.query(Role).filter(Role.name == patch["name"], Role.id != role_id).first()
        if clash:
            ctx.logger.warning("Roles: Role name already exists", name=patch["name"])
            return fail("Role name already exists")

    new_permissions = None
    if "permissions" in patch:
        new_permissions = normalize_permissions(patch["permissions"])
        if isinstance(new_permissions, str):
            return fail(new_permissions)

    before = role.to_dict()
    permissions_changed = new_permissions is not None and new_permissions != sorted(role.permissions or [])

    if "name" in patch:
        role.name = patch["name"]
    if new_permissions is not None:
        role.permissions = new_permissions
    session.flush()

    audit_in_transaction(session, ctx, AuditEntry(
        entity_type=ENTITY_ROLE,
        entity_id=role.id,
        action="PERMISSION_CHANGE" if permissions_changed else "UPDATE",
        previous_data=before,
        new_data=role.to_dict(),
    ))
    session.commit()

    ctx.logger.info("Roles: Role updated", roleId=role.id, permissionsChanged=permissions_changed)
    return ok(role.to_dict())


def delete_role(ctx: ServiceContext, role_id: int):
    session = ctx.session
    role = session.get(Role, role_id)
    if role is None:
        ctx.logger.warning("Roles: Role not found", roleId=role_id)
        return not_found("Role not found")

    assigned = session.query(func.count(Staff.id)).filter(Staff.role_id == role_id).scalar()
    if assigned:
        ctx.logger.warning("Roles: Role has assigned staff", roleId=role_id, staffCount=assigned)
        return fail(f"Cannot delete role with {assigned} assigned staff member(s)")

    before = role.to_dict()
    session.delete(role)
    session.flush()

    audit_in_transaction(session, ctx, AuditEntry(
        entity_type=ENTITY_ROLE,
        entity_id=role_id,
        action="DELETE",
        previous_data=before,
    ))
    session.commit()

    ctx.logger.info("Roles: Role deleted", roleId=role_id)
    return ok({"role_id": role_id, "deleted": True})
