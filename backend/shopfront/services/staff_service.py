# Overview: Service-layer operations for staff accounts.

"""
Staff management.

OWNERSHIP: reading/updating another staff member needs staff:read:all /
staff:update:all; the own-profile variants are enough for yourself.
Changing your own role also requires staff:update:all, so nobody can
promote themselves.

AUDIT: password changes are recorded as PASSWORD_CHANGE, role changes as
PERMISSION_CHANGE, anything else as UPDATE. Password hashes never enter
audit snapshots.
"""

from sqlalchemy import or_

from ..context import ServiceContext
from ..models import Role, Staff
from ..permissions import Action, Resource, Scope
from ..results import ok, fail, forbidden, not_found
from .audit_service import AuditEntry, ENTITY_STAFF, audit_in_transaction
from .auth_service import PasswordValidationError, hash_password, revoke_all_for_staff


def list_staff(
    ctx: ServiceContext,
    *,
    page: int = 1,
    limit: int = 20,
    search: str | None = None,
    role_id: int | None = None,
):
    query = ctx.session.query(Staff)
    if search:
        pattern = f"%{search}%"
        query = query.filter(or_(Staff.fullname.ilike(pattern), Staff.username.ilike(pattern)))
    if role_id is not None:
        query = query.filter(Staff.role_id == role_id)

    count = query.count()
    rows = query.order_by(Staff.id.asc()).offset((page - 1) * limit).limit(limit).all()
    return ok({"count": count, "staff": [s.to_dict(include_role=True) for s in rows]})


def get_staff(ctx: ServiceContext, staff_id: int):
    if staff_id != ctx.staff_id and not ctx.can(Resource.STAFF, Action.READ, Scope.ALL):
        ctx.logger.warning(
            "Staff: Insufficient permissions to read other staff",
            staffId=staff_id,
            actorId=ctx.staff_id,
        )
        return forbidden()

    staff = ctx.session.get(Staff, staff_id)
    if staff is None:
        ctx.logger.warning("Staff: Staff not found", staffId=staff_id)
        return not_found("Staff not found")
    return ok(staff.to_dict(include_role=True))


def create_staff(ctx: ServiceContext, patch: dict):
    session = ctx.session

    if session.query(Staff).filter_by(username=patch["username"]).first():
        ctx.logger.warning("Staff: Username already exists", username=patch["username"])
        return fail("Username already exists")

    if session.get(Role, patch["role_id"]) is None:
        ctx.logger.warning("Staff: Role not found", roleId=patch["role_id"])
        return fail("Role not found")

    if patch.get("telegram_id") and session.query(Staff).filter_by(telegram_id=patch["telegram_id"]).first():
        return fail("Telegram ID already exists")

    try:
        password_hash = hash_password(patch.get("password"))
    except PasswordValidationError as e:
        return fail(str(e))

    staff = Staff(
        fullname=patch["fullname"],
        username=patch["username"],
        password_hash=password_hash,
        telegram_id=patch.get("telegram_id"),
        role_id=patch["role_id"],
    )
    session.add(staff)
    session.flush()

    audit_in_transaction(session, ctx, AuditEntry(
        entity_type=ENTITY_STAFF,
        entity_id=staff.id,
        action="CREATE",
        new_data=staff.to_dict(),
    ))
    session.commit()

    ctx.logger.info("Staff: Staff created", staffId=staff.id)
    return ok(staff.to_dict(include_role=True))


def update_staff(ctx: ServiceContext, staff_id: int, patch: dict):
    session = ctx.session
    can_update_all = ctx.can(Resource.STAFF, Action.UPDATE, Scope.ALL)

    if staff_id != ctx.staff_id and not can_update_all:
        ctx.logger.warning(
            "Staff: Insufficient permissions to update other staff",
            staffId=staff_id,
            actorId=ctx.staff_id,
        )
        return forbidden()

    staff = session.get(Staff, staff_id)
    if staff is None:
        ctx.logger.warning("Staff: Staff not found", staffId=staff_id)
        return not_found("Staff not found")

    role_changing = "role_id" in patch and patch["role_id"] != staff.role_id
    if role_changing and not can_update_all:
        ctx.logger.warning("Staff: Cannot change own role", staffId=staff_id)
        return forbidden("Cannot change your own role")

    if "username" in patch and patch["username"] != staff.username:
        if session.query(Staff).filter(Staff.username == patch["username"], Staff.id != staff_id).first():
            ctx.logger.warning("Staff: Username already exists", username=patch["username"])
            return fail("Username already exists")

    if patch.get("telegram_id") and patch["telegram_id"] != staff.telegram_id:
        if session.query(Staff).filter(Staff.telegram_id == patch["telegram_id"], Staff.id != staff_id).first():
            return fail("Telegram ID already exists")

    if role_changing and session.get(Role, patch["role_id"]) is None:
        ctx.logger.warning("Staff: Role not found", roleId=patch["role_id"])
        return fail("Role not found")

    password_changing = "password" in patch
    if password_changing:
        try:
            new_hash = hash_password(patch["password"])
        except PasswordValidationError as e:
            return fail(str(e))

    before = staff.to_dict()
    for field in ("fullname", "username", "telegram_id", "role_id"):
        if field in patch:
            setattr(staff, field, patch[field])
    if password_changing:
        staff.password_hash = new_hash
    session.flush()

    if password_changing:
        action = "PASSWORD_CHANGE"
    elif role_changing:
        action = "PERMISSION_CHANGE"
    else:
        action = "UPDATE"

    audit_in_transaction(session, ctx, AuditEntry(
        entity_type=ENTITY_STAFF,
        entity_id=staff.id,
        action=action,
        previous_data=before,
        new_data=staff.to_dict(),
    ))
    session.commit()

    ctx.logger.info("Staff: Staff updated", staffId=staff.id, action=action)
    return ok(staff.to_dict(include_role=True))


def delete_staff(ctx: ServiceContext, staff_id: int):
    """Remove a staff account. Its refresh tokens are revoked (rows kept)."""
    session = ctx.session

    if staff_id == ctx.staff_id:
        return fail("Cannot delete yourself")

    staff = session.get(Staff, staff_id)
    if staff is None:
        ctx.logger.warning("Staff: Staff not found", staffId=staff_id)
        return not_found("Staff not found")

    before = staff.to_dict()
    revoked = revoke_all_for_staff(session, staff_id)
    session.delete(staff)
    session.flush()

    audit_in_transaction(session, ctx, AuditEntry(
        entity_type=ENTITY_STAFF,
        entity_id=staff_id,
        action="DELETE",
        previous_data=before,
        metadata={"revoked_tokens": revoked},
    ))
    session.commit()

    ctx.logger.info("Staff: Staff deleted", staffId=staff_id, revokedTokens=revoked)
    return ok({"staff_id": staff_id, "deleted": True})
