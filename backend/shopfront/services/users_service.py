# Overview: Service-layer operations for storefront users (customers).

"""
Users are storefront customers. They are soft-deleted (deleted_at) so
their orders keep a valid reference; deleted users cannot sign in and
are hidden from lists unless include_deleted is set.

phone and telegram_id are unique across all users (deleted included).
"""

from sqlalchemy import or_

from ..context import ServiceContext
from ..models import User
from ..results import ok, fail, not_found
from ..time_utils import utcnow
from .audit_service import AuditEntry, ENTITY_USER, audit_in_transaction

PROFILE_FIELDS = ("fullname", "username", "phone", "photo", "telegram_id", "language")


def _uniqueness_error(session, patch: dict, exclude_id: int | None = None) -> str | None:
    checks = (("phone", "Phone already exists"), ("telegram_id", "Telegram ID already exists"))
    for field, message in checks:
        value = patch.get(field)
        if not value:
            continue
        query = session.query(User).filter(getattr(User, field) == value)
        if exclude_id is not None:
            query = query.filter(User.id != exclude_id)
        if query.first():
            return message
    return None


def list_users(
    ctx: ServiceContext,
    *,
    page: int = 1,
    limit: int = 20,
    search: str | None = None,
    include_deleted: bool = False,
):
    query = ctx.session.query(User)
    if not include_deleted:
        query = query.filter(User.deleted_at.is_(None))
    if search:
        pattern = f"%{search}%"
        query = query.filter(or_(
            User.fullname.ilike(pattern),
            User.username.ilike(pattern),
            User.phone.ilike(pattern),
        ))

    count = query.count()
    rows = (
        query.order_by(User.created_at.desc(), User.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return ok({"count": count, "users": [u.to_dict() for u in rows]})


def get_user(ctx: ServiceContext, user_id: int):
    user = ctx.session.get(User, user_id)
    if user is None:
        ctx.logger.warning("Users: User not found", userId=user_id)
        return not_found("User not found")
    return ok(user.to_dict())


def create_user(ctx: ServiceContext, patch: dict):
    session = ctx.session

    error = _uniqueness_error(session, patch)
    if error:
        ctx.logger.warning("Users: Duplicate user", error=error)
        return fail(error)

    user = User(**{k: v for k, v in patch.items() if k in PROFILE_FIELDS})
    session.add(user)
    session.flush()

    audit_in_transaction(session, ctx, AuditEntry(
        entity_type=ENTITY_USER,
        entity_id=user.id,
        action="CREATE",
        new_data=user.to_dict(),
    ))
    session.commit()

    ctx.logger.info("Users: User created", userId=user.id)
    return ok(user.to_dict())


def update_user(ctx: ServiceContext, user_id: int, patch: dict):
    session = ctx.session
    user = session.get(User, user_id)
    if user is None:
        ctx.logger.warning("Users: User not found", userId=user_id)
        return not_found("User not found")
    if user.is_deleted:
        return fail("Cannot update deleted user")

    error = _uniqueness_error(session, patch, exclude_id=user_id)
    if error:
        ctx.logger.warning("Users: Duplicate user", userId=user_id, error=error)
        return fail(error)

    before = user.to_dict()
    for field in PROFILE_FIELDS:
        if field in patch:
            setattr(user, field, patch[field])
    session.flush()

    audit_in_transaction(session, ctx, AuditEntry(
        entity_type=ENTITY_USER,
        entity_id=user.id,
        action="UPDATE",
        previous_data=before,
        new_data=user.to_dict(),
    ))
    session.commit()

    ctx.logger.info("Users: User updated", userId=user.id)
    return ok(user.to_dict())


def delete_user(ctx: ServiceContext, user_id: int):
    """Soft delete."""
    session = ctx.session
    user = session.get(User, user_id)
    if user is None:
        ctx.logger.warning("Users: User not found", userId=user_id)
        return not_found("User not found")
    if user.is_deleted:
        return fail("User already deleted")

    before = user.to_dict()
    user.deleted_at = utcnow()
    session.flush()

    audit_in_transaction(session, ctx, AuditEntry(
        entity_type=ENTITY_USER,
        entity_id=user.id,
        action="DELETE",
        previous_data=before,
        new_data=user.to_dict(),
    ))
    session.commit()

    ctx.logger.info("Users: User deleted", userId=user.id)
    return ok(user.to_dict())


def restore_user(ctx: ServiceContext, user_id: int):
    session = ctx.session
    user = session.get(User, user_id)
    if user is None:
        ctx.logger.warning("Users: User not found", userId=user_id)
        return not_found("User not found")
    if not user.is_deleted:
        return fail("User is not deleted")

    before = user.to_dict()
    user.deleted_at = None
    session.flush()

    audit_in_transaction(session, ctx, AuditEntry(
        entity_type=ENTITY_USER,
        entity_id=user.id,
        action="RESTORE",
        previous_data=before,
        new_data=user.to_dict(),
    ))
    session.commit()

    ctx.logger.info("Users: User restored", userId=user.id)
    return ok(user.to_dict())


def create_or_update_from_telegram(ctx: ServiceContext, data: dict):
    """
    Resolve the user behind a verified Telegram login payload.

    1. telegram_id already known -> refresh that user's profile fields
    2. phone given and matches a user -> link the telegram id to it
    3. otherwise -> create a new user

    Deleted users are refused ("User is deleted").
    """
    session = ctx.session
    telegram_id = str(data["id"])
    fullname = " ".join(p for p in (data.get("first_name"), data.get("last_name")) if p) or telegram_id
    profile = {
        "fullname": fullname[:255],
        "username": data.get("username"),
        "photo": data.get("photo_url"),
    }

    user = session.query(User).filter_by(telegram_id=telegram_id).first()
    action = "UPDATE"
    if user is None and data.get("phone"):
        user = session.query(User).filter_by(phone=data["phone"]).first()
    if user is not None and user.is_deleted:
        ctx.logger.warning("Users: Deleted user attempted Telegram login", userId=user.id)
        return fail("User is deleted")

    if user is None:
        action = "CREATE"
        user = User(telegram_id=telegram_id, phone=data.get("phone"), **profile)
        session.add(user)
        session.flush()
        before = None
    else:
        before = user.to_dict()
        user.telegram_id = telegram_id
        for field, value in profile.items():
            if value is not None:
                setattr(user, field, value)
        session.flush()

    audit_in_transaction(session, ctx, AuditEntry(
        entity_type=ENTITY_USER,
        entity_id=user.id,
        action=action,
        previous_data=before,
        new_data=user.to_dict(),
        metadata={"source": "telegram"},
    ))
    session.commit()

    ctx.logger.info("Users: Telegram user resolved", userId=user.id, action=action)
    return ok(user)
