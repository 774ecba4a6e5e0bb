# Overview: Service-layer operations for auth; encapsulates business logic and database work.

"""
Authentication Service

WHY: Every back-office action must be attributable to a staff member, and
storefront customers sign in through Telegram without a password.

SECURITY NOTES:
- Staff passwords hashed with argon2id (argon2-cffi defaults)
- Unknown username and wrong password both answer "Unauthorized"
  (logged separately, never distinguished to the caller)
- Refresh tokens are stored as SHA-256 hashes and can be revoked server-side
- Refresh ROTATES the token: old one revoked, new one issued
- RefreshToken rows are never deleted (kept for audit)

ROTATION RACE: revoke_refresh_token is a conditional UPDATE
(... WHERE revoked = false). Of two concurrent refresh calls presenting
the same token, only the one whose UPDATE matched a row gets new tokens;
the other answers 401.
"""

from dataclasses import replace

from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError, VerifyMismatchError
from sqlalchemy import update

from ..context import ACTOR_STAFF, ACTOR_USER, ServiceContext, Token
from ..models import RefreshToken, Staff, User
from ..results import ok, not_found, unauthorized
from ..time_utils import utcnow
from . import token_service
from .audit_service import AuditEntry, ENTITY_STAFF, ENTITY_USER, audit

MIN_PASSWORD_LENGTH = 6

_hasher = PasswordHasher()


class PasswordValidationError(Exception):
    """Raised when password doesn't meet requirements."""
    pass


def validate_password_strength(password: str) -> None:
    if not isinstance(password, str) or len(password) < MIN_PASSWORD_LENGTH:
        raise PasswordValidationError(
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters long"
        )


def hash_password(password: str) -> str:
    """Validate then hash with argon2id."""
    validate_password_strength(password)
    return _hasher.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    """True if password matches hash, False otherwise (including malformed hashes)."""
    try:
        return _hasher.verify(password_hash, password)
    except (VerifyMismatchError, VerificationError, InvalidHashError):
        return False


def password_needs_rehash(password_hash: str) -> bool:
    return _hasher.check_needs_rehash(password_hash)


# -- Refresh token persistence --


def save_refresh_token(
    session,
    token: str,
    expires_at,
    *,
    staff_id: int | None = None,
    user_id: int | None = None,
    user_agent: str | None = None,
    ip_address: str | None = None,
) -> RefreshToken:
    if (staff_id is None) == (user_id is None):
        raise ValueError("Refresh token needs exactly one owner")
    record = RefreshToken(
        token_hash=token_service.hash_token(token),
        staff_id=staff_id,
        user_id=user_id,
        expired_at=expires_at,
        revoked=False,
        user_agent=user_agent[:512] if user_agent else None,
        ip_address=ip_address,
    )
    session.add(record)
    session.flush()
    return record


def validate_refresh_token(ctx: ServiceContext, token: str) -> RefreshToken | None:
    """
    Look up a presented refresh token.

    Returns None when it is unknown, revoked, or past expired_at.
    """
    record = (
        ctx.session.query(RefreshToken)
        .filter_by(token_hash=token_service.hash_token(token))
        .first()
    )
    if record is None:
        ctx.logger.warning("Auth: Refresh token not found")
        return None
    if record.revoked:
        ctx.logger.warning("Auth: Refresh token revoked", tokenId=record.id)
        return None
    if record.expired_at < utcnow():
        ctx.logger.warning("Auth: Refresh token expired", tokenId=record.id)
        return None
    return record


def revoke_refresh_token(session, token: str) -> bool:
    """
    Revoke a token. True only for the caller that actually flipped it.
    """
    result = session.execute(
        update(RefreshToken)
        .where(
            RefreshToken.token_hash == token_service.hash_token(token),
            RefreshToken.revoked.is_(False),
        )
        .values(revoked=True, revoked_at=utcnow())
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


def revoke_all_for_staff(session, staff_id: int) -> int:
    result = session.execute(
        update(RefreshToken)
        .where(RefreshToken.staff_id == staff_id, RefreshToken.revoked.is_(False))
        .values(revoked=True, revoked_at=utcnow())
        .execution_options(synchronize_session=False)
    )
    return result.rowcount


# -- Sessions --


def _start_session(ctx: ServiceContext, owner_type: str, principal) -> dict:
    """Mint access + refresh tokens and persist the refresh token (no commit)."""
    claims = (
        token_service.staff_claims(principal)
        if owner_type == ACTOR_STAFF
        else token_service.user_claims(principal)
    )
    access = token_service.issue_access_token(claims)
    refresh, expires_at = token_service.issue_refresh_token(owner_type, principal.id)
    save_refresh_token(
        ctx.session,
        refresh,
        expires_at,
        staff_id=principal.id if owner_type == ACTOR_STAFF else None,
        user_id=principal.id if owner_type == ACTOR_USER else None,
        user_agent=ctx.user_agent,
        ip_address=ctx.ip_address,
    )
    return {"token": access, "refresh_token": refresh, "refresh_expires_at": expires_at}


def login(ctx: ServiceContext, username: str, password: str):
    """
    Staff username/password login.

    Returns ok({token, refresh_token, refresh_expires_at, staff}) or 401.
    """
    session = ctx.session
    staff = session.query(Staff).filter_by(username=username).first()
    if staff is None:
        ctx.logger.warning("Auth: Staff not found", username=username)
        return unauthorized()

    if not verify_password(password, staff.password_hash):
        ctx.logger.warning("Auth: Invalid password", staffId=staff.id)
        return unauthorized()

    if password_needs_rehash(staff.password_hash):
        staff.password_hash = _hasher.hash(password)

    tokens = _start_session(ctx, ACTOR_STAFF, staff)
    session.commit()

    actor_ctx = replace(ctx, actor=Token(id=staff.id, type=ACTOR_STAFF, username=staff.username))
    audit(actor_ctx, AuditEntry(entity_type=ENTITY_STAFF, entity_id=staff.id, action="LOGIN"))

    ctx.logger.info("Auth: Staff logged in", staffId=staff.id)
    tokens["staff"] = staff.to_dict(include_role=True)
    return ok(tokens)


def start_user_session(ctx: ServiceContext, user: User):
    """Issue tokens for a storefront user (Telegram login). Commits."""
    tokens = _start_session(ctx, ACTOR_USER, user)
    ctx.session.commit()

    actor_ctx = replace(ctx, actor=Token(id=user.id, type=ACTOR_USER))
    audit(actor_ctx, AuditEntry(entity_type=ENTITY_USER, entity_id=user.id, action="LOGIN"))
    return tokens


def refresh(ctx: ServiceContext, token: str):
    """
    Rotate a refresh token.

    Returns ok({token, refresh_token, refresh_expires_at}) or 401.
    """
    session = ctx.session
    record = validate_refresh_token(ctx, token)
    if record is None:
        return unauthorized()

    if record.staff_id is not None:
        owner_type = ACTOR_STAFF
        principal = session.get(Staff, record.staff_id)
    else:
        owner_type = ACTOR_USER
        principal = session.get(User, record.user_id) if record.user_id is not None else None
        if principal is not None and principal.is_deleted:
            principal = None

    if principal is None:
        ctx.logger.warning("Auth: Refresh token owner no longer exists", tokenId=record.id)
        revoke_refresh_token(session, token)
        session.commit()
        return unauthorized()

    if not revoke_refresh_token(session, token):
        # Another request rotated this token first
        session.rollback()
        ctx.logger.warning("Auth: Refresh token already rotated", tokenId=record.id)
        return unauthorized()

    tokens = _start_session(ctx, owner_type, principal)
    session.commit()

    ctx.logger.info("Auth: Token refreshed", ownerType=owner_type, ownerId=principal.id)
    return ok(tokens)


def logout(ctx: ServiceContext, token: str | None):
    """Revoke the presented refresh token (if any). Always succeeds."""
    session = ctx.session
    if not token:
        return ok({"logged_out": True})

    record = (
        session.query(RefreshToken)
        .filter_by(token_hash=token_service.hash_token(token))
        .first()
    )
    revoked = revoke_refresh_token(session, token)
    session.commit()

    if record is not None and revoked:
        if record.staff_id is not None:
            actor = Token(id=record.staff_id, type=ACTOR_STAFF)
            entry = AuditEntry(entity_type=ENTITY_STAFF, entity_id=record.staff_id, action="LOGOUT")
        elif record.user_id is not None:
            actor = Token(id=record.user_id, type=ACTOR_USER)
            entry = AuditEntry(entity_type=ENTITY_USER, entity_id=record.user_id, action="LOGOUT")
        else:
            actor = entry = None
        if entry is not None:
            audit(replace(ctx, actor=actor), entry)

    ctx.logger.info("Auth: Logged out", revoked=revoked)
    return ok({"logged_out": True})


def get_profile(ctx: ServiceContext):
    """Current principal's profile plus its type ("staff" | "user")."""
    actor = ctx.actor
    if actor.is_staff:
        staff = ctx.session.get(Staff, actor.id)
        if staff is None:
            ctx.logger.warning("Auth: Profile not found", userId=actor.id, type=actor.type)
            return not_found("Not Found")
        data = staff.to_dict(include_role=True)
        data["permissions"] = staff.permissions
    else:
        user = ctx.session.get(User, actor.id)
        if user is None or user.is_deleted:
            ctx.logger.warning("Auth: Profile not found", userId=actor.id, type=actor.type)
            return not_found("Not Found")
        data = user.to_dict()
    data["type"] = actor.type
    return ok(data)
