# Overview: Service-layer operations for the audit trail writer.

"""
Audit Trail Writer

Two entry points with different failure policies:

- audit_in_transaction(session, ctx, entry): adds the row to the caller's
  session and flushes. If the write fails the exception propagates, so the
  caller's business mutation rolls back with it (atomic pair).

- audit(ctx, entry): best-effort. Used after the business work has already
  been committed (login, logout). Commits the audit row on its own; a
  failure is logged and swallowed so it never fails the request.

APPEND-ONLY: this module only ever INSERTs. AuditLog rows reject updates
and deletes at the mapper level.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Any, Optional

from sqlalchemy.exc import SQLAlchemyError

from ..context import ServiceContext
from ..models import AuditLog
from ..time_utils import to_utc_z


ENTITY_USER = "user"
ENTITY_STAFF = "staff"
ENTITY_ROLE = "role"
ENTITY_CATEGORY = "category"
ENTITY_PRODUCT = "product"
ENTITY_ORDER = "order"


@dataclass
class AuditEntry:
    entity_type: str
    entity_id: int
    action: str
    previous_data: Optional[dict] = None
    new_data: Optional[dict] = None
    metadata: Optional[dict] = None


def to_json_safe(value: Any) -> Any:
    """Make a snapshot JSON-serializable (Decimal -> str, datetime -> ISO Z)."""
    if isinstance(value, Decimal):
        return format(value, "f")
    if isinstance(value, datetime):
        return to_utc_z(value)
    if isinstance(value, dict):
        return {k: to_json_safe(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_json_safe(v) for v in value]
    return value


def resolve_actor(ctx: ServiceContext) -> tuple[Optional[int], str]:
    """(actor_id, actor_type) for the audit row. No actor means SYSTEM."""
    if ctx.actor is None:
        return None, "SYSTEM"
    return ctx.actor.id, "STAFF" if ctx.actor.is_staff else "USER"


def _request_metadata(ctx: ServiceContext, extra: Optional[dict]) -> Optional[dict]:
    meta = {}
    if ctx.ip_address or ctx.user_agent:
        meta = {"ip_address": ctx.ip_address, "user_agent": ctx.user_agent}
    if extra:
        meta.update(extra)
    return meta or None


def build_audit_log(ctx: ServiceContext, entry: AuditEntry) -> AuditLog:
    if entry.action not in AuditLog.ACTIONS:
        raise ValueError(f"Unknown audit action: {entry.action}")

    actor_id, actor_type = resolve_actor(ctx)
    return AuditLog(
        request_id=ctx.request_id,
        actor_id=actor_id,
        actor_type=actor_type,
        entity_type=entry.entity_type,
        entity_id=entry.entity_id,
        action=entry.action,
        previous_data=to_json_safe(entry.previous_data),
        new_data=to_json_safe(entry.new_data),
        meta=to_json_safe(_request_metadata(ctx, entry.metadata)),
    )


def audit_in_transaction(session, ctx: ServiceContext, entry: AuditEntry) -> AuditLog:
    """
    Write one audit row inside the caller's transaction.

    Does NOT commit. Raises on failure so the surrounding transaction aborts.
    """
    log = build_audit_log(ctx, entry)
    session.add(log)
    session.flush()
    ctx.logger.debug(
        "AuditLog: Entry created",
        entityType=entry.entity_type,
        entityId=entry.entity_id,
        action=entry.action,
    )
    return log


def audit(ctx: ServiceContext, entry: AuditEntry) -> Optional[AuditLog]:
    """
    Fire-and-forget audit write. Commits on its own.

    Call only after the business transaction has been committed: on failure
    the session is rolled back, which discards only the audit row.
    Returns None when the write failed.
    """
    session = ctx.session
    try:
        log = build_audit_log(ctx, entry)
        session.add(log)
        session.commit()
    except (SQLAlchemyError, ValueError):
        session.rollback()
        ctx.logger.exception(
            "AuditLog: Failed to create entry",
            entityType=entry.entity_type,
            entityId=entry.entity_id,
            action=entry.action,
        )
        return None

    ctx.logger.debug(
        "AuditLog: Entry created",
        entityType=entry.entity_type,
        entityId=entry.entity_id,
        action=entry.action,
    )
    return log
