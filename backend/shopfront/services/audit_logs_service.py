# Overview: Read-side queries over the audit trail.

from ..context import ServiceContext
from ..models import AuditLog
from ..results import ok, not_found


def list_audit_logs(
    ctx: ServiceContext,
    *,
    page: int = 1,
    limit: int = 20,
    entity_type: str | None = None,
    entity_id: int | None = None,
    actor_id: int | None = None,
    actor_type: str | None = None,
    action: str | None = None,
    request_id: str | None = None,
    date_from=None,
    date_to=None,
):
    """Filtered, paginated audit entries, newest first. Returns {count, audit_logs}."""
    query = ctx.session.query(AuditLog)

    if entity_type:
        query = query.filter(AuditLog.entity_type == entity_type)
    if entity_id is not None:
        query = query.filter(AuditLog.entity_id == entity_id)
    if actor_id is not None:
        query = query.filter(AuditLog.actor_id == actor_id)
    if actor_type:
        query = query.filter(AuditLog.actor_type == actor_type)
    if action:
        query = query.filter(AuditLog.action == action)
    if request_id:
        query = query.filter(AuditLog.request_id == request_id)
    if date_from is not None:
        query = query.filter(AuditLog.created_at >= date_from)
    if date_to is not None:
        query = query.filter(AuditLog.created_at <= date_to)

    count = query.count()
    rows = (
        query.order_by(AuditLog.created_at.desc(), AuditLog.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return ok({"count": count, "audit_logs": [row.to_dict() for row in rows]})


def get_audit_log(ctx: ServiceContext, audit_log_id: int):
    row = ctx.session.get(AuditLog, audit_log_id)
    if row is None:
        ctx.logger.warning("AuditLog: Entry not found", auditLogId=audit_log_id)
        return not_found("Audit log entry not found")
    return ok(row.to_dict())


def get_by_request_id(ctx: ServiceContext, request_id: str):
    """Everything one request wrote, in the order it was written."""
    rows = (
        ctx.session.query(AuditLog)
        .filter(AuditLog.request_id == request_id)
        .order_by(AuditLog.created_at.asc(), AuditLog.id.asc())
        .all()
    )
    return ok({"count": len(rows), "audit_logs": [row.to_dict() for row in rows]})


def get_by_entity(ctx: ServiceContext, entity_type: str, entity_id: int):
    rows = (
        ctx.session.query(AuditLog)
        .filter(AuditLog.entity_type == entity_type, AuditLog.entity_id == entity_id)
        .order_by(AuditLog.created_at.desc(), AuditLog.id.desc())
        .all()
    )
    return ok({"count": len(rows), "audit_logs": [row.to_dict() for row in rows]})
