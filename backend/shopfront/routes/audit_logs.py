# Overview: Flask API routes for browsing the audit trail (read only).

from flask import Blueprint, request

from ..context import context_from_request
from ..decorators import require_auth, require_permission
from ..models import AuditLog
from ..permissions import Permission
from ..responses import from_result
from ..services import audit_logs_service
from ..validation import parse_choice_arg, parse_datetime_arg, parse_pagination

audit_logs_bp = Blueprint("audit_logs", __name__, url_prefix="/api/private/audit-logs")


@audit_logs_bp.get("")
@require_auth
@require_permission(Permission.AUDIT_LOGS_LIST)
def list_audit_logs():
    page, limit = parse_pagination(request.args)
    return from_result(audit_logs_service.list_audit_logs(
        context_from_request(),
        page=page,
        limit=limit,
        entity_type=request.args.get("entity_type") or None,
        entity_id=request.args.get("entity_id", type=int),
        actor_id=request.args.get("actor_id", type=int),
        actor_type=parse_choice_arg(request.args, "actor_type", AuditLog.ACTOR_TYPES),
        action=parse_choice_arg(request.args, "action", AuditLog.ACTIONS),
        request_id=request.args.get("request_id") or None,
        date_from=parse_datetime_arg(request.args, "date_from"),
        date_to=parse_datetime_arg(request.args, "date_to"),
    ))


@audit_logs_bp.get("/<int:audit_log_id>")
@require_auth
@require_permission(Permission.AUDIT_LOGS_READ)
def get_audit_log(audit_log_id: int):
    return from_result(audit_logs_service.get_audit_log(context_from_request(), audit_log_id))


@audit_logs_bp.get("/request/<request_id>")
@require_auth
@require_permission(Permission.AUDIT_LOGS_READ)
def get_by_request(request_id: str):
    return from_result(audit_logs_service.get_by_request_id(context_from_request(), request_id))


@audit_logs_bp.get("/entity/<entity_type>/<int:entity_id>")
@require_auth
@require_permission(Permission.AUDIT_LOGS_READ)
def get_by_entity(entity_type: str, entity_id: int):
    return from_result(audit_logs_service.get_by_entity(context_from_request(), entity_type, entity_id))
