# Overview: Flask API routes for staff accounts.

"""
Staff routes.

SECURITY:
- GET /<id> and PATCH /<id> only need the :own permission at the route
  level; the service enforces :all for anyone other than yourself.
- Passwords are accepted on create/update and never returned.
"""

from flask import Blueprint, request

from ..context import context_from_request
from ..decorators import require_auth, require_any_permission, require_permission
from ..models import Staff
from ..permissions import Permission
from ..responses import from_result
from ..services import staff_service
from ..validation import ModelValidationPolicy, validate_payload, parse_pagination

STAFF_POLICY = ModelValidationPolicy(
    writable_fields={"fullname", "username", "telegram_id", "role_id"},
    required_on_create={"fullname", "username", "password", "role_id"},
    extra_fields={"password"},
)

staff_bp = Blueprint("staff", __name__, url_prefix="/api/private/staff")


@staff_bp.get("")
@require_auth
@require_permission(Permission.STAFF_LIST)
def list_staff():
    page, limit = parse_pagination(request.args)
    return from_result(staff_service.list_staff(
        context_from_request(),
        page=page,
        limit=limit,
        search=request.args.get("search") or None,
        role_id=request.args.get("role_id", type=int),
    ))


@staff_bp.get("/<int:staff_id>")
@require_auth
@require_any_permission(Permission.STAFF_READ_OWN, Permission.STAFF_READ_ALL)
def get_staff(staff_id: int):
    return from_result(staff_service.get_staff(context_from_request(), staff_id))


@staff_bp.post("")
@require_auth
@require_permission(Permission.STAFF_CREATE)
def create_staff():
    patch = validate_payload(model=Staff, payload=request.get_json(silent=True), policy=STAFF_POLICY, partial=False)
    return from_result(staff_service.create_staff(context_from_request(), patch))


@staff_bp.patch("/<int:staff_id>")
@require_auth
@require_any_permission(Permission.STAFF_UPDATE_OWN, Permission.STAFF_UPDATE_ALL)
def update_staff(staff_id: int):
    patch = validate_payload(model=Staff, payload=request.get_json(silent=True), policy=STAFF_POLICY, partial=True)
    return from_result(staff_service.update_staff(context_from_request(), staff_id, patch))


@staff_bp.delete("/<int:staff_id>")
@require_auth
@require_permission(Permission.STAFF_DELETE)
def delete_staff(staff_id: int):
    return from_result(staff_service.delete_staff(context_from_request(), staff_id))
