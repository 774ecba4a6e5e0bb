# Overview: Flask API routes for roles and the permission catalog.

from flask import Blueprint, request

from ..context import context_from_request
from ..decorators import require_auth, require_permission
from ..models import Role
from ..permissions import Permission, PERMISSION_DEFINITIONS
from ..responses import from_result, success_response
from ..services import roles_service
from ..validation import ModelValidationPolicy, validate_payload, parse_pagination, ValidationError

ROLE_POLICY = ModelValidationPolicy(
    writable_fields={"name"},
    required_on_create={"name"},
    # JSON column: the list is checked against the catalog by the service
    extra_fields={"permissions"},
)

roles_bp = Blueprint("roles", __name__, url_prefix="/api/private/staff")


def _role_patch(partial: bool) -> dict:
    patch = validate_payload(model=Role, payload=request.get_json(silent=True), policy=ROLE_POLICY, partial=partial)
    if "permissions" in patch and not isinstance(patch["permissions"], list):
        raise ValidationError("permissions must be a list")
    return patch


@roles_bp.get("/permissions")
@require_auth
@require_permission(Permission.ROLES_READ)
def list_permission_catalog():
    """Every permission token with its display name, description and category."""
    return success_response([
        {"code": code, "name": name, "description": description, "category": category}
        for code, name, description, category in PERMISSION_DEFINITIONS
    ])


@roles_bp.get("/roles")
@require_auth
@require_permission(Permission.ROLES_LIST)
def list_roles():
    page, limit = parse_pagination(request.args)
    return from_result(roles_service.list_roles(
        context_from_request(),
        page=page,
        limit=limit,
        search=request.args.get("search") or None,
    ))


@roles_bp.get("/roles/<int:role_id>")
@require_auth
@require_permission(Permission.ROLES_READ)
def get_role(role_id: int):
    return from_result(roles_service.get_role(context_from_request(), role_id))


@roles_bp.post("/roles")
@require_auth
@require_permission(Permission.ROLES_CREATE)
def create_role():
    return from_result(roles_service.create_role(context_from_request(), _role_patch(partial=False)))


@roles_bp.patch("/roles/<int:role_id>")
@require_auth
@require_permission(Permission.ROLES_UPDATE)
def update_role(role_id: int):
    return from_result(roles_service.update_role(context_from_request(), role_id, _role_patch(partial=True)))


@roles_bp.delete("/roles/<int:role_id>")
@require_auth
@require_permission(Permission.ROLES_DELETE)
def delete_role(role_id: int):
    return from_result(roles_service.delete_role(context_from_request(), role_id))
