# Overview: Flask API routes for customer (user) administration.

from flask import Blueprint, request

from ..context import context_from_request
from ..decorators import require_auth, require_permission
from ..models import User
from ..permissions import Permission
from ..responses import from_result
from ..services import users_service
from ..validation import (
    ModelValidationPolicy,
    validate_payload,
    enforce_rules_user,
    parse_bool_arg,
    parse_pagination,
)

USER_POLICY = ModelValidationPolicy(
    writable_fields={"fullname", "username", "phone", "photo", "telegram_id", "language"},
    required_on_create={"fullname"},
)

users_bp = Blueprint("users", __name__, url_prefix="/api/private/users")


@users_bp.get("")
@require_auth
@require_permission(Permission.USERS_LIST)
def list_users():
    """
    Query params:
    - page, limit
    - search: matches fullname, username or phone
    - include_deleted: bool (default false)
    """
    page, limit = parse_pagination(request.args)
    return from_result(users_service.list_users(
        context_from_request(),
        page=page,
        limit=limit,
        search=request.args.get("search") or None,
        include_deleted=parse_bool_arg(request.args, "include_deleted"),
    ))


@users_bp.get("/<int:user_id>")
@require_auth
@require_permission(Permission.USERS_READ_ALL)
def get_user(user_id: int):
    return from_result(users_service.get_user(context_from_request(), user_id))


@users_bp.post("")
@require_auth
@require_permission(Permission.USERS_CREATE)
def create_user():
    patch = validate_payload(model=User, payload=request.get_json(silent=True), policy=USER_POLICY, partial=False)
    enforce_rules_user(patch)
    return from_result(users_service.create_user(context_from_request(), patch))


@users_bp.put("/<int:user_id>")
@require_auth
@require_permission(Permission.USERS_UPDATE_ALL)
def update_user(user_id: int):
    patch = validate_payload(model=User, payload=request.get_json(silent=True), policy=USER_POLICY, partial=True)
    enforce_rules_user(patch)
    return from_result(users_service.update_user(context_from_request(), user_id, patch))


@users_bp.delete("/<int:user_id>")
@require_auth
@require_permission(Permission.USERS_DELETE)
def delete_user(user_id: int):
    return from_result(users_service.delete_user(context_from_request(), user_id))


@users_bp.post("/<int:user_id>/restore")
@require_auth
@require_permission(Permission.USERS_DELETE)
def restore_user(user_id: int):
    return from_result(users_service.restore_user(context_from_request(), user_id))
