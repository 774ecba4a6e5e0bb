# Overview: Flask API routes for the category tree (back office).

from flask import Blueprint, request

from ..context import context_from_request
from ..decorators import require_auth, require_permission
from ..models import Category
from ..permissions import Permission
from ..responses import from_result
from ..services import categories_service
from ..validation import ModelValidationPolicy, validate_payload, parse_bool_arg, parse_pagination

CATEGORY_POLICY = ModelValidationPolicy(
    writable_fields={"name", "parent_id"},
    required_on_create={"name"},
)

categories_bp = Blueprint("categories", __name__, url_prefix="/api/private/categories")


def _include_flags(args) -> dict:
    return {
        "include_children": parse_bool_arg(args, "include_children"),
        "include_products": parse_bool_arg(args, "include_products"),
        "include_parent": parse_bool_arg(args, "include_parent"),
        "depth": args.get("depth", 1, type=int),
    }


@categories_bp.get("")
@require_auth
@require_permission(Permission.CATEGORIES_LIST)
def list_categories():
    """
    Query params:
    - page, limit, search
    - parent_id: only direct children of this category
    - roots_only: only top-level categories
    - include_children / include_products / include_parent: bool
    - depth: how many levels of children to include (default 1)
    """
    page, limit = parse_pagination(request.args)
    return from_result(categories_service.list_categories(
        context_from_request(),
        page=page,
        limit=limit,
        search=request.args.get("search") or None,
        parent_id=request.args.get("parent_id", type=int),
        roots_only=parse_bool_arg(request.args, "roots_only"),
        **_include_flags(request.args),
    ))


@categories_bp.get("/tree")
@require_auth
@require_permission(Permission.CATEGORIES_LIST)
def category_tree():
    depth = request.args.get("depth", categories_service.DEFAULT_TREE_DEPTH, type=int)
    return from_result(categories_service.get_category_tree(context_from_request(), depth=depth))


@categories_bp.get("/<int:category_id>")
@require_auth
@require_permission(Permission.CATEGORIES_READ)
def get_category(category_id: int):
    return from_result(categories_service.get_category(
        context_from_request(),
        category_id,
        **_include_flags(request.args),
    ))


@categories_bp.post("")
@require_auth
@require_permission(Permission.CATEGORIES_CREATE)
def create_category():
    patch = validate_payload(model=Category, payload=request.get_json(silent=True), policy=CATEGORY_POLICY, partial=False)
    return from_result(categories_service.create_category(context_from_request(), patch))


@categories_bp.patch("/<int:category_id>")
@require_auth
@require_permission(Permission.CATEGORIES_UPDATE)
def update_category(category_id: int):
    patch = validate_payload(model=Category, payload=request.get_json(silent=True), policy=CATEGORY_POLICY, partial=True)
    return from_result(categories_service.update_category(context_from_request(), category_id, patch))


@categories_bp.delete("/<int:category_id>")
@require_auth
@require_permission(Permission.CATEGORIES_DELETE)
def delete_category(category_id: int):
    return from_result(categories_service.delete_category(context_from_request(), category_id))
