# Overview: Flask API routes for products and per-product stock history.

"""
Product management routes (back office).

SECURITY:
- Listing/reading needs products:list / products:read (cost prices are visible here)
- Restore needs products:update
- Per-product history needs product-history:list / product-history:create
"""

from flask import Blueprint, request

from ..context import context_from_request
from ..decorators import require_auth, require_permission
from ..models import Product
from ..permissions import Permission
from ..responses import from_result
from ..services import products_service, product_history_service
from .product_history import parse_adjustment
from ..validation import (
    ModelValidationPolicy,
    validate_payload,
    enforce_rules_product,
    parse_bool_arg,
    parse_int_list_arg,
    parse_money_arg,
    parse_pagination,
    ValidationError,
)

PRODUCT_POLICY = ModelValidationPolicy(
    writable_fields={"name", "price", "costprice", "category_id", "remaining"},
    required_on_create={"name", "price", "costprice", "category_id"},
    extra_fields={"change_reason"},
)

products_bp = Blueprint("products", __name__, url_prefix="/api/private/products")


def _product_patch(partial: bool) -> dict:
    patch = validate_payload(model=Product, payload=request.get_json(silent=True), policy=PRODUCT_POLICY, partial=partial)
    enforce_rules_product(patch)
    reason = patch.get("change_reason")
    if reason is not None and (not isinstance(reason, str) or len(reason) > 500):
        raise ValidationError("change_reason must be a string of at most 500 characters")
    return patch


def list_query_filters(args) -> dict:
    """Filters shared with the storefront product list."""
    return {
        "search": args.get("search") or None,
        "category_ids": parse_int_list_arg(args, "category_ids"),
        "min_price": parse_money_arg(args, "min_price"),
        "max_price": parse_money_arg(args, "max_price"),
    }


@products_bp.get("")
@require_auth
@require_permission(Permission.PRODUCTS_LIST)
def list_products():
    """
    Query params:
    - page, limit
    - search: name contains
    - category_ids: "1,2,3" (subcategories included)
    - min_price, max_price
    - include_deleted: bool (default false)
    """
    page, limit = parse_pagination(request.args)
    return from_result(products_service.list_products(
        context_from_request(),
        page=page,
        limit=limit,
        include_deleted=parse_bool_arg(request.args, "include_deleted"),
        **list_query_filters(request.args),
    ))


@products_bp.get("/<int:product_id>")
@require_auth
@require_permission(Permission.PRODUCTS_READ)
def get_product(product_id: int):
    return from_result(products_service.get_product(context_from_request(), product_id))


@products_bp.post("")
@require_auth
@require_permission(Permission.PRODUCTS_CREATE)
def create_product():
    patch = _product_patch(partial=False)
    patch.pop("change_reason", None)
    return from_result(products_service.create_product(context_from_request(), patch))


@products_bp.patch("/<int:product_id>")
@require_auth
@require_permission(Permission.PRODUCTS_UPDATE)
def update_product(product_id: int):
    return from_result(products_service.update_product(context_from_request(), product_id, _product_patch(partial=True)))


@products_bp.delete("/<int:product_id>")
@require_auth
@require_permission(Permission.PRODUCTS_DELETE)
def delete_product(product_id: int):
    return from_result(products_service.delete_product(context_from_request(), product_id))


@products_bp.post("/<int:product_id>/restore")
@require_auth
@require_permission(Permission.PRODUCTS_UPDATE)
def restore_product(product_id: int):
    return from_result(products_service.restore_product(context_from_request(), product_id))


@products_bp.get("/<int:product_id>/history")
@require_auth
@require_permission(Permission.PRODUCT_HISTORY_LIST)
def product_history(product_id: int):
    page, limit = parse_pagination(request.args)
    return from_result(product_history_service.get_product_history(
        context_from_request(), product_id, page=page, limit=limit
    ))


@products_bp.post("/<int:product_id>/history")
@require_auth
@require_permission(Permission.PRODUCT_HISTORY_CREATE)
def adjust_product_inventory(product_id: int):
    operation, quantity, reason = parse_adjustment(request.get_json(silent=True))
    return from_result(product_history_service.adjust_inventory(
        context_from_request(),
        product_id,
        operation=operation,
        quantity=quantity,
        change_reason=reason,
    ))
