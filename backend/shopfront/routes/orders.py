# Overview: Flask API routes for orders (back office).

"""
Order routes.

SECURITY: route-level checks use the :own permissions; the service widens
access for callers holding the matching :all permission
(orders:list:all, orders:read:all, orders:update:all).
"""

from flask import Blueprint, request

from ..context import context_from_request
from ..decorators import require_auth, require_any_permission, require_permission
from ..models import Order
from ..permissions import Permission
from ..responses import from_result
from ..services import orders_service
from ..validation import (
    ModelValidationPolicy,
    validate_payload,
    enforce_rules_order_update,
    parse_choice_arg,
    parse_datetime_arg,
    parse_order_items,
    parse_pagination,
)

ORDER_CREATE_POLICY = ModelValidationPolicy(
    writable_fields={"payment_type", "data", "user_id"},
    required_on_create={"payment_type", "items"},
    extra_fields={"items"},
)

ORDER_UPDATE_POLICY = ModelValidationPolicy(
    writable_fields={"payment_type", "status", "data"},
)

orders_bp = Blueprint("orders", __name__, url_prefix="/api/private/orders")


def parse_order_body(payload, policy: ModelValidationPolicy) -> dict:
    """Shared by the back-office and storefront create endpoints."""
    patch = validate_payload(model=Order, payload=payload, policy=policy, partial=False)
    enforce_rules_order_update(patch)
    patch["items"] = parse_order_items(patch)
    return patch


@orders_bp.get("")
@require_auth
@require_any_permission(Permission.ORDERS_LIST_OWN, Permission.ORDERS_LIST_ALL)
def list_orders():
    """
    Query params:
    - page, limit
    - user_id, staff_id (honoured only with orders:list:all)
    - payment_type, status
    - date_from, date_to: ISO-8601
    """
    page, limit = parse_pagination(request.args)
    return from_result(orders_service.get_all_orders(
        context_from_request(),
        page=page,
        limit=limit,
        user_id=request.args.get("user_id", type=int),
        staff_id=request.args.get("staff_id", type=int),
        payment_type=parse_choice_arg(request.args, "payment_type", Order.PAYMENT_TYPES),
        status=parse_choice_arg(request.args, "status", Order.STATUSES),
        date_from=parse_datetime_arg(request.args, "date_from"),
        date_to=parse_datetime_arg(request.args, "date_to"),
    ))


@orders_bp.get("/<int:order_id>")
@require_auth
@require_any_permission(Permission.ORDERS_READ_OWN, Permission.ORDERS_READ_ALL)
def get_order(order_id: int):
    return from_result(orders_service.get_order(context_from_request(), order_id))


@orders_bp.post("")
@require_auth
@require_permission(Permission.ORDERS_CREATE)
def create_order():
    """
    Body: {"items": [{"product_id", "quantity", "data"?}], "payment_type": CASH|CREDIT_CARD,
           "user_id"?: customer the order is for, "data"?: {}}
    """
    ctx = context_from_request()
    body = parse_order_body(request.get_json(silent=True), ORDER_CREATE_POLICY)
    return from_result(orders_service.create_order(
        ctx,
        items=body["items"],
        payment_type=body["payment_type"],
        data=body.get("data"),
        user_id=body.get("user_id"),
        staff_id=ctx.staff_id,
    ))


@orders_bp.patch("/<int:order_id>")
@require_auth
@require_any_permission(Permission.ORDERS_UPDATE_OWN, Permission.ORDERS_UPDATE_ALL)
def update_order(order_id: int):
    patch = validate_payload(model=Order, payload=request.get_json(silent=True), policy=ORDER_UPDATE_POLICY, partial=True)
    enforce_rules_order_update(patch)
    return from_result(orders_service.update_order(context_from_request(), order_id, patch))


@orders_bp.delete("/<int:order_id>")
@require_auth
@require_permission(Permission.ORDERS_DELETE)
def delete_order(order_id: int):
    return from_result(orders_service.delete_order(context_from_request(), order_id))
