# Overview: Storefront order routes for signed-in users.

"""
Customers place, list, view and cancel their own orders here.

SECURITY: user access tokens only (staff tokens get 403). Every lookup is
pinned to the caller's user id; someone else's order answers 403.
"""

from flask import Blueprint, request

from ..context import context_from_request
from ..decorators import require_auth, require_user
from ..models import Order
from ..responses import from_result
from ..services import orders_service
from ..validation import ModelValidationPolicy, parse_choice_arg, parse_pagination
from .orders import parse_order_body

PUBLIC_ORDER_POLICY = ModelValidationPolicy(
    writable_fields={"payment_type", "data"},
    required_on_create={"payment_type", "items"},
    extra_fields={"items"},
)

public_orders_bp = Blueprint("public_orders", __name__, url_prefix="/api/public/orders")


@public_orders_bp.post("")
@require_auth
@require_user
def create_order():
    ctx = context_from_request()
    body = parse_order_body(request.get_json(silent=True), PUBLIC_ORDER_POLICY)
    return from_result(orders_service.create_order(
        ctx,
        items=body["items"],
        payment_type=body["payment_type"],
        data=body.get("data"),
        user_id=ctx.user_id,
        staff_id=None,
        public=True,
    ))


@public_orders_bp.get("")
@require_auth
@require_user
def list_orders():
    page, limit = parse_pagination(request.args)
    return from_result(orders_service.list_user_orders(
        context_from_request(),
        page=page,
        limit=limit,
        status=parse_choice_arg(request.args, "status", Order.STATUSES),
    ))


@public_orders_bp.get("/<int:order_id>")
@require_auth
@require_user
def get_order(order_id: int):
    return from_result(orders_service.get_user_order(context_from_request(), order_id))


@public_orders_bp.patch("/<int:order_id>/cancel")
@require_auth
@require_user
def cancel_order(order_id: int):
    return from_result(orders_service.cancel_user_order(context_from_request(), order_id))
