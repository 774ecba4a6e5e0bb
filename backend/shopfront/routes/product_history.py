# Overview: Flask API routes for the product history log and manual stock adjustments.

from flask import Blueprint, request

from ..context import context_from_request
from ..decorators import require_auth, require_permission
from ..models import ProductHistory
from ..permissions import Permission
from ..responses import from_result
from ..services import product_history_service
from ..validation import (
    ValidationError,
    parse_choice_arg,
    parse_datetime_arg,
    parse_pagination,
)

product_history_bp = Blueprint("product_history", __name__, url_prefix="/api/private/product-history")


def parse_adjustment(payload) -> tuple[str, int, str | None]:
    """Body: {"product_id"?, "operation": INVENTORY_ADD|INVENTORY_REMOVE, "quantity": int > 0, "change_reason"?}"""
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")
    operation = payload.get("operation")
    if operation not in product_history_service.INVENTORY_OPERATIONS:
        raise ValidationError(
            f"operation must be one of: {', '.join(product_history_service.INVENTORY_OPERATIONS)}"
        )
    quantity = payload.get("quantity")
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
        raise ValidationError("quantity must be a positive integer")
    reason = payload.get("change_reason")
    if reason is not None and (not isinstance(reason, str) or len(reason) > 500):
        raise ValidationError("change_reason must be a string of at most 500 characters")
    return operation, quantity, reason


@product_history_bp.get("")
@require_auth
@require_permission(Permission.PRODUCT_HISTORY_LIST)
def list_history():
    """
    Query params:
    - page, limit
    - product_id, staff_id
    - operation: one of ProductHistory.OPERATIONS
    - date_from, date_to: ISO-8601
    """
    page, limit = parse_pagination(request.args)
    return from_result(product_history_service.list_history(
        context_from_request(),
        page=page,
        limit=limit,
        product_id=request.args.get("product_id", type=int),
        staff_id=request.args.get("staff_id", type=int),
        operation=parse_choice_arg(request.args, "operation", ProductHistory.OPERATIONS),
        date_from=parse_datetime_arg(request.args, "date_from"),
        date_to=parse_datetime_arg(request.args, "date_to"),
    ))


@product_history_bp.get("/<int:history_id>")
@require_auth
@require_permission(Permission.PRODUCT_HISTORY_READ)
def get_history_entry(history_id: int):
    return from_result(product_history_service.get_history_entry(context_from_request(), history_id))


@product_history_bp.post("")
@require_auth
@require_permission(Permission.PRODUCT_HISTORY_CREATE)
def create_adjustment():
    payload = request.get_json(silent=True)
    operation, quantity, reason = parse_adjustment(payload)
    product_id = payload.get("product_id")
    if isinstance(product_id, bool) or not isinstance(product_id, int):
        raise ValidationError("product_id must be an integer")
    return from_result(product_history_service.adjust_inventory(
        context_from_request(),
        product_id,
        operation=operation,
        quantity=quantity,
        change_reason=reason,
    ))
