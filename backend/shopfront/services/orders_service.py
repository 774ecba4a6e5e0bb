# Overview: Service-layer operations for orders; stock movements and ownership rules.

"""
Order lifecycle.

STATUS FLOW:
    NEW -> ACCEPTED
    NEW -> CANCELLED
    ACCEPTED and CANCELLED are final.

STOCK: creating an order decrements Product.remaining for every line and
writes one INVENTORY_REMOVE history row per line. Cancelling or deleting
an order puts the stock back (INVENTORY_ADD), skipping products that have
been soft-deleted since. A cancelled order's stock is already back, so
deleting it afterwards does not add it twice.

ATOMICITY: each operation (stock, items, history, audit) commits once or
rolls back as a whole. Nothing is retried.

OWNERSHIP (back office): orders:*:own covers orders whose staff_id is the
caller; orders:*:all covers every order. Storefront users only ever see
orders whose user_id is their own.
"""

from ..context import ServiceContext
from ..models import Order, OrderItem, Product, User
from ..permissions import Action, Permission, Resource, Scope
from ..results import ok, fail, forbidden, not_found
from .audit_service import AuditEntry, ENTITY_ORDER, audit_in_transaction
from .product_history_service import move_stock, record_history

ALLOWED_TRANSITIONS = {
    "NEW": {"ACCEPTED", "CANCELLED"},
    "ACCEPTED": set(),
    "CANCELLED": set(),
}

INSUFFICIENT_STOCK = "INSUFFICIENT_STOCK"


def _insufficient_stock(shortages: list[dict]) -> dict:
    return {
        "code": INSUFFICIENT_STOCK,
        "message": "One or more products have insufficient stock",
        "details": shortages,
    }


def _load_products(session, product_ids: list[int]) -> dict[int, Product]:
    rows = session.query(Product).filter(Product.id.in_(product_ids)).all()
    return {p.id: p for p in rows if not p.is_deleted}


def _restore_stock(ctx: ServiceContext, order: Order, reason: str) -> list[dict]:
    """Put every line's quantity back. Soft-deleted products are skipped."""
    restored = []
    for item in order.items:
        product = item.product
        if product is None or product.is_deleted:
            continue
        moved = move_stock(ctx.session, product, item.quantity)
        if moved is None:
            continue
        previous, current = moved
        record_history(
            ctx.session,
            product_id=product.id,
            staff_id=ctx.staff_id,
            operation="INVENTORY_ADD",
            quantity=item.quantity,
            previous_data={"remaining": previous},
            new_data={"remaining": current},
            change_reason=reason,
        )
        restored.append({"product_id": product.id, "quantity": item.quantity})
    return restored


def create_order(
    ctx: ServiceContext,
    *,
    items: list[dict],
    payment_type: str,
    data: dict | None = None,
    user_id: int | None = None,
    staff_id: int | None = None,
    public: bool = False,
):
    """
    Place an order.

    items: [{"product_id", "quantity", "data"}] with unique product ids.
    Fails without writing anything when a product is missing/deleted
    ("Products not found: 1, 2") or when any line is short on stock
    (INSUFFICIENT_STOCK listing every short line).
    The decrement itself is a conditional UPDATE, so a sale that commits
    between the stock check and this order still cannot oversell.
    """
    session = ctx.session
    product_ids = [item["product_id"] for item in items]
    products = _load_products(session, product_ids)

    missing = [pid for pid in product_ids if pid not in products]
    if missing:
        ctx.logger.warning("Orders: Products not found", productIds=missing)
        return fail(f"Products not found: {', '.join(str(pid) for pid in missing)}")

    shortages = []
    for item in items:
        product = products[item["product_id"]]
        if product.remaining < item["quantity"]:
            shortages.append({
                "product_id": product.id,
                "product_name": product.name,
                "requested": item["quantity"],
                "available": product.remaining,
            })
    if shortages:
        ctx.logger.warning("Orders: Insufficient stock", shortages=shortages)
        return fail(_insufficient_stock(shortages))

    if user_id is not None:
        user = session.get(User, user_id)
        if user is None or user.is_deleted:
            ctx.logger.warning("Orders: User not found", userId=user_id)
            return fail("User not found")

    try:
        order = Order(
            user_id=user_id,
            staff_id=staff_id,
            payment_type=payment_type,
            status="NEW",
            data=data or {},
        )
        session.add(order)
        session.flush()

        reason = f"Order #{order.id} (user)" if public else f"Order #{order.id}"
        for item in items:
            product = products[item["product_id"]]
            moved = move_stock(session, product, -item["quantity"])
            if moved is None:
                shortage = {
                    "product_id": product.id,
                    "product_name": product.name,
                    "requested": item["quantity"],
                    "available": session.query(Product.remaining).filter(Product.id == product.id).scalar(),
                }
                session.rollback()
                ctx.logger.warning("Orders: Stock changed concurrently", shortages=[shortage])
                return fail(_insufficient_stock([shortage]))
            previous, current = moved
            order.items.append(_new_item(product, item["quantity"], item.get("data")))
            record_history(
                session,
                product_id=product.id,
                staff_id=staff_id,
                operation="INVENTORY_REMOVE",
                quantity=item["quantity"],
                previous_data={"remaining": previous},
                new_data={"remaining": current},
                change_reason=reason,
            )
        session.flush()

        audit_in_transaction(session, ctx, AuditEntry(
            entity_type=ENTITY_ORDER,
            entity_id=order.id,
            action="CREATE",
            new_data=order.to_dict(include_items=True),
        ))
        session.commit()
    except Exception:
        session.rollback()
        raise

    ctx.logger.info("Orders: Order created", orderId=order.id, items=len(items), public=public)
    return ok(order.to_dict(include_cost=not public))


def _new_item(product: Product, quantity: int, data: dict | None = None) -> OrderItem:
    # Price is frozen at order time; later price edits do not touch old orders
    return OrderItem(product=product, quantity=quantity, price=product.price, data=data or {})


def get_all_orders(
    ctx: ServiceContext,
    *,
    page: int = 1,
    limit: int = 20,
    user_id: int | None = None,
    staff_id: int | None = None,
    payment_type: str | None = None,
    status: str | None = None,
    date_from=None,
    date_to=None,
):
    """
    Back-office order list, newest first.

    Without orders:list:all the list is pinned to the caller's own staff_id
    and the user_id / staff_id filters are ignored.
    """
    query = ctx.session.query(Order)

    if ctx.has(Permission.ORDERS_LIST_ALL):
        if user_id is not None:
            query = query.filter(Order.user_id == user_id)
        if staff_id is not None:
            query = query.filter(Order.staff_id == staff_id)
    else:
        query = query.filter(Order.staff_id == ctx.staff_id)

    if payment_type:
        query = query.filter(Order.payment_type == payment_type)
    if status:
        query = query.filter(Order.status == status)
    if date_from is not None:
        query = query.filter(Order.created_at >= date_from)
    if date_to is not None:
        query = query.filter(Order.created_at <= date_to)

    count = query.count()
    rows = (
        query.order_by(Order.created_at.desc(), Order.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return ok({"count": count, "orders": [o.to_dict() for o in rows]})


def get_order(ctx: ServiceContext, order_id: int):
    order = ctx.session.get(Order, order_id)
    if order is None:
        ctx.logger.warning("Orders: Order not found", orderId=order_id)
        return not_found("Order not found")

    if order.staff_id != ctx.staff_id and not ctx.can(Resource.ORDERS, Action.READ, Scope.ALL):
        ctx.logger.warning("Orders: Forbidden order read", orderId=order_id, staffId=ctx.staff_id)
        return forbidden()
    return ok(order.to_dict())


def _check_transition(current: str, target: str) -> str | None:
    if current == target:
        return None
    if current == "CANCELLED":
        return "Cannot change status of cancelled order"
    if target not in ALLOWED_TRANSITIONS.get(current, set()):
        return f"Cannot change status from {current} to {target}"
    return None


def update_order(ctx: ServiceContext, order_id: int, patch: dict):
    """
    Change payment_type, status and/or data.

    A status change is audited as ORDER_STATUS_CHANGE; moving to CANCELLED
    restores stock.
    """
    session = ctx.session
    order = session.get(Order, order_id)
    if order is None:
        ctx.logger.warning("Orders: Order not found", orderId=order_id)
        return not_found("Order not found")

    if order.staff_id != ctx.staff_id and not ctx.can(Resource.ORDERS, Action.UPDATE, Scope.ALL):
        ctx.logger.warning("Orders: Forbidden order update", orderId=order_id, staffId=ctx.staff_id)
        return forbidden()

    new_status = patch.get("status", order.status)
    error = _check_transition(order.status, new_status)
    if error:
        ctx.logger.warning("Orders: Invalid status change", orderId=order_id, status=order.status, target=new_status)
        return fail(error)

    status_changed = new_status != order.status
    before = order.to_dict(include_items=False)

    try:
        if "payment_type" in patch:
            order.payment_type = patch["payment_type"]
        if "data" in patch:
            order.data = patch["data"] or {}
        restored = []
        if status_changed:
            if new_status == "CANCELLED":
                restored = _restore_stock(ctx, order, f"Order #{order.id} cancelled")
            order.status = new_status
        session.flush()

        audit_in_transaction(session, ctx, AuditEntry(
            entity_type=ENTITY_ORDER,
            entity_id=order.id,
            action="ORDER_STATUS_CHANGE" if status_changed else "UPDATE",
            previous_data=before,
            new_data=order.to_dict(include_items=False),
            metadata={"restored": restored} if restored else None,
        ))
        session.commit()
    except Exception:
        session.rollback()
        raise

    ctx.logger.info("Orders: Order updated", orderId=order.id, statusChanged=status_changed)
    return ok(order.to_dict())


def delete_order(ctx: ServiceContext, order_id: int):
    """Delete an order and its items, restoring stock first unless already cancelled."""
    session = ctx.session
    order = session.get(Order, order_id)
    if order is None:
        ctx.logger.warning("Orders: Order not found", orderId=order_id)
        return not_found("Order not found")

    before = order.to_dict()
    try:
        restored = []
        if order.status != "CANCELLED":
            restored = _restore_stock(ctx, order, f"Order #{order.id} deleted")
        session.delete(order)
        session.flush()

        audit_in_transaction(session, ctx, AuditEntry(
            entity_type=ENTITY_ORDER,
            entity_id=order_id,
            action="DELETE",
            previous_data=before,
            metadata={"restored": restored} if restored else None,
        ))
        session.commit()
    except Exception:
        session.rollback()
        raise

    ctx.logger.info("Orders: Order deleted", orderId=order_id)
    return ok({"order_id": order_id, "deleted": True})


# -- Storefront (user-facing) --


def list_user_orders(ctx: ServiceContext, *, page: int = 1, limit: int = 20, status: str | None = None):
    query = ctx.session.query(Order).filter(Order.user_id == ctx.user_id)
    if status:
        query = query.filter(Order.status == status)

    count = query.count()
    rows = (
        query.order_by(Order.created_at.desc(), Order.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return ok({"count": count, "orders": [o.to_dict(include_cost=False) for o in rows]})


def _get_own_order(ctx: ServiceContext, order_id: int):
    order = ctx.session.get(Order, order_id)
    if order is None:
        ctx.logger.warning("Orders: Order not found", orderId=order_id)
        return None, not_found("Order not found")
    if order.user_id != ctx.user_id:
        ctx.logger.warning("Orders: Forbidden user order access", orderId=order_id, userId=ctx.user_id)
        return None, forbidden()
    return order, None


def get_user_order(ctx: ServiceContext, order_id: int):
    order, error = _get_own_order(ctx, order_id)
    if error is not None:
        return error
    return ok(order.to_dict(include_cost=False))


def cancel_user_order(ctx: ServiceContext, order_id: int):
    """A customer may cancel their own order while it is still NEW."""
    session = ctx.session
    order, error = _get_own_order(ctx, order_id)
    if error is not None:
        return error
    if order.status != "NEW":
        ctx.logger.warning("Orders: Cancel rejected", orderId=order_id, status=order.status)
        return fail("Only new orders can be cancelled")

    before = order.to_dict(include_items=False)
    try:
        restored = _restore_stock(ctx, order, f"Order #{order.id} cancelled (user)")
        order.status = "CANCELLED"
        session.flush()

        audit_in_transaction(session, ctx, AuditEntry(
            entity_type=ENTITY_ORDER,
            entity_id=order.id,
            action="ORDER_STATUS_CHANGE",
            previous_data=before,
            new_data=order.to_dict(include_items=False),
            metadata={"restored": restored} if restored else None,
        ))
        session.commit()
    except Exception:
        session.rollback()
        raise

    ctx.logger.info("Orders: Order cancelled by user", orderId=order.id, userId=ctx.user_id)
    return ok(order.to_dict(include_cost=False))
