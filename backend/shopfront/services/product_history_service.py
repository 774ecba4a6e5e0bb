# Overview: Service-layer operations for product history and manual stock adjustments.

"""
Product history is the append-only stock and change log for products.

Rows are written by:
- products_service (CREATE / UPDATE / DELETE / RESTORE snapshots)
- orders_service (INVENTORY_REMOVE on order, INVENTORY_ADD on delete/cancel)
- adjust_inventory below (manual INVENTORY_ADD / INVENTORY_REMOVE)

record_history never commits; callers own the transaction.
"""

from sqlalchemy import update

from ..context import ServiceContext
from ..models import Product, ProductHistory
from ..results import ok, fail, not_found
from .audit_service import AuditEntry, ENTITY_PRODUCT, audit_in_transaction

INVENTORY_OPERATIONS = ("INVENTORY_ADD", "INVENTORY_REMOVE")


def move_stock(session, product: Product, delta: int) -> tuple[int, int] | None:
    """
    Add delta to product.remaining in a single UPDATE.

    The row only matches while remaining + delta stays >= 0, so concurrent
    sales can never take more than is on hand. Returns (previous, new), or
    None when the stock would go negative.
    """
    result = session.execute(
        update(Product)
        .where(Product.id == product.id, Product.remaining + delta >= 0)
        .values(remaining=Product.remaining + delta)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        return None
    session.refresh(product, ["remaining"])
    return product.remaining - delta, product.remaining


def record_history(
    session,
    *,
    product_id: int,
    operation: str,
    staff_id: int | None = None,
    quantity: int | None = None,
    previous_data: dict | None = None,
    new_data: dict | None = None,
    change_reason: str | None = None,
) -> ProductHistory:
    if operation not in ProductHistory.OPERATIONS:
        raise ValueError(f"Unknown product history operation: {operation}")
    entry = ProductHistory(
        product_id=product_id,
        staff_id=staff_id,
        operation=operation,
        quantity=quantity,
        previous_data=previous_data,
        new_data=new_data,
        change_reason=change_reason,
    )
    session.add(entry)
    return entry


def list_history(
    ctx: ServiceContext,
    *,
    page: int = 1,
    limit: int = 20,
    product_id: int | None = None,
    operation: str | None = None,
    staff_id: int | None = None,
    date_from=None,
    date_to=None,
):
    query = ctx.session.query(ProductHistory)
    if product_id is not None:
        query = query.filter(ProductHistory.product_id == product_id)
    if operation:
        query = query.filter(ProductHistory.operation == operation)
    if staff_id is not None:
        query = query.filter(ProductHistory.staff_id == staff_id)
    if date_from is not None:
        query = query.filter(ProductHistory.created_at >= date_from)
    if date_to is not None:
        query = query.filter(ProductHistory.created_at <= date_to)

    count = query.count()
    rows = (
        query.order_by(ProductHistory.created_at.desc(), ProductHistory.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return ok({"count": count, "history": [row.to_dict() for row in rows]})


def get_history_entry(ctx: ServiceContext, history_id: int):
    entry = ctx.session.get(ProductHistory, history_id)
    if entry is None:
        ctx.logger.warning("ProductHistory: Entry not found", historyId=history_id)
        return not_found("History entry not found")
    return ok(entry.to_dict())


def get_product_history(ctx: ServiceContext, product_id: int, *, page: int = 1, limit: int = 20):
    if ctx.session.get(Product, product_id) is None:
        ctx.logger.warning("ProductHistory: Product not found", productId=product_id)
        return not_found("Product not found")
    return list_history(ctx, page=page, limit=limit, product_id=product_id)


def adjust_inventory(
    ctx: ServiceContext,
    product_id: int,
    *,
    operation: str,
    quantity: int,
    change_reason: str | None = None,
):
    """
    Manual stock movement: INVENTORY_ADD / INVENTORY_REMOVE by quantity > 0.

    Stock can never go negative. Deleted products cannot be adjusted.
    """
    session = ctx.session

    if operation not in INVENTORY_OPERATIONS:
        return fail(f"operation must be one of: {', '.join(INVENTORY_OPERATIONS)}")
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
        return fail("quantity must be a positive integer")

    product = session.get(Product, product_id)
    if product is None:
        ctx.logger.warning("ProductHistory: Product not found", productId=product_id)
        return not_found("Product not found")
    if product.is_deleted:
        return fail("Cannot adjust inventory of deleted product")

    previous = product.remaining
    delta = quantity if operation == "INVENTORY_ADD" else -quantity
    if previous + delta < 0:
        ctx.logger.warning(
            "ProductHistory: Insufficient stock",
            productId=product_id,
            requested=quantity,
            available=previous,
        )
        return fail("Insufficient stock")

    moved = move_stock(session, product, delta)
    if moved is None:
        session.rollback()
        ctx.logger.warning("ProductHistory: Stock changed concurrently", productId=product_id)
        return fail("Insufficient stock")
    previous, _ = moved

    entry = record_history(
        session,
        product_id=product.id,
        staff_id=ctx.staff_id,
        operation=operation,
        quantity=quantity,
        previous_data={"remaining": previous},
        new_data={"remaining": product.remaining},
        change_reason=change_reason,
    )
    session.flush()

    audit_in_transaction(session, ctx, AuditEntry(
        entity_type=ENTITY_PRODUCT,
        entity_id=product.id,
        action="INVENTORY_ADJUST",
        previous_data={"remaining": previous},
        new_data={"remaining": product.remaining},
        metadata={"operation": operation, "quantity": quantity, "history_id": entry.id},
    ))
    session.commit()

    ctx.logger.info(
        "ProductHistory: Inventory adjusted",
        productId=product.id,
        operation=operation,
        quantity=quantity,
    )
    return ok(entry.to_dict())
