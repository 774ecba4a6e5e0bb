# Overview: Service-layer operations for products; encapsulates business logic and database work.

"""
Product catalog.

SOFT DELETE: products are never removed (order lines reference them).
delete_product sets deleted_at, restore_product clears it. Deleted
products are hidden from the storefront and cannot be edited.

Every mutation writes, in one transaction:
- a ProductHistory row (snapshot of name, price, costprice, category_id, remaining)
- an AuditLog row
"""

from sqlalchemy import or_

from ..context import ServiceContext
from ..models import Category, Product
from ..results import ok, fail, not_found
from ..time_utils import utcnow
from .audit_service import AuditEntry, ENTITY_PRODUCT, audit_in_transaction
from .categories_service import get_descendant_ids
from .product_history_service import record_history

PRODUCT_FIELDS = ("name", "price", "costprice", "category_id", "remaining")


def list_products(
    ctx: ServiceContext,
    *,
    page: int = 1,
    limit: int = 20,
    search: str | None = None,
    category_ids: list[int] | None = None,
    min_price=None,
    max_price=None,
    include_deleted: bool = False,
    public: bool = False,
):
    """
    Paginated product list, newest first.

    category_ids matches the given categories and everything below them.
    public=True never includes deleted products and hides costprice.
    """
    session = ctx.session
    query = session.query(Product)

    if public or not include_deleted:
        query = query.filter(Product.deleted_at.is_(None))
    if search:
        query = query.filter(Product.name.ilike(f"%{search}%"))
    if category_ids:
        expanded = set()
        for category_id in category_ids:
            expanded.update(get_descendant_ids(session, category_id))
        query = query.filter(Product.category_id.in_(sorted(expanded)))
    if min_price is not None:
        query = query.filter(Product.price >= min_price)
    if max_price is not None:
        query = query.filter(Product.price <= max_price)

    count = query.count()
    rows = (
        query.order_by(Product.created_at.desc(), Product.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return ok({"count": count, "products": [p.to_dict(include_cost=not public) for p in rows]})


def get_product(ctx: ServiceContext, product_id: int, *, public: bool = False):
    product = ctx.session.get(Product, product_id)
    if product is None or (public and product.is_deleted):
        ctx.logger.warning("Products: Product not found", productId=product_id)
        return not_found("Product not found")

    data = product.to_dict(include_cost=not public)
    data["category"] = product.category.to_dict() if product.category else None
    return ok(data)


def create_product(ctx: ServiceContext, patch: dict):
    session = ctx.session

    if session.get(Category, patch["category_id"]) is None:
        ctx.logger.warning("Products: Category not found", categoryId=patch["category_id"])
        return fail("Category not found")

    product = Product(**{k: patch[k] for k in PRODUCT_FIELDS if k in patch})
    if product.remaining is None:
        product.remaining = 0
    session.add(product)
    session.flush()

    record_history(
        session,
        product_id=product.id,
        staff_id=ctx.staff_id,
        operation="CREATE",
        new_data=product.snapshot(),
        change_reason="Product created",
    )
    audit_in_transaction(session, ctx, AuditEntry(
        entity_type=ENTITY_PRODUCT,
        entity_id=product.id,
        action="CREATE",
        new_data=product.to_dict(),
    ))
    session.commit()

    ctx.logger.info("Products: Product created", productId=product.id)
    return ok(product.to_dict())


def update_product(ctx: ServiceContext, product_id: int, patch: dict):
    session = ctx.session
    product = session.get(Product, product_id)
    if product is None:
        ctx.logger.warning("Products: Product not found", productId=product_id)
        return not_found("Product not found")
    if product.is_deleted:
        ctx.logger.warning("Products: Update of deleted product rejected", productId=product_id)
        return fail("Cannot update deleted product")

    if "category_id" in patch and session.get(Category, patch["category_id"]) is None:
        ctx.logger.warning("Products: Category not found", categoryId=patch["category_id"])
        return fail("Category not found")

    before_snapshot = product.snapshot()
    before = product.to_dict()
    for field in PRODUCT_FIELDS:
        if field in patch:
            setattr(product, field, patch[field])
    session.flush()

    record_history(
        session,
        product_id=product.id,
        staff_id=ctx.staff_id,
        operation="UPDATE",
        previous_data=before_snapshot,
        new_data=product.snapshot(),
        change_reason=patch.get("change_reason") or "Product updated",
    )
    audit_in_transaction(session, ctx, AuditEntry(
        entity_type=ENTITY_PRODUCT,
        entity_id=product.id,
        action="UPDATE",
        previous_data=before,
        new_data=product.to_dict(),
    ))
    session.commit()

    ctx.logger.info("Products: Product updated", productId=product.id)
    return ok(product.to_dict())


def delete_product(ctx: ServiceContext, product_id: int):
    """Soft delete."""
    session = ctx.session
    product = session.get(Product, product_id)
    if product is None:
        ctx.logger.warning("Products: Product not found", productId=product_id)
        return not_found("Product not found")
    if product.is_deleted:
        return fail("Product already deleted")

    before = product.to_dict()
    product.deleted_at = utcnow()
    session.flush()

    record_history(
        session,
        product_id=product.id,
        staff_id=ctx.staff_id,
        operation="DELETE",
        previous_data=product.snapshot(),
        change_reason="Product deleted",
    )
    audit_in_transaction(session, ctx, AuditEntry(
        entity_type=ENTITY_PRODUCT,
        entity_id=product.id,
        action="DELETE",
        previous_data=before,
        new_data=product.to_dict(),
    ))
    session.commit()

    ctx.logger.info("Products: Product deleted", productId=product.id)
    return ok(product.to_dict())


def restore_product(ctx: ServiceContext, product_id: int):
    session = ctx.session
    product = session.get(Product, product_id)
    if product is None:
        ctx.logger.warning("Products: Product not found", productId=product_id)
        return not_found("Product not found")
    if not product.is_deleted:
        return fail("Product is not deleted")

    before = product.to_dict()
    product.deleted_at = None
    session.flush()

    record_history(
        session,
        product_id=product.id,
        staff_id=ctx.staff_id,
        operation="RESTORE",
        new_data=product.snapshot(),
        change_reason="Product restored",
    )
    audit_in_transaction(session, ctx, AuditEntry(
        entity_type=ENTITY_PRODUCT,
        entity_id=product.id,
        action="RESTORE",
        previous_data=before,
        new_data=product.to_dict(),
    ))
    session.commit()

    ctx.logger.info("Products: Product restored", productId=product.id)
    return ok(product.to_dict())
