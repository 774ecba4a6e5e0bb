# Overview: Service-layer operations for the category tree.

"""
Category tree management.

INVARIANTS:
- No cycles. On update the proposed parent's ancestor chain is walked;
  if it reaches the category being moved the update is refused.
- Names are unique among siblings (same parent_id, NULL = root level).
- A category with children or products cannot be deleted.

Every mutation writes its audit row in the same transaction.
"""

from ..context import ServiceContext
from ..models import Category, Product
from ..results import ok, fail, not_found
from .audit_service import AuditEntry, ENTITY_CATEGORY, audit_in_transaction

DEFAULT_TREE_DEPTH = 3
MAX_TREE_DEPTH = 10


def _serialize(
    category: Category,
    *,
    depth: int = 0,
    include_products: bool = False,
    include_parent: bool = False,
    public: bool = False,
) -> dict:
    data = category.to_dict()
    if include_parent:
        data["parent"] = category.parent.to_dict() if category.parent else None
    if depth > 0:
        data["children"] = [
            _serialize(child, depth=depth - 1, include_products=include_products, public=public)
            for child in category.children
        ]
    if include_products:
        data["products"] = [
            p.to_dict(include_cost=not public)
            for p in category.products
            if not p.is_deleted
        ]
    return data


def _sibling_exists(session, name: str, parent_id, exclude_id: int | None = None) -> bool:
    query = session.query(Category).filter(Category.name == name)
    if parent_id is None:
        query = query.filter(Category.parent_id.is_(None))
    else:
        query = query.filter(Category.parent_id == parent_id)
    if exclude_id is not None:
        query = query.filter(Category.id != exclude_id)
    return query.first() is not None


def is_descendant(session, candidate_id: int, ancestor_id: int) -> bool:
    """True if candidate_id sits somewhere below ancestor_id."""
    seen = set()
    current = session.get(Category, candidate_id)
    while current is not None and current.parent_id is not None:
        if current.parent_id == ancestor_id:
            return True
        if current.parent_id in seen:
            # Corrupt data; stop rather than loop forever
            return False
        seen.add(current.parent_id)
        current = session.get(Category, current.parent_id)
    return False


def get_descendant_ids(session, category_id: int) -> list[int]:
    """category_id plus every id below it (breadth-first)."""
    result = [category_id]
    frontier = [category_id]
    while frontier:
        children = [
            row.id
            for row in session.query(Category.id).filter(Category.parent_id.in_(frontier)).all()
        ]
        children = [cid for cid in children if cid not in result]
        result.extend(children)
        frontier = children
    return result


def list_categories(
    ctx: ServiceContext,
    *,
    page: int = 1,
    limit: int = 20,
    search: str | None = None,
    parent_id: int | None = None,
    roots_only: bool = False,
    include_children: bool = False,
    include_products: bool = False,
    include_parent: bool = False,
    depth: int = 1,
    public: bool = False,
):
    query = ctx.session.query(Category)
    if search:
        query = query.filter(Category.name.ilike(f"%{search}%"))
    if parent_id is not None:
        query = query.filter(Category.parent_id == parent_id)
    elif roots_only:
        query = query.filter(Category.parent_id.is_(None))

    count = query.count()
    rows = query.order_by(Category.name.asc(), Category.id.asc()).offset((page - 1) * limit).limit(limit).all()

    depth = min(max(depth, 1), MAX_TREE_DEPTH) if include_children else 0
    categories = [
        _serialize(c, depth=depth, include_products=include_products, include_parent=include_parent, public=public)
        for c in rows
    ]
    return ok({"count": count, "categories": categories})


def get_category(
    ctx: ServiceContext,
    category_id: int,
    *,
    include_children: bool = False,
    include_products: bool = False,
    include_parent: bool = False,
    depth: int = 1,
    public: bool = False,
):
    category = ctx.session.get(Category, category_id)
    if category is None:
        ctx.logger.warning("Categories: Category not found", categoryId=category_id)
        return not_found("Category not found")
    depth = min(max(depth, 1), MAX_TREE_DEPTH) if include_children else 0
    return ok(_serialize(
        category,
        depth=depth,
        include_products=include_products,
        include_parent=include_parent,
        public=public,
    ))


def get_category_tree(ctx: ServiceContext, depth: int = DEFAULT_TREE_DEPTH):
    """Root categories with nested children down to `depth` levels."""
    depth = min(max(depth, 1), MAX_TREE_DEPTH)
    roots = (
        ctx.session.query(Category)
        .filter(Category.parent_id.is_(None))
        .order_by(Category.name.asc())
        .all()
    )
    return ok([_serialize(root, depth=depth) for root in roots])


def create_category(ctx: ServiceContext, patch: dict):
    session = ctx.session
    parent_id = patch.get("parent_id")

    if parent_id is not None and session.get(Category, parent_id) is None:
        ctx.logger.warning("Categories: Parent category not found", parentId=parent_id)
        return fail("Parent category not found")

    if _sibling_exists(session, patch["name"], parent_id):
        ctx.logger.warning("Categories: Duplicate name", name=patch["name"], parentId=parent_id)
        return fail("Category name already exists at this level")

    category = Category(name=patch["name"], parent_id=parent_id)
    session.add(category)
    session.flush()

    audit_in_transaction(session, ctx, AuditEntry(
        entity_type=ENTITY_CATEGORY,
        entity_id=category.id,
        action="CREATE",
        new_data=category.to_dict(),
    ))
    session.commit()

    ctx.logger.info("Categories: Category created", categoryId=category.id)
    return ok(category.to_dict())


def update_category(ctx: ServiceContext, category_id: int, patch: dict):
    session = ctx.session
    category = session.get(Category, category_id)
    if category is None:
        ctx.logger.warning("Categories: Category not found", categoryId=category_id)
        return not_found("Category not found")

    target_parent = patch["parent_id"] if "parent_id" in patch else category.parent_id
    target_name = patch.get("name", category.name)

    if "parent_id" in patch and target_parent is not None:
        if target_parent == category_id:
            ctx.logger.warning("Categories: Self parent rejected", categoryId=category_id)
            return fail("Cannot set category as its own parent")
        if session.get(Category, target_parent) is None:
            ctx.logger.warning("Categories: Parent category not found", parentId=target_parent)
            return fail("Parent category not found")
        if is_descendant(session, target_parent, category_id):
            ctx.logger.warning(
                "Categories: Circular reference rejected",
                categoryId=category_id,
                parentId=target_parent,
            )
            return fail("Cannot set a descendant as parent (circular reference)")

    if (target_name != category.name or target_parent != category.parent_id) and _sibling_exists(
        session, target_name, target_parent, exclude_id=category_id
    ):
        ctx.logger.warning("Categories: Duplicate name", name=target_name, parentId=target_parent)
        return fail("Category name already exists at this level")

    before = category.to_dict()
    category.name = target_name
    category.parent_id = target_parent
    session.flush()

    audit_in_transaction(session, ctx, AuditEntry(
        entity_type=ENTITY_CATEGORY,
        entity_id=category.id,
        action="UPDATE",
        previous_data=before,
        new_data=category.to_dict(),
    ))
    session.commit()

    ctx.logger.info("Categories: Category updated", categoryId=category.id)
    return ok(category.to_dict())


def delete_category(ctx: ServiceContext, category_id: int):
    session = ctx.session
    category = session.get(Category, category_id)
    if category is None:
        ctx.logger.warning("Categories: Category not found", categoryId=category_id)
        return not_found("Category not found")

    if session.query(Category.id).filter(Category.parent_id == category_id).first():
        ctx.logger.warning("Categories: Has children", categoryId=category_id)
        return fail("Cannot delete category with child categories")

    # Soft-deleted products still reference the row
    if session.query(Product.id).filter(Product.category_id == category_id).first():
        ctx.logger.warning("Categories: Has products", categoryId=category_id)
        return fail("Cannot delete category with products")

    before = category.to_dict()
    session.delete(category)
    session.flush()

    audit_in_transaction(session, ctx, AuditEntry(
        entity_type=ENTITY_CATEGORY,
        entity_id=category_id,
        action="DELETE",
        previous_data=before,
    ))
    session.commit()

    ctx.logger.info("Categories: Category deleted", categoryId=category_id)
    return ok({"category_id": category_id, "deleted": True})
