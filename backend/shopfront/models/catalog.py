from __future__ import annotations

from ..extensions import db
from shopfront.time_utils import to_utc_z, utcnow


def _money(value):
    return None if value is None else format(value, "f")


class Category(db.Model):
    """
    Self-referential category tree node.

    INVARIANTS (enforced in categories_service):
    - no cycles: a category is never its own ancestor
    - names are unique among siblings
    - a category with children or products cannot be deleted
    """
    __tablename__ = "categories"
    __table_args__ = (
        db.Index("ix_categories_parent_name", "parent_id", "name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    parent_id = db.Column(
        db.Integer,
        db.ForeignKey("categories.id", ondelete="RESTRICT"),
        nullable=True,
        index=True,
    )

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    parent = db.relationship("Category", remote_side=[id], backref=db.backref("children", lazy=True, order_by="Category.name"))

    def __repr__(self) -> str:
        return f"<Category id={self.id} name={self.name!r} parent_id={self.parent_id}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "parent_id": self.parent_id,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class Product(db.Model):
    """
    Catalog item with a stock counter.

    remaining is the live stock count and can never go negative (check
    constraint + service checks). Products are soft-deleted through
    deleted_at because order lines keep referencing them.
    """
    __tablename__ = "products"
    __table_args__ = (
        db.CheckConstraint("remaining >= 0", name="ck_products_remaining_nonneg"),
        db.Index("ix_products_category_deleted", "category_id", "deleted_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    price = db.Column(db.Numeric(10, 2), nullable=False)
    costprice = db.Column(db.Numeric(10, 2), nullable=False)
    category_id = db.Column(
        db.Integer,
        db.ForeignKey("categories.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    remaining = db.Column(db.Integer, nullable=False, default=0)

    deleted_at = db.Column(db.DateTime(timezone=True), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    category = db.relationship("Category", backref=db.backref("products", lazy=True))

    def __repr__(self) -> str:
        return f"<Product id={self.id} name={self.name!r} remaining={self.remaining}>"

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    def snapshot(self) -> dict:
        """Fields tracked by product history."""
        return {
            "name": self.name,
            "price": _money(self.price),
            "costprice": _money(self.costprice),
            "category_id": self.category_id,
            "remaining": self.remaining,
        }

    def to_dict(self, include_cost: bool = True) -> dict:
        data = {
            "id": self.id,
            "name": self.name,
            "price": _money(self.price),
            "category_id": self.category_id,
            "remaining": self.remaining,
            "deleted_at": to_utc_z(self.deleted_at),
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
        if include_cost:
            data["costprice"] = _money(self.costprice)
        return data


class ProductHistory(db.Model):
    """
    Append-only log of product changes and stock movements.

    operation is one of OPERATIONS. quantity is set for INVENTORY_* rows only.
    previous_data / new_data hold the tracked fields before and after.
    """
    __tablename__ = "product_history"
    __table_args__ = (
        db.Index("ix_product_history_product_created", "product_id", "created_at"),
        {"sqlite_autoincrement": True},
    )

    OPERATIONS = ("CREATE", "UPDATE", "DELETE", "RESTORE", "INVENTORY_ADD", "INVENTORY_REMOVE")

    id = db.Column(db.Integer, primary_key=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id", ondelete="RESTRICT"), nullable=False, index=True)
    staff_id = db.Column(db.Integer, db.ForeignKey("staff.id", ondelete="SET NULL"), nullable=True, index=True)

    operation = db.Column(db.String(32), nullable=False, index=True)
    quantity = db.Column(db.Integer, nullable=True)
    previous_data = db.Column(db.JSON, nullable=True)
    new_data = db.Column(db.JSON, nullable=True)
    change_reason = db.Column(db.String(500), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, index=True)

    product = db.relationship("Product", backref=db.backref("history", lazy=True))
    staff = db.relationship("Staff")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "product_id": self.product_id,
            "staff_id": self.staff_id,
            "operation": self.operation,
            "quantity": self.quantity,
            "previous_data": self.previous_data,
            "new_data": self.new_data,
            "change_reason": self.change_reason,
            "created_at": to_utc_z(self.created_at),
        }
