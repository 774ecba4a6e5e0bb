from __future__ import annotations

from ..extensions import db
from shopfront.time_utils import to_utc_z, utcnow


class Order(db.Model):
    """
    Customer order.

    STATUS FLOW: NEW -> ACCEPTED, NEW -> CANCELLED. CANCELLED is final.
    Orders placed from the storefront have user_id set and staff_id NULL;
    orders entered in the admin console carry the creating staff_id.
    """
    __tablename__ = "orders"
    __table_args__ = (
        db.Index("ix_orders_staff_created", "staff_id", "created_at"),
        db.Index("ix_orders_user_created", "user_id", "created_at"),
        {"sqlite_autoincrement": True},
    )

    STATUSES = ("NEW", "ACCEPTED", "CANCELLED")
    PAYMENT_TYPES = ("CASH", "CREDIT_CARD")

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    staff_id = db.Column(db.Integer, db.ForeignKey("staff.id", ondelete="SET NULL"), nullable=True, index=True)

    payment_type = db.Column(db.String(16), nullable=False)
    status = db.Column(db.String(16), nullable=False, default="NEW", index=True)
    data = db.Column(db.JSON, nullable=False, default=dict)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, index=True)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    user = db.relationship("User", backref=db.backref("orders", lazy=True))
    staff = db.relationship("Staff", backref=db.backref("orders", lazy=True))
    items = db.relationship(
        "OrderItem",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderItem.id",
    )

    def __repr__(self) -> str:
        return f"<Order id={self.id} status={self.status} user_id={self.user_id} staff_id={self.staff_id}>"

    def to_dict(self, include_items: bool = True, include_cost: bool = True) -> dict:
        data = {
            "id": self.id,
            "user_id": self.user_id,
            "staff_id": self.staff_id,
            "payment_type": self.payment_type,
            "status": self.status,
            "data": self.data or {},
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
        if include_items:
            data["items"] = [item.to_dict(include_cost=include_cost) for item in self.items]
            data["user"] = self.user.to_dict() if self.user else None
        return data


class OrderItem(db.Model):
    """Order line. price is snapshotted from the product when the order is placed."""
    __tablename__ = "order_items"
    __table_args__ = (
        db.CheckConstraint("quantity > 0", name="ck_order_items_quantity_positive"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    order_id = db.Column(db.Integer, db.ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id", ondelete="RESTRICT"), nullable=False, index=True)
    quantity = db.Column(db.Integer, nullable=False)
    price = db.Column(db.Numeric(10, 2), nullable=False)
    data = db.Column(db.JSON, nullable=False, default=dict)

    order = db.relationship("Order", back_populates="items")
    product = db.relationship("Product")

    def to_dict(self, include_cost: bool = True) -> dict:
        return {
            "id": self.id,
            "order_id": self.order_id,
            "product_id": self.product_id,
            "quantity": self.quantity,
            "price": format(self.price, "f") if self.price is not None else None,
            "data": self.data or {},
            "product": self.product.to_dict(include_cost=include_cost) if self.product else None,
        }
