from __future__ import annotations

from ..extensions import db
from ..money import format_cents
from ..time_utils import utcnow, to_utc_z, to_iso_date
from .users import new_id


class OrderStatus:
    PENDING = "Pending"
    PROCESSING = "Processing"
    SHIPPED = "Shipped"
    DELIVERED = "Delivered"
    CANCELLED = "Cancelled"

    ALL = (PENDING, PROCESSING, SHIPPED, DELIVERED, CANCELLED)

    # Forward-only lifecycle; Delivered and Cancelled are terminal.
    TRANSITIONS = {
        PENDING: (PROCESSING, CANCELLED),
        PROCESSING: (SHIPPED, DELIVERED, CANCELLED),
        SHIPPED: (DELIVERED,),
        DELIVERED: (),
        CANCELLED: (),
    }

    # Orders whose money is still owed to the business.
    OUTSTANDING = (PENDING, PROCESSING, SHIPPED)


class Order(db.Model):
    """
    A client order. Every order owns one or more OrderItem rows.

    product_id mirrors the first line so single-product readers keep working;
    quantity and amount_cents are the sums over the lines.
    """
    __tablename__ = "orders"
    __table_args__ = (
        db.Index("ix_orders_user_id", "user_id"),
        db.Index("ix_orders_status", "status"),
        db.Index("ix_orders_created_at", "created_at"),
    )

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    user_id = db.Column(db.String(36), db.ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    product_id = db.Column(db.String(36), db.ForeignKey("products.id"), nullable=True)
    quantity = db.Column(db.Integer, nullable=False)
    amount_cents = db.Column(db.Integer, nullable=False)
    status = db.Column(db.String(50), nullable=False, default=OrderStatus.PENDING)
    delivery_date = db.Column(db.Date, nullable=True)

    version_id = db.Column(db.Integer, nullable=False, default=1)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    __mapper_args__ = {"version_id_col": version_id}

    items = db.relationship(
        "OrderItem",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderItem.line_no",
    )
    user = db.relationship("User")
    product = db.relationship("Product")

    def to_dict(self, include_items: bool = True) -> dict:
        data = {
            "id": self.id,
            "user_id": self.user_id,
            "product_id": self.product_id,
            "quantity": self.quantity,
            "amount_cents": self.amount_cents,
            "amount": format_cents(self.amount_cents),
            "status": self.status,
            "delivery_date": to_iso_date(self.delivery_date),
            "version_id": self.version_id,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
            "product": self.product.summary() if self.product else None,
            "user": self.user.summary() if self.user else None,
        }
        if include_items:
            data["items"] = [item.to_dict() for item in self.items]
        return data


class OrderItem(db.Model):
    __tablename__ = "order_items"
    __table_args__ = (
        db.CheckConstraint("quantity > 0", name="ck_order_items_quantity_positive"),
        db.Index("ix_order_items_order_id", "order_id"),
        db.Index("ix_order_items_product_id", "product_id"),
    )

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    order_id = db.Column(db.String(36), db.ForeignKey("orders.id", ondelete="CASCADE"), nullable=False)
    product_id = db.Column(db.String(36), db.ForeignKey("products.id"), nullable=False)
    # Position of the line in the submitted cart
    line_no = db.Column(db.Integer, nullable=False, default=0)
    quantity = db.Column(db.Integer, nullable=False)

    # Price snapshot at the time of the order
    unit_price_cents = db.Column(db.Integer, nullable=False)
    line_total_cents = db.Column(db.Integer, nullable=False)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    order = db.relationship("Order", back_populates="items")
    product = db.relationship("Product")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "order_id": self.order_id,
            "product_id": self.product_id,
            "line_no": self.line_no,
            "quantity": self.quantity,
            "unit_price_cents": self.unit_price_cents,
            "unit_price": format_cents(self.unit_price_cents),
            "line_total_cents": self.line_total_cents,
            "total_price": format_cents(self.line_total_cents),
            "product": self.product.summary() if self.product else None,
            "created_at": to_utc_z(self.created_at),
        }


class Invoice(db.Model):
    """Billing record for an order; at most one per order."""
    __tablename__ = "invoices"

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    order_id = db.Column(
        db.String(36),
        db.ForeignKey("orders.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    amount_cents = db.Column(db.Integer, nullable=False)
    issue_date = db.Column(db.Date, nullable=False)
    due_date = db.Column(db.Date, nullable=True)
    status = db.Column(db.String(50), nullable=False, default="Pending")
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    order = db.relationship(
        "Order",
        backref=db.backref("invoice", uselist=False, cascade="all, delete"),
    )

    def to_dict(self) -> dict:
        order = self.order
        return {
            "id": self.id,
            "order_id": self.order_id,
            "amount_cents": self.amount_cents,
            "amount": format_cents(self.amount_cents),
            "issue_date": to_iso_date(self.issue_date),
            "due_date": to_iso_date(self.due_date),
            "status": self.status,
            "customer": order.user.name if order is not None and order.user is not None else None,
            "created_at": to_utc_z(self.created_at),
        }
