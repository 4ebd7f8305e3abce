# Overview: Service-layer operations for orders; checkout, stock reservation and the status lifecycle.

"""
Order/Inventory coordinator.

Checkout invariants:
- An order and all of its items are written in one transaction together
  with the stock decrements; any failure leaves no trace.
- The stock pre-check only produces a precise error early. The authoritative
  guard is the conditional UPDATE in inventory_service.decrement_stock.
- amount_cents == sum(unit_price_cents * quantity) over the items, in
  integer cents.
- Duplicate product lines in one cart are merged before validation.

Status lifecycle: see OrderStatus.TRANSITIONS. Moving to Cancelled puts
every item's quantity back into stock in the same transaction.
"""
from __future__ import annotations

from dataclasses import dataclass

from flask import current_app

from ..errors import (
    Forbidden,
    InsufficientStock,
    InvalidInput,
    InvalidStatusTransition,
    NotFound,
    ProfileIncomplete,
)
from ..extensions import db
from ..models import ClientProfile, Order, OrderItem, OrderStatus, Product, User
from ..roles import Role
from ..time_utils import parse_optional_date
from ..validation import INT_MAX, positive_int
from .concurrency import lock_for_update, run_with_retry
from .inventory_service import decrement_stock, increment_stock
from .profile_service import get_profile, missing_fields


@dataclass(frozen=True)
class CartLine:
    product_id: str
    quantity: int


def parse_cart(items) -> list[CartLine]:
    """
    Normalize the raw cart payload into CartLines, first-seen order kept.

    Raises InvalidInput for an empty cart, a missing product_id or a
    quantity that is not a positive integer.
    """
    if not isinstance(items, list) or not items:
        raise InvalidInput("Cart items are required")

    merged: dict[str, int] = {}
    for raw in items:
        if not isinstance(raw, dict) or not raw.get("product_id"):
            raise InvalidInput("Invalid product or quantity")
        product_id = str(raw["product_id"])
        quantity = positive_int(raw.get("quantity"), "quantity")
        merged[product_id] = merged.get(product_id, 0) + quantity

    return [CartLine(product_id=pid, quantity=qty) for pid, qty in merged.items()]


def _load_products(lines: list[CartLine]) -> dict[str, Product]:
    products: dict[str, Product] = {}
    for line in lines:
        product = db.session.get(Product, line.product_id)
        if product is None:
            raise NotFound(f"Product not found: {line.product_id}")
        if line.quantity > product.stock:
            raise InsufficientStock(
                product_id=product.id,
                product_name=product.name,
                requested=line.quantity,
                available=product.stock,
            )
        products[product.id] = product
    return products


def _write_order(*, user: User, lines: list[CartLine], delivery_date) -> Order:
    """Stage order + items and take the stock; the caller commits."""
    products = _load_products(lines)

    order = Order(
        user_id=user.id,
        product_id=lines[0].product_id,
        quantity=0,
        amount_cents=0,
        status=OrderStatus.PENDING,
        delivery_date=delivery_date,
    )
    for line_no, line in enumerate(lines):
        product = products[line.product_id]
        line_total = product.price_cents * line.quantity
        order.items.append(OrderItem(
            product_id=product.id,
            line_no=line_no,
            quantity=line.quantity,
            unit_price_cents=product.price_cents,
            line_total_cents=line_total,
        ))
        order.quantity += line.quantity
        order.amount_cents += line_total

    if order.quantity > INT_MAX or order.amount_cents > INT_MAX:
        raise InvalidInput("Order total is too large")

    db.session.add(order)
    db.session.flush()

    for line in lines:
        decrement_stock(
            product_id=line.product_id,
            product_name=products[line.product_id].name,
            quantity=line.quantity,
        )
    return order


def place_cart_order(*, user: User, items, delivery_date=None) -> Order:
    """
    Place a multi-product order for user.

    Raises:
        ProfileIncomplete: the user's delivery profile is missing or partial
        InvalidInput: malformed cart or delivery_date
        NotFound: a product does not exist
        InsufficientStock: a line asks for more than is on hand
    """
    missing = missing_fields(get_profile(user))
    if missing:
        raise ProfileIncomplete(missing)

    lines = parse_cart(items)
    delivery = parse_optional_date(delivery_date, "delivery_date")

    def _op():
        order = _write_order(user=user, lines=lines, delivery_date=delivery)
        db.session.commit()
        return order

    order = run_with_retry(_op)
    current_app.logger.info(
        "Order placed: id=%s user=%s lines=%d amount_cents=%d",
        order.id, user.id, len(lines), order.amount_cents,
    )
    return order


def place_single_order(*, user: User, product_id, quantity, delivery_date=None) -> Order:
    """Single-product checkout kept for older clients; no profile gate."""
    if not product_id or quantity is None:
        raise InvalidInput("Product and quantity are required")
    lines = [CartLine(product_id=str(product_id), quantity=positive_int(quantity, "quantity"))]
    delivery = parse_optional_date(delivery_date, "delivery_date")

    def _op():
        order = _write_order(user=user, lines=lines, delivery_date=delivery)
        db.session.commit()
        return order

    order = run_with_retry(_op)
    current_app.logger.info("Order placed: id=%s user=%s single product=%s", order.id, user.id, product_id)
    return order


def serialize_order(order: Order) -> dict:
    data = order.to_dict()
    profile = None
    if order.user_id:
        profile = db.session.query(ClientProfile).filter_by(user_id=order.user_id).first()
    data["profile"] = profile.to_dict() if profile else None
    return data


def list_orders(user: User) -> list[Order]:
    """Clients see their own orders; admins and cluster users see all. Newest first."""
    query = db.session.query(Order)
    if user.role_enum is Role.CLIENT:
        query = query.filter(Order.user_id == user.id)
    return query.order_by(Order.created_at.desc()).all()


def get_order(*, user: User, order_id: str) -> Order:
    order = db.session.get(Order, order_id)
    if order is None:
        raise NotFound("Order not found")
    if user.role_enum is Role.CLIENT and order.user_id != user.id:
        raise Forbidden("Access denied")
    return order


def parse_status(value) -> str:
    if not value:
        raise InvalidInput("Status is required")
    for status in OrderStatus.ALL:
        if str(value).strip().lower() == status.lower():
            return status
    raise InvalidInput(f"status must be one of: {', '.join(OrderStatus.ALL)}")


def update_order_status(*, order_id: str, status) -> Order:
    """
    Move an order along its lifecycle.

    Re-applying the current status is a no-op. Cancelling restocks every item.

    Raises:
        InvalidInput: unknown status
        NotFound: no such order
        InvalidStatusTransition: the move is not in OrderStatus.TRANSITIONS
    """
    target = parse_status(status)

    def _op():
        order = lock_for_update(db.session.query(Order).filter(Order.id == order_id)).first()
        if order is None:
            raise NotFound("Order not found")

        current = order.status
        if current == target:
            db.session.commit()
            return order, current

        allowed = OrderStatus.TRANSITIONS.get(current, ())
        if target not in allowed:
            raise InvalidStatusTransition(current, target, list(allowed))

        if target == OrderStatus.CANCELLED:
            for item in order.items:
                increment_stock(product_id=item.product_id, quantity=item.quantity)

        order.status = target
        db.session.commit()
        return order, current

    order, previous = run_with_retry(_op)
    if previous != order.status:
        current_app.logger.info("Order %s status %s -> %s", order.id, previous, order.status)
    return order


def delete_order(*, order_id: str) -> None:
    def _op():
        order = db.session.get(Order, order_id)
        if order is None:
            raise NotFound("Order not found")
        db.session.delete(order)
        db.session.commit()

    run_with_retry(_op)
    current_app.logger.info("Order deleted: id=%s", order_id)
