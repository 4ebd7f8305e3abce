# Overview: Flask API routes for orders and sales analytics; parses input and returns JSON responses.

# backend/greenverse/routes/orders.py
"""
Order routes.

- Clients read only their own orders; admins and cluster users read all.
- POST /api/orders/cart is the profile-gated multi-product checkout.
- POST /api/orders is the single-product checkout.
- Status changes and deletes are admin-only.
- /api/orders/sales/* are admin sales analytics.
"""
from flask import Blueprint, request, g

from ..services import order_service, reporting_service
from ..roles import Role
from ..decorators import require_auth, require_role


orders_bp = Blueprint("orders", __name__, url_prefix="/api/orders")


@orders_bp.get("")
@orders_bp.get("/")
@require_auth
def list_orders():
    orders = order_service.list_orders(g.current_user)
    return {"orders": [order_service.serialize_order(o) for o in orders]}


@orders_bp.get("/<order_id>")
@require_auth
def get_order(order_id: str):
    order = order_service.get_order(user=g.current_user, order_id=order_id)
    return {"order": order_service.serialize_order(order)}


@orders_bp.post("")
@orders_bp.post("/")
@require_auth
def create_order_route():
    data = request.get_json(silent=True) or {}
    order = order_service.place_single_order(
        user=g.current_user,
        product_id=data.get("product_id"),
        quantity=data.get("quantity"),
        delivery_date=data.get("delivery_date"),
    )
    return {"message": "Order placed successfully", "order": order_service.serialize_order(order)}, 201


@orders_bp.post("/cart")
@require_auth
def create_cart_order_route():
    data = request.get_json(silent=True) or {}
    order = order_service.place_cart_order(
        user=g.current_user,
        items=data.get("items"),
        delivery_date=data.get("delivery_date"),
    )
    return {"message": "Order placed successfully", "order": order_service.serialize_order(order)}, 201


@orders_bp.patch("/<order_id>/status")
@require_auth
@require_role(Role.ADMIN)
def update_status_route(order_id: str):
    data = request.get_json(silent=True) or {}
    order = order_service.update_order_status(order_id=order_id, status=data.get("status"))
    return {"message": "Order status updated successfully", "order": order_service.serialize_order(order)}


@orders_bp.delete("/<order_id>")
@require_auth
@require_role(Role.ADMIN)
def delete_order_route(order_id: str):
    order_service.delete_order(order_id=order_id)
    return {"message": "Order deleted successfully"}


@orders_bp.get("/sales/stats")
@require_auth
@require_role(Role.ADMIN)
def sales_stats():
    return reporting_service.sales_stats()


@orders_bp.get("/sales/monthly-trend")
@require_auth
@require_role(Role.ADMIN)
def sales_monthly_trend():
    return {"trend": reporting_service.sales_monthly_trend()}


@orders_bp.get("/sales/top-products")
@require_auth
@require_role(Role.ADMIN)
def top_products():
    return {"products": reporting_service.top_products()}


@orders_bp.get("/sales/by-category")
@require_auth
@require_role(Role.ADMIN)
def sales_by_category():
    return {"categories": reporting_service.sales_by_category()}
