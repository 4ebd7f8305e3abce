# Overview: Flask API routes for products operations; parses input and returns JSON responses.

# backend/greenverse/routes/products.py
"""
Product catalog routes.

Reads are public; writes require the admin role. Prices arrive either as
price (decimal) or price_cents (integer) and are stored in cents.
"""
from flask import Blueprint, request

from ..services import products_service
from ..models import Product
from ..roles import Role
from ..validation import (
    ModelValidationPolicy,
    validate_payload,
    apply_price,
    enforce_rules_product,
    ValidationError,
)
from ..decorators import require_auth, require_role

PRODUCT_POLICY = ModelValidationPolicy(
    writable_fields=frozenset({"name", "description", "category", "price_cents", "stock", "status", "image_url"}),
    required_on_create=frozenset({"name", "category", "price_cents"}),
)

products_bp = Blueprint("products", __name__, url_prefix="/api/products")


@products_bp.get("")
@products_bp.get("/")
def list_products():
    """List products, optionally filtered by ?category=."""
    category = request.args.get("category")
    products = products_service.list_products(category=category or None)
    return {"products": [p.to_dict() for p in products]}


@products_bp.get("/<product_id>")
def get_product(product_id: str):
    return {"product": products_service.get_product(product_id).to_dict()}


@products_bp.post("")
@products_bp.post("/")
@require_auth
@require_role(Role.ADMIN)
def create_product_route():
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(
            model=Product,
            payload=apply_price(payload, required=True),
            policy=PRODUCT_POLICY,
            partial=False,
        )
        enforce_rules_product(patch)
    except ValidationError as e:
        return {"error": str(e)}, 400

    patch.setdefault("stock", 0)
    patch.setdefault("status", "In Stock")
    created = products_service.create_product(patch)
    return {"message": "Product created successfully", "product": created.to_dict()}, 201


@products_bp.put("/<product_id>")
@require_auth
@require_role(Role.ADMIN)
def update_product_route(product_id: str):
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(
            model=Product,
            payload=apply_price(payload, required=False),
            policy=PRODUCT_POLICY,
            partial=True,
        )
        enforce_rules_product(patch)
    except ValidationError as e:
        return {"error": str(e)}, 400

    updated = products_service.update_product(product_id, patch)
    return {"message": "Product updated successfully", "product": updated.to_dict()}


@products_bp.delete("/<product_id>")
@require_auth
@require_role(Role.ADMIN)
def delete_product_route(product_id: str):
    products_service.delete_product(product_id)
    return {"message": "Product deleted successfully"}
