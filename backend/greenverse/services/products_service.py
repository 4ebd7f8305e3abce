# Overview: Service-layer operations for the product catalog.

from __future__ import annotations

from flask import current_app

from ..errors import Conflict, NotFound
from ..extensions import db
from ..models import OrderItem, Order, Product, Production
from .concurrency import run_with_retry

PRODUCT_MUTABLE_FIELDS = {"name", "description", "category", "price_cents", "stock", "status", "image_url"}


def apply_product_patch(p: Product, patch: dict) -> None:
    for k, v in patch.items():
        if k not in PRODUCT_MUTABLE_FIELDS:
            continue
        setattr(p, k, v)


def list_products(category: str | None = None) -> list[Product]:
    query = db.session.query(Product)
    if category:
        query = query.filter(Product.category == category)
    return query.order_by(Product.created_at.desc(), Product.name.asc()).all()


def get_product(product_id: str) -> Product:
    product = db.session.get(Product, product_id)
    if product is None:
        raise NotFound("Product not found")
    return product


def create_product(patch: dict) -> Product:
    def _op():
        product = Product()
        apply_product_patch(product, patch)
        db.session.add(product)
        db.session.commit()
        return product

    product = run_with_retry(_op)
    current_app.logger.info("Product created: id=%s name=%s", product.id, product.name)
    return product


def update_product(product_id: str, patch: dict) -> Product:
    def _op():
        product = get_product(product_id)
        apply_product_patch(product, patch)
        db.session.commit()
        return product

    return run_with_retry(_op)


def is_referenced(product_id: str) -> bool:
    for model in (OrderItem, Order, Production):
        if db.session.query(model.id).filter(model.product_id == product_id).first() is not None:
            return True
    return False


def delete_product(product_id: str) -> None:
    """Delete an unreferenced product. Conflict when orders or production point at it."""
    def _op():
        product = get_product(product_id)
        if is_referenced(product_id):
            raise Conflict("Product is referenced by orders or production and cannot be deleted")
        db.session.delete(product)
        db.session.commit()

    run_with_retry(_op)
    current_app.logger.info("Product deleted: id=%s", product_id)
