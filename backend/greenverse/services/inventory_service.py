# Overview: Service-layer operations for product stock; atomic conditional decrement and increments.

"""
Stock invariants (authoritative)

- products.stock is a mutable counter and never goes below zero.
- Orders take stock with a single conditional UPDATE:
    UPDATE products SET stock = stock - q, version_id = version_id + 1
    WHERE id = :p AND stock >= q
  An affected-row count of 0 means the stock was not there at write time;
  the caller rolls the whole order back.
- Production and order cancellation add stock with the same statement
  form, conditional on the result staying within INT_MAX.
- None of these functions commit; the caller owns the transaction.
"""
from __future__ import annotations

from flask import current_app
from sqlalchemy import update
from sqlalchemy.orm.util import identity_key

from ..errors import InsufficientStock, InvalidInput, NotFound
from ..extensions import db
from ..models import Product
from ..validation import INT_MAX


def _expire_cached(product_id: str) -> None:
    # Bulk UPDATE bypasses the identity map; drop any stale copy.
    cached = db.session.identity_map.get(identity_key(Product, product_id))
    if cached is not None:
        db.session.expire(cached)


def current_stock(product_id: str) -> int:
    stock = db.session.query(Product.stock).filter(Product.id == product_id).scalar()
    if stock is None:
        raise NotFound("Product not found")
    return stock


def decrement_stock(*, product_id: str, product_name: str, quantity: int) -> None:
    """
    Take quantity units of product_id, or raise InsufficientStock.

    Raises:
        InsufficientStock: fewer than quantity units were on hand at write time
    """
    result = db.session.execute(
        update(Product)
        .where(Product.id == product_id, Product.stock >= quantity)
        .values(stock=Product.stock - quantity, version_id=Product.version_id + 1)
        .execution_options(synchronize_session=False)
    )
    _expire_cached(product_id)
    if result.rowcount != 1:
        available = current_stock(product_id)
        current_app.logger.info(
            "Oversell prevented: product=%s requested=%d available=%d",
            product_id, quantity, available,
        )
        raise InsufficientStock(
            product_id=product_id,
            product_name=product_name,
            requested=quantity,
            available=available,
        )


def increment_stock(*, product_id: str, quantity: int) -> None:
    """
    Add quantity units to product_id.

    Raises:
        NotFound: no such product
        InvalidInput: the new stock would overflow the stock column
    """
    result = db.session.execute(
        update(Product)
        .where(Product.id == product_id, Product.stock <= INT_MAX - quantity)
        .values(stock=Product.stock + quantity, version_id=Product.version_id + 1)
        .execution_options(synchronize_session=False)
    )
    _expire_cached(product_id)
    if result.rowcount != 1:
        current_stock(product_id)
        raise InvalidInput("Stock would exceed the maximum allowed quantity")
