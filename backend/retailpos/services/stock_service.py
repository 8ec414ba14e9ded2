# Overview: Service-layer operations for stock; guarded, atomic decrements at order completion.

"""
Stock Adjustment

Invariants:
- Only products with track_stock=True are checked or decremented.
- stock_quantity of a tracked product never goes below zero.
- A decrement covers every line of an order or none of them: it runs inside
  the caller's write_transaction() and any shortage raises, rolling back the
  decrements already applied for earlier lines.

Race safety:
- The sufficiency check and the decrement are one conditional UPDATE
  (... WHERE stock_quantity >= :qty). Two concurrent checkouts for the last
  unit cannot both match the predicate, so at most one of them succeeds.
  Nothing is decided on a previously read stock value.
"""

from __future__ import annotations

from typing import Iterable

from flask import current_app
from sqlalchemy import case, update

from ..errors import InsufficientStock, InvalidInput
from ..extensions import db
from ..models import Product


def aggregate_quantities(items: Iterable) -> dict[int, int]:
    """Sum requested quantity per product (a cart may list a product twice)."""
    totals: dict[int, int] = {}
    for item in items:
        totals[item.product_id] = totals.get(item.product_id, 0) + item.quantity
    return totals


def _load_products(product_ids: Iterable[int]) -> dict[int, Product]:
    ids = sorted(set(product_ids))
    products = db.session.query(Product).filter(Product.id.in_(ids)).all()
    by_id = {p.id: p for p in products}
    missing = [pid for pid in ids if pid not in by_id]
    if missing:
        raise InvalidInput(
            "One or more selected products do not exist.",
            details={"missing_product_ids": missing},
        )
    return by_id


def check_stock(items: Iterable) -> list[dict]:
    """
    Report shortages without changing anything.

    Returns one entry per tracked product whose stock cannot cover the
    requested quantity; an empty list means the cart can be fulfilled as of
    this read.
    """
    requested = aggregate_quantities(items)
    products = _load_products(requested.keys())

    shortages = []
    for product_id, qty in sorted(requested.items()):
        product = products[product_id]
        if product.track_stock and product.stock_quantity < qty:
            shortages.append({
                "product_id": product_id,
                "product_name": product.name,
                "requested_quantity": qty,
                "stock_quantity": product.stock_quantity,
            })
    return shortages


def decrement_stock(items: Iterable, *, enforce: bool = True) -> dict[int, int]:
    """
    Decrement stock for every tracked product in `items`.

    Must run inside write_transaction(). With enforce=True a product that
    cannot cover its quantity raises InsufficientStock listing every short
    product, and the caller's transaction rolls back the whole decrement.
    With enforce=False the shortage is logged and stock floors at zero.

    Returns {product_id: quantity decremented} for tracked products.
    """
    requested = aggregate_quantities(items)
    products = _load_products(requested.keys())

    decremented: dict[int, int] = {}
    shortages = []
    on_hand_before = {pid: p.stock_quantity for pid, p in products.items()}

    # Fixed product order keeps lock acquisition consistent between writers
    for product_id in sorted(requested):
        qty = requested[product_id]
        if not products[product_id].track_stock:
            continue

        stmt = update(Product).where(
            Product.id == product_id,
            Product.track_stock.is_(True),
        )
        if enforce:
            stmt = stmt.where(Product.stock_quantity >= qty).values(
                stock_quantity=Product.stock_quantity - qty,
                version_id=Product.version_id + 1,
            )
        else:
            stmt = stmt.values(
                stock_quantity=case(
                    (Product.stock_quantity >= qty, Product.stock_quantity - qty),
                    else_=0,
                ),
                version_id=Product.version_id + 1,
            )

        result = db.session.execute(stmt.execution_options(synchronize_session=False))
        db.session.expire(products[product_id])
        if result.rowcount:
            decremented[product_id] = qty
            continue

        current = db.session.query(Product.stock_quantity).filter(Product.id == product_id).scalar()
        shortages.append({
            "product_id": product_id,
            "product_name": products[product_id].name,
            "requested_quantity": qty,
            "stock_quantity": current,
        })

    if shortages:
        current_app.logger.warning("Stock guard rejected decrement: %s", shortages)
        raise InsufficientStock(
            "Insufficient stock for one or more products",
            details={"items": shortages},
        )

    if not enforce:
        for product_id, qty in decremented.items():
            before = on_hand_before[product_id]
            if before < qty:
                current_app.logger.warning(
                    "Oversold product %s: requested %s with %s on hand", product_id, qty, before
                )

    return decremented


def low_stock_products(limit: int | None = None) -> list[Product]:
    """Tracked products at or below their minimum stock level, lowest first."""
    query = (
        db.session.query(Product)
        .filter(
            Product.track_stock.is_(True),
            Product.is_active.is_(True),
            Product.stock_quantity <= Product.min_stock_level,
        )
        .order_by(Product.stock_quantity.asc(), Product.id.asc())
    )
    if limit:
        query = query.limit(limit)
    return query.all()
