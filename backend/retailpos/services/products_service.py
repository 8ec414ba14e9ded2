# Overview: Service-layer operations for the product catalog as used by checkout.

from __future__ import annotations

from sqlalchemy import or_

from ..errors import InvalidInput
from ..extensions import db
from ..models import Product
from ..money import MAX_RATE_BPS, MoneyFormatError, money_to_cents, percent_to_bps
from ..validation import MAX_AMOUNT_CENTS


def get_products(product_ids) -> dict[int, Product]:
    ids = sorted(set(product_ids))
    if not ids:
        return {}
    return {p.id: p for p in db.session.query(Product).filter(Product.id.in_(ids)).all()}


def create_product(
    *,
    name: str,
    sku: str,
    price,
    tax_rate=0,
    cost_price=None,
    track_stock: bool = True,
    stock_quantity: int = 0,
    min_stock_level: int = 5,
    max_stock_level: int | None = None,
    barcode: str | None = None,
) -> Product:
    """
    Create a product from currency/percent inputs ("12.50", "8.25").

    An untracked product always starts (and stays) at zero stock.
    """
    name = (name or "").strip()
    sku = (sku or "").strip()
    if not name or not sku:
        raise InvalidInput("name and sku are required")

    try:
        price_cents = money_to_cents(price)
        tax_rate_bps = percent_to_bps(tax_rate)
        cost_price_cents = money_to_cents(cost_price) if cost_price is not None else None
    except MoneyFormatError as exc:
        raise InvalidInput(str(exc))

    if not 0 <= price_cents <= MAX_AMOUNT_CENTS:
        raise InvalidInput("price must be between 0 and 9,999,999.99")
    if cost_price_cents is not None and not 0 <= cost_price_cents <= MAX_AMOUNT_CENTS:
        raise InvalidInput("cost price must be between 0 and 9,999,999.99")
    if not 0 <= tax_rate_bps <= MAX_RATE_BPS:
        raise InvalidInput("tax rate must be between 0 and 100")
    if stock_quantity < 0 or min_stock_level < 0:
        raise InvalidInput("stock levels cannot be negative")
    if max_stock_level is not None and max_stock_level < min_stock_level:
        raise InvalidInput("max stock level cannot be below min stock level")
    if db.session.query(Product).filter_by(sku=sku).first():
        raise InvalidInput(f"SKU {sku!r} already exists")

    product = Product(
        name=name,
        sku=sku,
        barcode=barcode or None,
        price_cents=price_cents,
        cost_price_cents=cost_price_cents,
        tax_rate_bps=tax_rate_bps,
        track_stock=track_stock,
        stock_quantity=stock_quantity if track_stock else 0,
        min_stock_level=min_stock_level,
        max_stock_level=max_stock_level,
    )
    db.session.add(product)
    db.session.commit()
    return product


def search_products(term: str, limit: int = 20) -> list[Product]:
    """
    Active products whose name, SKU or barcode contains `term`
    (case-insensitive), name-ordered. A blank term lists active products.
    """
    query = db.session.query(Product).filter(Product.is_active.is_(True))
    term = (term or "").strip()
    if term:
        query = query.filter(
            or_(
                Product.name.icontains(term, autoescape=True),
                Product.sku.icontains(term, autoescape=True),
                Product.barcode.icontains(term, autoescape=True),
            )
        )
    return query.order_by(Product.name, Product.id).limit(limit).all()
