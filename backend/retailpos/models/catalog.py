from __future__ import annotations

from decimal import Decimal

from ..extensions import db
from ..money import bps_to_percent, MAX_RATE_BPS
from ..time_utils import to_utc_z


class Product(db.Model):
    """
    Product master data as seen by checkout.

    STOCK TRACKING:
    - track_stock=True: stock_quantity is the sellable on-hand count and is
      decremented at order completion. It may never go negative.
    - track_stock=False: stock_quantity is pinned at 0 and every stock check
      is bypassed (services, gift cards, made-to-order items).

    Prices are authoritative in cents; tax_rate_bps is the tax percentage in
    basis points (8.25 % == 825).
    """
    __tablename__ = "products"
    __table_args__ = (
        db.CheckConstraint("price_cents >= 0", name="ck_products_price_nonneg"),
        db.CheckConstraint("cost_price_cents IS NULL OR cost_price_cents >= 0", name="ck_products_cost_nonneg"),
        db.CheckConstraint(f"tax_rate_bps >= 0 AND tax_rate_bps <= {MAX_RATE_BPS}", name="ck_products_tax_rate_range"),
        db.CheckConstraint("stock_quantity >= 0", name="ck_products_stock_nonneg"),
        db.CheckConstraint("track_stock OR stock_quantity = 0", name="ck_products_untracked_zero_stock"),
        db.Index("ix_products_name", "name"),
        db.Index("ix_products_track_stock", "track_stock", "stock_quantity"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    sku = db.Column(db.String(64), nullable=False, unique=True)
    barcode = db.Column(db.String(64), nullable=True, unique=True)
    name = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=True)

    price_cents = db.Column(db.Integer, nullable=False)
    cost_price_cents = db.Column(db.Integer, nullable=True)
    tax_rate_bps = db.Column(db.Integer, nullable=False, default=0)

    track_stock = db.Column(db.Boolean, nullable=False, default=True)
    stock_quantity = db.Column(db.Integer, nullable=False, default=0)
    min_stock_level = db.Column(db.Integer, nullable=False, default=5)
    max_stock_level = db.Column(db.Integer, nullable=True)

    is_active = db.Column(db.Boolean, nullable=False, default=True)

    version_id = db.Column(db.Integer, nullable=False, default=1)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    __mapper_args__ = {"version_id_col": version_id}

    def __repr__(self) -> str:
        return f"<Product id={self.id} sku={self.sku!r} name={self.name!r}>"

    def is_low_stock(self) -> bool:
        return bool(self.track_stock) and self.stock_quantity <= self.min_stock_level

    def is_out_of_stock(self) -> bool:
        return bool(self.track_stock) and self.stock_quantity <= 0

    def profit_margin(self) -> Decimal:
        """(price - cost) / cost * 100, or 0 when cost is unknown."""
        if not self.cost_price_cents or self.cost_price_cents <= 0:
            return Decimal("0.00")
        margin = Decimal(self.price_cents - self.cost_price_cents) / Decimal(self.cost_price_cents) * 100
        return margin.quantize(Decimal("0.01"))

    def to_search_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "sku": self.sku,
            "barcode": self.barcode,
            "price_cents": self.price_cents,
            "tax_rate_bps": self.tax_rate_bps,
            "track_stock": self.track_stock,
            "stock_quantity": self.stock_quantity,
            "is_out_of_stock": self.is_out_of_stock(),
        }

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "sku": self.sku,
            "barcode": self.barcode,
            "name": self.name,
            "description": self.description,
            "price_cents": self.price_cents,
            "cost_price_cents": self.cost_price_cents,
            "tax_rate_bps": self.tax_rate_bps,
            "tax_rate": str(bps_to_percent(self.tax_rate_bps or 0)),
            "track_stock": self.track_stock,
            "stock_quantity": self.stock_quantity,
            "min_stock_level": self.min_stock_level,
            "max_stock_level": self.max_stock_level,
            "is_active": self.is_active,
            "is_low_stock": self.is_low_stock(),
            "is_out_of_stock": self.is_out_of_stock(),
            "profit_margin": str(self.profit_margin()),
            "version_id": self.version_id,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
