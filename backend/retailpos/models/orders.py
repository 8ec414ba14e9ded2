from __future__ import annotations

from ..extensions import db
from ..money import bps_to_percent
from ..time_utils import to_utc_z, utcnow


ORDER_STATUS_PENDING = "pending"
ORDER_STATUS_COMPLETED = "completed"
ORDER_STATUS_CANCELLED = "cancelled"
ORDER_STATUS_REFUNDED = "refunded"

ORDER_STATUSES = (
    ORDER_STATUS_PENDING,
    ORDER_STATUS_COMPLETED,
    ORDER_STATUS_CANCELLED,
    ORDER_STATUS_REFUNDED,
)


class Order(db.Model):
    """
    Sale order recorded at the till.

    LIFECYCLE:
        pending -> completed -> refunded
        pending -> cancelled

    Totals are denormalized from the order's items when the order is priced:
        total_amount  = max(0, subtotal + tax_amount - discount_amount)
        change_amount = max(0, amount_paid - total_amount)

    refund_amount_cents aggregates every item refund; a partial refund keeps
    the order completed, refunding the last remaining unit moves it to
    refunded.
    """
    __tablename__ = "orders"
    __table_args__ = (
        db.CheckConstraint("total_amount_cents >= 0", name="ck_orders_total_nonneg"),
        db.CheckConstraint("change_amount_cents >= 0", name="ck_orders_change_nonneg"),
        db.CheckConstraint("refund_amount_cents >= 0", name="ck_orders_refund_nonneg"),
        db.Index("ix_orders_status_created", "status", "created_at"),
        db.Index("ix_orders_status_completed", "status", "completed_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    # Human-readable order number (e.g., "ORD-20261019-0001")
    order_number = db.Column(db.String(64), nullable=False, unique=True)

    customer_id = db.Column(db.Integer, db.ForeignKey("customers.id", ondelete="SET NULL"), nullable=True, index=True)
    # Cashier who rang the sale
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)

    status = db.Column(db.String(16), nullable=False, default=ORDER_STATUS_PENDING, index=True)

    # All amounts in cents
    subtotal_cents = db.Column(db.Integer, nullable=False, default=0)
    tax_amount_cents = db.Column(db.Integer, nullable=False, default=0)
    discount_type = db.Column(db.String(16), nullable=True)
    discount_value = db.Column(db.String(32), nullable=True)  # exact decimal text of the requested discount
    discount_amount_cents = db.Column(db.Integer, nullable=False, default=0)
    total_amount_cents = db.Column(db.Integer, nullable=False, default=0)

    payment_method = db.Column(db.String(16), nullable=False, default="cash")
    amount_paid_cents = db.Column(db.Integer, nullable=False, default=0)
    change_amount_cents = db.Column(db.Integer, nullable=False, default=0)

    # Refund aggregate
    refund_amount_cents = db.Column(db.Integer, nullable=False, default=0)
    refund_reason = db.Column(db.Text, nullable=True)
    refunded_by_user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    refunded_at = db.Column(db.DateTime(timezone=True), nullable=True)

    cancelled_by_user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    cancelled_at = db.Column(db.DateTime(timezone=True), nullable=True)
    cancel_reason = db.Column(db.String(500), nullable=True)

    notes = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, server_default=db.func.now())
    completed_at = db.Column(db.DateTime(timezone=True), nullable=True)
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    version_id = db.Column(db.Integer, nullable=False, default=1)

    customer = db.relationship("Customer", backref=db.backref("orders", lazy=True))
    cashier = db.relationship("User", foreign_keys=[user_id])
    refunded_by = db.relationship("User", foreign_keys=[refunded_by_user_id])
    items = db.relationship(
        "OrderItem",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderItem.id",
        lazy=True,
    )
    __mapper_args__ = {"version_id_col": version_id}

    def __repr__(self) -> str:
        return f"<Order id={self.id} number={self.order_number!r} status={self.status}>"

    @property
    def is_fully_refunded(self) -> bool:
        return bool(self.items) and all(item.is_fully_refunded for item in self.items)

    def refund_summary(self) -> dict:
        return {
            "order_id": self.id,
            "status": self.status,
            "refund_amount_cents": self.refund_amount_cents,
            "refund_reason": self.refund_reason,
            "refunded_by_user_id": self.refunded_by_user_id,
            "refunded_at": to_utc_z(self.refunded_at) if self.refunded_at else None,
            "remaining_quantity": sum(item.remaining_quantity for item in self.items),
        }

    def to_dict(self, include_items: bool = False) -> dict:
        data = {
            "id": self.id,
            "order_number": self.order_number,
            "customer_id": self.customer_id,
            "user_id": self.user_id,
            "status": self.status,
            "subtotal_cents": self.subtotal_cents,
            "tax_amount_cents": self.tax_amount_cents,
            "discount_type": self.discount_type,
            "discount_value": self.discount_value,
            "discount_amount_cents": self.discount_amount_cents,
            "total_amount_cents": self.total_amount_cents,
            "payment_method": self.payment_method,
            "amount_paid_cents": self.amount_paid_cents,
            "change_amount_cents": self.change_amount_cents,
            "refund_amount_cents": self.refund_amount_cents,
            "refund_reason": self.refund_reason,
            "refunded_by_user_id": self.refunded_by_user_id,
            "refunded_at": to_utc_z(self.refunded_at) if self.refunded_at else None,
            "cancelled_by_user_id": self.cancelled_by_user_id,
            "cancelled_at": to_utc_z(self.cancelled_at) if self.cancelled_at else None,
            "cancel_reason": self.cancel_reason,
            "notes": self.notes,
            "created_at": to_utc_z(self.created_at),
            "completed_at": to_utc_z(self.completed_at) if self.completed_at else None,
            "version_id": self.version_id,
        }
        if include_items:
            data["items"] = [item.to_dict() for item in self.items]
        return data


class OrderItem(db.Model):
    """
    One product line on an order.

    Product name, SKU, unit price and tax rate are snapshotted when the line
    is created; later catalog edits never change a recorded sale.
    """
    __tablename__ = "order_items"
    __table_args__ = (
        db.CheckConstraint("quantity >= 1", name="ck_order_items_quantity_positive"),
        db.CheckConstraint(
            "refunded_quantity >= 0 AND refunded_quantity <= quantity",
            name="ck_order_items_refunded_within_quantity",
        ),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    order_id = db.Column(db.Integer, db.ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)

    # Snapshot of the product at sale time
    product_name = db.Column(db.String(255), nullable=False)
    product_sku = db.Column(db.String(64), nullable=False)
    unit_price_cents = db.Column(db.Integer, nullable=False)
    tax_rate_bps = db.Column(db.Integer, nullable=False, default=0)

    quantity = db.Column(db.Integer, nullable=False)
    total_price_cents = db.Column(db.Integer, nullable=False)
    tax_amount_cents = db.Column(db.Integer, nullable=False, default=0)

    refunded_quantity = db.Column(db.Integer, nullable=False, default=0)
    refunded_amount_cents = db.Column(db.Integer, nullable=False, default=0)
    refund_reason = db.Column(db.String(500), nullable=True)
    refunded_by_user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    refunded_at = db.Column(db.DateTime(timezone=True), nullable=True)

    version_id = db.Column(db.Integer, nullable=False, default=1)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    order = db.relationship("Order", back_populates="items")
    product = db.relationship("Product")
    refunded_by = db.relationship("User", foreign_keys=[refunded_by_user_id])
    __mapper_args__ = {"version_id_col": version_id}

    @property
    def remaining_quantity(self) -> int:
        return self.quantity - (self.refunded_quantity or 0)

    @property
    def is_fully_refunded(self) -> bool:
        return (self.refunded_quantity or 0) >= self.quantity

    @property
    def is_partially_refunded(self) -> bool:
        return 0 < (self.refunded_quantity or 0) < self.quantity

    def can_refund(self, quantity: int | None = None) -> bool:
        to_refund = self.remaining_quantity if quantity is None else quantity
        return to_refund > 0 and (self.refunded_quantity or 0) + to_refund <= self.quantity

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "order_id": self.order_id,
            "product_id": self.product_id,
            "product_name": self.product_name,
            "product_sku": self.product_sku,
            "unit_price_cents": self.unit_price_cents,
            "tax_rate_bps": self.tax_rate_bps,
            "tax_rate": str(bps_to_percent(self.tax_rate_bps or 0)),
            "quantity": self.quantity,
            "total_price_cents": self.total_price_cents,
            "tax_amount_cents": self.tax_amount_cents,
            "refunded_quantity": self.refunded_quantity,
            "remaining_quantity": self.remaining_quantity,
            "refunded_amount_cents": self.refunded_amount_cents,
            "refund_reason": self.refund_reason,
            "refunded_by_user_id": self.refunded_by_user_id,
            "refunded_at": to_utc_z(self.refunded_at) if self.refunded_at else None,
            "version_id": self.version_id,
            "created_at": to_utc_z(self.created_at),
        }
