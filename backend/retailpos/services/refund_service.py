# Overview: Service-layer refund ledger; per-line partial refunds and whole-order refunds.

"""
Refund Ledger

Per line:
    refunded_quantity += quantity           (never beyond the sold quantity)
    refunded_amount   += unit_price * quantity
Per order:
    refund_amount     += the same amount
    status            -> refunded once every line has remaining_quantity == 0

Refunds on one order serialize on the order row lock (and on the SQLite
write lock). Both refund paths lock the order row before its lines.
The line and order updates are version-checked and commit or roll back
together. Stock is not restored by a refund.
"""

from __future__ import annotations

from dataclasses import dataclass

from flask import current_app

from ..errors import InvalidTransition, OrderNotFound, RefundExceedsRemaining
from ..extensions import db
from ..models import Order, OrderItem
from ..models.orders import ORDER_STATUS_COMPLETED, ORDER_STATUS_REFUNDED
from ..time_utils import to_utc_z, utcnow
from ..validation import is_valid_id, validate_reason, validate_refund_quantity
from . import customer_service, order_service
from .concurrency import lock_for_update, write_transaction


REFUNDABLE_STATUSES = (ORDER_STATUS_COMPLETED, ORDER_STATUS_REFUNDED)


@dataclass
class RefundResult:
    item: OrderItem | None
    order: Order
    refunded_amount_cents: int
    refunded_quantity: int

    def to_dict(self) -> dict:
        data = {
            "refunded_amount_cents": self.refunded_amount_cents,
            "refunded_quantity": self.refunded_quantity,
            "order": self.order.refund_summary(),
        }
        if self.item is not None:
            data["item"] = self.item.to_dict()
        else:
            data["items"] = [item.to_dict() for item in self.order.items]
        return data


def _line_not_found(line_item_id: int) -> OrderNotFound:
    return OrderNotFound(f"Order item {line_item_id} not found", {"line_item_id": line_item_id})


def _get_item_locked(line_item_id: int) -> OrderItem:
    item = lock_for_update(db.session.query(OrderItem).filter_by(id=line_item_id)).first()
    if item is None:
        raise _line_not_found(line_item_id)
    return item


def _order_id_for_line(line_item_id: int) -> int:
    if not is_valid_id(line_item_id):
        raise _line_not_found(line_item_id)
    order_id = db.session.query(OrderItem.order_id).filter_by(id=line_item_id).scalar()
    if order_id is None:
        raise _line_not_found(line_item_id)
    return order_id


def _record_line_refund(item: OrderItem, quantity: int, reason: str, actor_id: int, when) -> int:
    amount = item.unit_price_cents * quantity
    item.refunded_quantity = (item.refunded_quantity or 0) + quantity
    item.refunded_amount_cents = (item.refunded_amount_cents or 0) + amount
    item.refund_reason = reason
    item.refunded_by_user_id = actor_id
    item.refunded_at = when
    return amount


def _record_order_refund(order: Order, amount: int, reason: str, actor_id: int, when) -> None:
    order.refund_amount_cents = (order.refund_amount_cents or 0) + amount
    order.refund_reason = reason
    order.refunded_by_user_id = actor_id
    order.refunded_at = when

    if order.status == ORDER_STATUS_COMPLETED and order.is_fully_refunded:
        order_service.transition(order, ORDER_STATUS_REFUNDED)
        customer_service.update_customer_totals(order.customer_id)


def refund_item(line_item_id: int, quantity: int, reason: str, actor_id: int) -> RefundResult:
    """
    Refund `quantity` units of one order line.

    Raises RefundExceedsRemaining (with max_refundable_quantity) when the
    line has fewer units left, InvalidTransition when the order was never
    completed. No state changes on failure.
    """
    quantity = validate_refund_quantity(quantity)
    reason = validate_reason(reason)

    with write_transaction():
        # Order row first, then the line, same as refund_order
        order = order_service.get_order_locked(_order_id_for_line(line_item_id))
        item = _get_item_locked(line_item_id)

        if order.status not in REFUNDABLE_STATUSES:
            raise InvalidTransition(
                f"Only completed orders can be refunded. Order {order.order_number} is {order.status}",
                details={"order_id": order.id, "status": order.status},
            )

        remaining = item.remaining_quantity
        if not item.can_refund(quantity):
            raise RefundExceedsRemaining(
                f"Cannot refund the requested quantity. Available for refund: {remaining}",
                details={
                    "line_item_id": item.id,
                    "requested_quantity": quantity,
                    "max_refundable_quantity": remaining,
                },
            )

        now = utcnow()
        amount = _record_line_refund(item, quantity, reason, actor_id, now)
        _record_order_refund(order, amount, reason, actor_id, now)

    current_app.logger.info(
        "Refunded %s x %s on order %s (%s cents) by user %s; order now %s",
        quantity, item.product_sku, order.order_number, amount, actor_id, order.status,
    )
    return RefundResult(item=item, order=order, refunded_amount_cents=amount, refunded_quantity=quantity)


def refund_order(order_id: int, reason: str, actor_id: int) -> RefundResult:
    """Refund every remaining unit of a completed order in one transaction."""
    reason = validate_reason(reason)

    with write_transaction():
        order = order_service.get_order_locked(order_id)
        if order.status != ORDER_STATUS_COMPLETED:
            raise InvalidTransition(
                f"This order cannot be refunded. Order {order.order_number} is {order.status}",
                details={"order_id": order.id, "status": order.status},
            )

        items = (
            lock_for_update(db.session.query(OrderItem).filter_by(order_id=order.id))
            .order_by(OrderItem.id)
            .all()
        )
        now = utcnow()
        total_amount = 0
        total_quantity = 0
        for item in items:
            remaining = item.remaining_quantity
            if remaining <= 0:
                continue
            total_amount += _record_line_refund(item, remaining, reason, actor_id, now)
            total_quantity += remaining

        if total_quantity == 0:
            raise InvalidTransition(
                "Nothing left to refund on this order",
                details={"order_id": order.id},
            )
        _record_order_refund(order, total_amount, reason, actor_id, now)

    current_app.logger.info(
        "Refunded order %s in full (%s cents) by user %s",
        order.order_number, total_amount, actor_id,
    )
    return RefundResult(item=None, order=order, refunded_amount_cents=total_amount, refunded_quantity=total_quantity)


def get_refund_history(order_id: int) -> dict:
    order = order_service.get_order(order_id)
    refunded = [item for item in order.items if (item.refunded_quantity or 0) > 0]

    return {
        "order_id": order.id,
        "order_number": order.order_number,
        "status": order.status,
        "refunded_items": [
            {
                "id": item.id,
                "product_name": item.product_name,
                "product_sku": item.product_sku,
                "original_quantity": item.quantity,
                "refunded_quantity": item.refunded_quantity,
                "remaining_quantity": item.remaining_quantity,
                "unit_price_cents": item.unit_price_cents,
                "refunded_amount_cents": item.refunded_amount_cents,
                "refund_reason": item.refund_reason,
                "refunded_by": item.refunded_by.name if item.refunded_by else None,
                "refunded_at": to_utc_z(item.refunded_at) if item.refunded_at else None,
            }
            for item in refunded
        ],
        "total_refunded_cents": order.refund_amount_cents,
    }
