# Overview: Service-layer operations for orders; lifecycle state machine, pricing and queries.

"""
Order Lifecycle

STATES:
    pending    initial; items attached and priced, nothing sold yet
    completed  paid and stock decremented (completed_at set)
    cancelled  abandoned before completion; stock untouched        (terminal)
    refunded   every unit of every line refunded                   (terminal)

TRANSITIONS:
    pending   -> completed   non-empty items, payment sufficient, stock decremented
    pending   -> cancelled   no guard
    completed -> refunded    only via the refund ledger, once nothing remains

A partial refund keeps the order completed and only grows refund_amount.
"""

from __future__ import annotations

from datetime import timedelta
from decimal import Decimal

from flask import current_app
from sqlalchemy import func, or_

from ..errors import InvalidInput, InvalidTransition, OrderNotFound
from ..extensions import db
from ..models import Customer, Order, OrderItem, Product, User
from ..models.orders import (
    ORDER_STATUS_CANCELLED,
    ORDER_STATUS_COMPLETED,
    ORDER_STATUS_PENDING,
    ORDER_STATUS_REFUNDED,
    ORDER_STATUSES,
)
from ..time_utils import start_of_day, utcnow
from ..validation import DISCOUNT_NUMERICAL, DiscountSpec, NO_DISCOUNT, OrderFilters, is_valid_id
from . import customer_service, stock_service
from .concurrency import lock_for_update, write_transaction
from .document_service import next_order_number
from .pricing_service import OrderTotals, calculate_line, calculate_totals, require_sufficient_payment


ALLOWED_TRANSITIONS: dict[str, frozenset[str]] = {
    ORDER_STATUS_PENDING: frozenset({ORDER_STATUS_COMPLETED, ORDER_STATUS_CANCELLED}),
    ORDER_STATUS_COMPLETED: frozenset({ORDER_STATUS_REFUNDED}),
    ORDER_STATUS_CANCELLED: frozenset(),
    ORDER_STATUS_REFUNDED: frozenset(),
}


def can_transition(current: str, new: str) -> bool:
    return new in ALLOWED_TRANSITIONS.get(current, frozenset())


def transition(order: Order, new_status: str) -> Order:
    """Move an order to `new_status` or raise InvalidTransition. Guards are the caller's job."""
    if not can_transition(order.status, new_status):
        raise InvalidTransition(
            f"Cannot move order {order.order_number} from {order.status} to {new_status}",
            details={"order_id": order.id, "status": order.status, "requested_status": new_status},
        )
    order.status = new_status
    return order


# =============================================================================
# LOOKUPS
# =============================================================================

def _order_not_found(order_id: int) -> OrderNotFound:
    return OrderNotFound(f"Order {order_id} not found", {"order_id": order_id})


def get_order(order_id: int) -> Order:
    if not is_valid_id(order_id):
        raise _order_not_found(order_id)
    order = db.session.get(Order, order_id)
    if order is None:
        raise _order_not_found(order_id)
    return order


def get_order_locked(order_id: int) -> Order:
    if not is_valid_id(order_id):
        raise _order_not_found(order_id)
    order = lock_for_update(db.session.query(Order).filter_by(id=order_id)).first()
    if order is None:
        raise _order_not_found(order_id)
    return order


# =============================================================================
# BUILDING A PENDING ORDER
# =============================================================================

def _discount_columns(discount: DiscountSpec) -> tuple[str | None, str | None]:
    if discount is NO_DISCOUNT or (discount.type == DISCOUNT_NUMERICAL and discount.value == 0):
        return None, None
    return discount.type, str(discount.value)


def _stored_discount(order: Order) -> DiscountSpec:
    if not order.discount_type or order.discount_value is None:
        return NO_DISCOUNT
    return DiscountSpec(type=order.discount_type, value=Decimal(order.discount_value))


def create_order(
    *,
    user_id: int,
    payment_method: str,
    amount_paid_cents: int = 0,
    discount: DiscountSpec | None = None,
    customer_id: int | None = None,
    notes: str | None = None,
) -> Order:
    """
    Create a pending order with zero totals in the current transaction.

    Does not commit; the order number is allocated from the daily sequence.
    """
    if customer_id is not None and customer_service.get_customer(customer_id) is None:
        raise InvalidInput("Selected customer does not exist.", {"customer_id": customer_id})

    discount_type, discount_value = _discount_columns(discount or NO_DISCOUNT)
    order = Order(
        order_number=next_order_number(current_app.config.get("ORDER_NUMBER_PREFIX", "ORD")),
        customer_id=customer_id,
        user_id=user_id,
        status=ORDER_STATUS_PENDING,
        subtotal_cents=0,
        tax_amount_cents=0,
        discount_type=discount_type,
        discount_value=discount_value,
        discount_amount_cents=0,
        total_amount_cents=0,
        payment_method=payment_method,
        amount_paid_cents=amount_paid_cents,
        change_amount_cents=0,
        refund_amount_cents=0,
        notes=notes,
        created_at=utcnow(),
    )
    db.session.add(order)
    db.session.flush()
    return order


def add_item(order: Order, product: Product, quantity: int) -> OrderItem:
    """Attach a priced line to a pending order, snapshotting the product."""
    if order.status != ORDER_STATUS_PENDING:
        raise InvalidTransition(
            f"Can only add items to pending orders. Order {order.order_number} is {order.status}",
            details={"order_id": order.id, "status": order.status},
        )
    if not product.is_active:
        raise InvalidInput(f"Product {product.name} is not available for sale", {"product_id": product.id})

    amounts = calculate_line(product.price_cents, quantity, product.tax_rate_bps or 0)
    item = OrderItem(
        product_id=product.id,
        product_name=product.name,
        product_sku=product.sku,
        unit_price_cents=product.price_cents,
        tax_rate_bps=product.tax_rate_bps or 0,
        quantity=quantity,
        total_price_cents=amounts.total_price_cents,
        tax_amount_cents=amounts.tax_amount_cents,
        refunded_quantity=0,
        refunded_amount_cents=0,
    )
    order.items.append(item)
    return item


def apply_totals(order: Order) -> OrderTotals:
    """Price the order from its items and store the totals on it."""
    totals = calculate_totals(order.items, _stored_discount(order), order.amount_paid_cents)
    order.subtotal_cents = totals.subtotal_cents
    order.tax_amount_cents = totals.tax_amount_cents
    order.discount_amount_cents = totals.discount_amount_cents
    order.total_amount_cents = totals.total_amount_cents
    order.change_amount_cents = totals.change_amount_cents
    return totals


# =============================================================================
# COMPLETION / CANCELLATION
# =============================================================================

def complete_locked(order: Order, *, enforce_stock: bool | None = None) -> Order:
    """
    pending -> completed for an order already locked in the current transaction.

    Guard order: status, non-empty items, payment sufficiency, stock. Any
    failure raises before the status changes; the caller's transaction
    rolls back whatever stock was already decremented.
    """
    if order.status != ORDER_STATUS_PENDING:
        raise InvalidTransition(
            f"Only pending orders can be completed. Order {order.order_number} is {order.status}",
            details={"order_id": order.id, "status": order.status},
        )
    if not order.items:
        raise InvalidTransition(
            "Cannot complete an order with no items",
            details={"order_id": order.id},
        )

    totals = apply_totals(order)
    require_sufficient_payment(totals)

    if enforce_stock is None:
        enforce_stock = current_app.config.get("ENFORCE_STOCK", True)
    stock_service.decrement_stock(order.items, enforce=enforce_stock)

    transition(order, ORDER_STATUS_COMPLETED)
    order.completed_at = utcnow()
    customer_service.update_customer_totals(order.customer_id)
    return order


def complete_order(
    order_id: int,
    actor_id: int,
    *,
    amount_paid_cents: int | None = None,
    payment_method: str | None = None,
) -> Order:
    """
    Retry completion of a pending order, optionally with a new tender.

    Used after a checkout came back PaymentInsufficient or InsufficientStock
    and the order was left pending.
    """
    with write_transaction():
        order = get_order_locked(order_id)
        if amount_paid_cents is not None:
            order.amount_paid_cents = amount_paid_cents
        if payment_method is not None:
            order.payment_method = payment_method
        complete_locked(order)

    current_app.logger.info(
        "Order %s completed by user %s (total %s cents)",
        order.order_number, actor_id, order.total_amount_cents,
    )
    return order


def cancel_order(order_id: int, actor_id: int, reason: str | None = None) -> Order:
    """pending -> cancelled. Stock is never touched."""
    with write_transaction():
        order = get_order_locked(order_id)
        transition(order, ORDER_STATUS_CANCELLED)
        order.cancelled_at = utcnow()
        order.cancelled_by_user_id = actor_id
        order.cancel_reason = reason

    current_app.logger.info("Order %s cancelled by user %s", order.order_number, actor_id)
    return order


# =============================================================================
# QUERIES
# =============================================================================

def list_orders(filters: OrderFilters, per_page: int | None = None) -> dict:
    """
    Orders newest first, filtered by status, created_at date range and a
    free-text search over order number, customer name and cashier name.
    """
    if filters.status is not None and filters.status not in ORDER_STATUSES:
        raise InvalidInput(
            f"Unknown order status: {filters.status}",
            {"allowed": list(ORDER_STATUSES)},
        )
    per_page = per_page or current_app.config.get("ORDERS_PAGE_SIZE", 20)

    query = (
        db.session.query(Order)
        .outerjoin(Customer, Customer.id == Order.customer_id)
        .join(User, User.id == Order.user_id)
    )

    if filters.status:
        query = query.filter(Order.status == filters.status)
    if filters.date_from:
        query = query.filter(Order.created_at >= start_of_day(filters.date_from))
    if filters.date_to:
        query = query.filter(Order.created_at < start_of_day(filters.date_to) + timedelta(days=1))
    if filters.search:
        term = f"%{filters.search}%"
        query = query.filter(or_(
            Order.order_number.ilike(term),
            Customer.name.ilike(term),
            User.name.ilike(term),
        ))

    total = query.count()
    orders = (
        query.order_by(Order.created_at.desc(), Order.id.desc())
        .offset((filters.page - 1) * per_page)
        .limit(per_page)
        .all()
    )

    return {
        "orders": orders,
        "total": total,
        "page": filters.page,
        "per_page": per_page,
        "pages": (total + per_page - 1) // per_page,
    }


def order_stats(now=None) -> dict:
    """Completed sales totals overall and for today."""
    now = now or utcnow()
    today = start_of_day(now.date())

    completed = db.session.query(
        func.coalesce(func.sum(Order.total_amount_cents), 0),
        func.count(Order.id),
    ).filter(Order.status == ORDER_STATUS_COMPLETED)

    total_sales, total_orders = completed.one()
    today_sales, today_orders = completed.filter(Order.completed_at >= today).one()

    return {
        "total_sales_cents": int(total_sales),
        "total_orders": int(total_orders),
        "today_sales_cents": int(today_sales),
        "today_orders": int(today_orders),
    }
