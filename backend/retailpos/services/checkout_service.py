# Overview: Service-layer checkout; turns a validated cart into a completed order.

"""
Checkout

Two transactions, each all-or-nothing:

1. Build: create the pending order, snapshot and price every line, store
   totals. Unknown or inactive products fail here with InvalidInput and
   nothing is persisted.
2. Complete: lock the order, check payment, decrement stock, mark it
   completed. PaymentInsufficient or InsufficientStock roll this step back
   completely and leave the order pending (the error details carry its id)
   so the till can take more tender and retry or cancel it.
"""

from __future__ import annotations

from flask import current_app

from ..errors import InsufficientStock, InvalidInput, PaymentInsufficient
from ..models import Order
from ..validation import CheckoutRequest
from . import order_service, products_service
from .concurrency import write_transaction


def _build_pending_order(request: CheckoutRequest, actor_id: int) -> Order:
    with write_transaction():
        products = products_service.get_products(item.product_id for item in request.items)
        missing = sorted({item.product_id for item in request.items} - set(products))
        if missing:
            raise InvalidInput(
                "One or more selected products do not exist.",
                details={"missing_product_ids": missing},
            )

        order = order_service.create_order(
            user_id=actor_id,
            payment_method=request.payment_method,
            amount_paid_cents=request.amount_paid_cents,
            discount=request.discount,
            customer_id=request.customer_id,
            notes=request.notes,
        )
        for item in request.items:
            order_service.add_item(order, products[item.product_id], item.quantity)
        order_service.apply_totals(order)
    return order


def checkout(request: CheckoutRequest, actor_id: int) -> Order:
    """
    Ring up a cart for `actor_id` and return the completed order.

    Raises InvalidInput (nothing persisted), or PaymentInsufficient /
    InsufficientStock (order persisted as pending, no stock touched).
    """
    order = _build_pending_order(request, actor_id)
    order_id, order_number = order.id, order.order_number

    try:
        with write_transaction():
            order = order_service.get_order_locked(order_id)
            order_service.complete_locked(order)
    except (PaymentInsufficient, InsufficientStock) as exc:
        exc.details.setdefault("order_id", order_id)
        exc.details.setdefault("order_number", order_number)
        exc.details.setdefault("status", "pending")
        current_app.logger.warning("Checkout of order %s left pending: %s", order_number, exc)
        raise

    current_app.logger.info(
        "Order %s completed by user %s: total %s cents, paid %s, change %s",
        order.order_number,
        actor_id,
        order.total_amount_cents,
        order.amount_paid_cents,
        order.change_amount_cents,
    )
    return order
