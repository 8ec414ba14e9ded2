# Overview: Service-layer operations for customers and their purchase aggregates.

from __future__ import annotations

from sqlalchemy import func

from ..errors import InvalidInput
from ..extensions import db
from ..models import Customer, Order
from ..models.orders import ORDER_STATUS_COMPLETED


def get_customer(customer_id: int) -> Customer | None:
    return db.session.get(Customer, customer_id)


def create_customer(name: str, email: str | None = None, phone: str | None = None) -> Customer:
    name = (name or "").strip()
    if not name:
        raise InvalidInput("Customer name is required")
    customer = Customer(name=name, email=(email or None), phone=(phone or None))
    db.session.add(customer)
    db.session.commit()
    return customer


def update_customer_totals(customer_id: int | None) -> Customer | None:
    """
    Recompute total_spent / total_orders / last_purchase_at from the
    customer's completed orders.

    Flushes pending changes first so an order completed or refunded in the
    current transaction is counted correctly. Does not commit.
    """
    if customer_id is None:
        return None

    customer = db.session.get(Customer, customer_id)
    if customer is None:
        return None

    db.session.flush()
    total_spent, total_orders, last_purchase = (
        db.session.query(
            func.coalesce(func.sum(Order.total_amount_cents), 0),
            func.count(Order.id),
            func.max(Order.completed_at),
        )
        .filter(
            Order.customer_id == customer_id,
            Order.status == ORDER_STATUS_COMPLETED,
        )
        .one()
    )

    customer.total_spent_cents = int(total_spent or 0)
    customer.total_orders = int(total_orders or 0)
    customer.last_purchase_at = last_purchase
    return customer
