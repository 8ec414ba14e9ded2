# Overview: Service-layer reporting; dashboard sales, refund and stock figures.

from __future__ import annotations

from datetime import datetime, timedelta

from sqlalchemy import func

from ..extensions import db
from ..models import Order, OrderItem, Product
from ..models.orders import ORDER_STATUS_COMPLETED
from ..time_utils import start_of_day, start_of_month, start_of_week, to_utc_z, utcnow
from .stock_service import low_stock_products


TOP_PRODUCTS_DAYS = 30
TOP_PRODUCTS_LIMIT = 5
DAILY_SALES_DAYS = 7
LOW_STOCK_LIMIT = 5


def _completed_sales_since(since: datetime) -> int:
    total = db.session.query(func.coalesce(func.sum(Order.total_amount_cents), 0)).filter(
        Order.status == ORDER_STATUS_COMPLETED,
        Order.completed_at >= since,
    ).scalar()
    return int(total or 0)


def _refunds_since(since: datetime) -> int:
    total = db.session.query(func.coalesce(func.sum(Order.refund_amount_cents), 0)).filter(
        Order.refunded_at.isnot(None),
        Order.refunded_at >= since,
    ).scalar()
    return int(total or 0)


def top_products(now: datetime | None = None, *, days: int = TOP_PRODUCTS_DAYS, limit: int = TOP_PRODUCTS_LIMIT) -> list[dict]:
    """Best sellers by units on completed orders over the trailing window."""
    now = now or utcnow()
    rows = (
        db.session.query(
            OrderItem.product_id.label("product_id"),
            Product.name.label("name"),
            Product.sku.label("sku"),
            func.coalesce(func.sum(OrderItem.quantity), 0).label("total_sold"),
            func.coalesce(func.sum(OrderItem.total_price_cents), 0).label("revenue_cents"),
        )
        .join(Order, OrderItem.order_id == Order.id)
        .join(Product, OrderItem.product_id == Product.id)
        .filter(
            Order.status == ORDER_STATUS_COMPLETED,
            Order.completed_at >= now - timedelta(days=days),
        )
        .group_by(OrderItem.product_id, Product.name, Product.sku)
        .order_by(func.sum(OrderItem.quantity).desc(), OrderItem.product_id.asc())
        .limit(limit)
        .all()
    )
    return [
        {
            "product_id": row.product_id,
            "name": row.name,
            "sku": row.sku,
            "total_sold": int(row.total_sold or 0),
            "revenue_cents": int(row.revenue_cents or 0),
        }
        for row in rows
    ]


def daily_sales(now: datetime | None = None, *, days: int = DAILY_SALES_DAYS) -> list[dict]:
    now = now or utcnow()
    day = func.date(Order.completed_at)
    rows = (
        db.session.query(
            day.label("date"),
            func.coalesce(func.sum(Order.total_amount_cents), 0).label("total_cents"),
            func.count(Order.id).label("orders"),
        )
        .filter(
            Order.status == ORDER_STATUS_COMPLETED,
            Order.completed_at >= now - timedelta(days=days),
        )
        .group_by(day)
        .order_by(day)
        .all()
    )
    return [
        {"date": str(row.date), "total_cents": int(row.total_cents or 0), "orders": int(row.orders or 0)}
        for row in rows
    ]


def dashboard(now: datetime | None = None) -> dict:
    """
    Till dashboard figures.

    Sales count completed orders only (a fully refunded order leaves them);
    refund figures sum refund_amount of orders whose latest refund falls in
    the window. refund_rate is refunded orders / completed orders * 100.
    """
    now = now or utcnow()
    today = start_of_day(now.date())
    week = start_of_week(now)
    month = start_of_month(now)

    total_orders = db.session.query(func.count(Order.id)).filter(
        Order.status == ORDER_STATUS_COMPLETED,
    ).scalar() or 0
    total_refunds = db.session.query(func.count(Order.id)).filter(
        Order.refunded_at.isnot(None),
    ).scalar() or 0
    refund_rate = round(total_refunds / total_orders * 100, 2) if total_orders else 0.0

    return {
        "generated_at": to_utc_z(now),
        "statistics": {
            "today_sales_cents": _completed_sales_since(today),
            "week_sales_cents": _completed_sales_since(week),
            "month_sales_cents": _completed_sales_since(month),
            "total_orders": int(total_orders),
            "today_refunds_cents": _refunds_since(today),
            "week_refunds_cents": _refunds_since(week),
            "month_refunds_cents": _refunds_since(month),
            "total_refunds": int(total_refunds),
            "refund_rate": refund_rate,
        },
        "daily_sales": daily_sales(now),
        "top_products": top_products(now),
        "low_stock_products": [p.to_dict() for p in low_stock_products(LOW_STOCK_LIMIT)],
    }
