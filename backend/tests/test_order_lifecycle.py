"""Order state machine: allowed transitions and completion guards."""

import pytest

from retailpos.errors import InsufficientStock, InvalidTransition, OrderNotFound, PaymentInsufficient
from retailpos.extensions import db
from retailpos.services import order_service
from retailpos.services.concurrency import write_transaction
from retailpos.services.document_service import DocumentSequenceError, next_order_number


def _pending_order(cashier, lines, amount_paid_cents=100_000):
    with write_transaction():
        order = order_service.create_order(
            user_id=cashier.id,
            payment_method="cash",
            amount_paid_cents=amount_paid_cents,
        )
        for product, qty in lines:
            order_service.add_item(order, product, qty)
        order_service.apply_totals(order)
    return order


@pytest.mark.parametrize(
    "current,new,allowed",
    [
        ("pending", "completed", True),
        ("pending", "cancelled", True),
        ("completed", "refunded", True),
        ("completed", "cancelled", False),
        ("completed", "pending", False),
        ("cancelled", "completed", False),
        ("cancelled", "pending", False),
        ("refunded", "completed", False),
        ("pending", "refunded", False),
    ],
)
def test_transition_table(current, new, allowed):
    assert order_service.can_transition(current, new) is allowed


def test_new_order_is_pending_with_order_number(cashier, make_product):
    order = _pending_order(cashier, [(make_product(), 1)])

    assert order.status == "pending"
    assert order.order_number.startswith("ORD-")
    assert order.order_number.endswith("-0001")


def test_order_numbers_increment_within_a_day(cashier, make_product):
    product = make_product()
    first = _pending_order(cashier, [(product, 1)])
    second = _pending_order(cashier, [(product, 1)])

    assert first.order_number[:-4] == second.order_number[:-4]
    assert second.order_number.endswith("-0002")


def test_items_snapshot_product_data(cashier, make_product):
    product = make_product(price_cents=1000, tax_rate_bps=1000, name="Mug", sku="MUG-1")
    order = _pending_order(cashier, [(product, 2)])

    product.price_cents = 9999
    product.name = "Renamed"
    db.session.commit()

    item = order.items[0]
    assert item.product_name == "Mug"
    assert item.product_sku == "MUG-1"
    assert item.unit_price_cents == 1000
    assert item.total_price_cents == 2000
    assert item.tax_amount_cents == 200
    assert order.subtotal_cents == 2000
    assert order.total_amount_cents == 2200


def test_complete_decrements_stock_and_sets_timestamp(cashier, make_product):
    product = make_product(stock=5)
    order = _pending_order(cashier, [(product, 2)])

    order_service.complete_order(order.id, cashier.id)

    db.session.expire_all()
    assert order.status == "completed"
    assert order.completed_at is not None
    assert product.stock_quantity == 3


def test_complete_with_insufficient_payment_stays_pending(cashier, make_product):
    product = make_product(stock=5)
    order = _pending_order(cashier, [(product, 2)], amount_paid_cents=100)

    with pytest.raises(PaymentInsufficient):
        order_service.complete_order(order.id, cashier.id)

    db.session.expire_all()
    assert order.status == "pending"
    assert product.stock_quantity == 5


def test_retry_completion_with_more_tender(cashier, make_product):
    product = make_product(stock=5)
    order = _pending_order(cashier, [(product, 2)], amount_paid_cents=100)

    order_service.complete_order(order.id, cashier.id, amount_paid_cents=2500, payment_method="card")

    assert order.status == "completed"
    assert order.payment_method == "card"
    assert order.change_amount_cents == 300


def test_complete_with_insufficient_stock_stays_pending(cashier, make_product):
    product = make_product(stock=1)
    order = _pending_order(cashier, [(product, 2)])

    with pytest.raises(InsufficientStock):
        order_service.complete_order(order.id, cashier.id)

    db.session.expire_all()
    assert order.status == "pending"
    assert product.stock_quantity == 1


def test_empty_order_cannot_complete(cashier):
    order = _pending_order(cashier, [])

    with pytest.raises(InvalidTransition):
        order_service.complete_order(order.id, cashier.id)


def test_cancel_pending_leaves_stock_untouched(cashier, make_product):
    product = make_product(stock=5)
    order = _pending_order(cashier, [(product, 2)])

    order_service.cancel_order(order.id, cashier.id, "Customer left")

    db.session.expire_all()
    assert order.status == "cancelled"
    assert order.cancel_reason == "Customer left"
    assert order.cancelled_by_user_id == cashier.id
    assert product.stock_quantity == 5


def test_cancelled_order_is_terminal(cashier, make_product):
    order = _pending_order(cashier, [(make_product(), 1)])
    order_service.cancel_order(order.id, cashier.id)

    with pytest.raises(InvalidTransition):
        order_service.complete_order(order.id, cashier.id)
    with pytest.raises(InvalidTransition):
        order_service.cancel_order(order.id, cashier.id)


def test_completed_order_cannot_be_cancelled(cashier, make_product):
    order = _pending_order(cashier, [(make_product(), 1)])
    order_service.complete_order(order.id, cashier.id)

    with pytest.raises(InvalidTransition):
        order_service.cancel_order(order.id, cashier.id)


def test_items_only_added_while_pending(cashier, make_product):
    product = make_product()
    order = _pending_order(cashier, [(product, 1)])
    order_service.complete_order(order.id, cashier.id)

    with pytest.raises(InvalidTransition):
        order_service.add_item(order, product, 1)
    db.session.rollback()


def test_unknown_order(db_session):
    with pytest.raises(OrderNotFound):
        order_service.get_order(12345)


def test_order_number_needs_prefix(db_session):
    with pytest.raises(DocumentSequenceError):
        next_order_number(prefix="")
