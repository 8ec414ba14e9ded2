"""Stock guard: conditional decrements, all-or-nothing, untracked bypass."""

import pytest

from retailpos.errors import InsufficientStock, InvalidInput
from retailpos.extensions import db
from retailpos.models import Product
from retailpos.services import stock_service
from retailpos.services.concurrency import write_transaction
from retailpos.validation import CheckoutItem


def _stock(product_id):
    db.session.expire_all()
    return db.session.get(Product, product_id).stock_quantity


def test_decrement_reduces_tracked_stock(make_product):
    product = make_product(stock=5)

    with write_transaction():
        decremented = stock_service.decrement_stock([CheckoutItem(product.id, 2)])

    assert decremented == {product.id: 2}
    assert _stock(product.id) == 3


def test_decrement_to_exactly_zero(make_product):
    product = make_product(stock=2)

    with write_transaction():
        stock_service.decrement_stock([CheckoutItem(product.id, 2)])

    assert _stock(product.id) == 0


def test_untracked_products_bypass_stock(make_product):
    product = make_product(track_stock=False)

    with write_transaction():
        decremented = stock_service.decrement_stock([CheckoutItem(product.id, 50)])

    assert decremented == {}
    assert _stock(product.id) == 0


def test_shortage_rolls_back_every_line(make_product):
    plenty = make_product(stock=10)
    scarce = make_product(stock=1)

    with pytest.raises(InsufficientStock) as exc_info:
        with write_transaction():
            stock_service.decrement_stock([
                CheckoutItem(plenty.id, 3),
                CheckoutItem(scarce.id, 2),
            ])

    shortages = exc_info.value.details["items"]
    assert [s["product_id"] for s in shortages] == [scarce.id]
    assert shortages[0]["stock_quantity"] == 1
    assert _stock(plenty.id) == 10
    assert _stock(scarce.id) == 1


def test_repeated_product_lines_are_summed(make_product):
    product = make_product(stock=3)

    with pytest.raises(InsufficientStock):
        with write_transaction():
            stock_service.decrement_stock([
                CheckoutItem(product.id, 2),
                CheckoutItem(product.id, 2),
            ])

    assert _stock(product.id) == 3


def test_unenforced_decrement_floors_at_zero(make_product):
    product = make_product(stock=1)

    with write_transaction():
        decremented = stock_service.decrement_stock([CheckoutItem(product.id, 4)], enforce=False)

    assert decremented == {product.id: 4}
    assert _stock(product.id) == 0


def test_unknown_product_is_invalid_input(db_session):
    with pytest.raises(InvalidInput) as exc_info:
        stock_service.check_stock([CheckoutItem(999, 1)])
    assert exc_info.value.details["missing_product_ids"] == [999]


def test_check_stock_reports_without_mutating(make_product):
    product = make_product(stock=1)

    shortages = stock_service.check_stock([CheckoutItem(product.id, 3)])

    assert shortages == [{
        "product_id": product.id,
        "product_name": product.name,
        "requested_quantity": 3,
        "stock_quantity": 1,
    }]
    assert _stock(product.id) == 1


def test_low_stock_products(make_product):
    low = make_product(stock=2, min_stock_level=5)
    make_product(stock=50, min_stock_level=5)
    make_product(track_stock=False)

    assert [p.id for p in stock_service.low_stock_products()] == [low.id]
    assert low.is_low_stock() is True
    assert low.is_out_of_stock() is False
