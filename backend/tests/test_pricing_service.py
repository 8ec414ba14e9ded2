from decimal import Decimal

import pytest

from retailpos.errors import InvalidInput, PaymentInsufficient
from retailpos.services.pricing_service import (
    LineAmounts,
    calculate_discount,
    calculate_line,
    calculate_totals,
    require_sufficient_payment,
)
from retailpos.validation import DiscountSpec, NO_DISCOUNT


def test_line_total_and_tax():
    line = calculate_line(1000, 2, 1000)
    assert line == LineAmounts(total_price_cents=2000, tax_amount_cents=200)


def test_line_tax_rounds_half_up():
    # 0.15 * 8.25% = 0.012375 -> 0.01 ; 1.50 * 8.25% = 0.12375 -> 0.12
    assert calculate_line(15, 1, 825).tax_amount_cents == 1
    assert calculate_line(150, 1, 825).tax_amount_cents == 12
    # 0.10 * 5% = 0.005 -> 0.01
    assert calculate_line(10, 1, 500).tax_amount_cents == 1


@pytest.mark.parametrize(
    "price,qty,rate",
    [
        (1000, 0, 1000),
        (1000, -1, 1000),
        (1000, 1.5, 1000),
        (1000, True, 1000),
        (-1, 1, 1000),
        (1000, 1, -1),
        (1000, 1, 10001),
    ],
)
def test_line_rejects_bad_input(price, qty, rate):
    with pytest.raises(InvalidInput):
        calculate_line(price, qty, rate)


def test_numerical_discount_scenario():
    lines = [calculate_line(1000, 2, 1000)]
    totals = calculate_totals(lines, DiscountSpec("numerical", Decimal(500)), 2000)

    assert totals.subtotal_cents == 2000
    assert totals.tax_amount_cents == 200
    assert totals.discount_amount_cents == 500
    assert totals.total_amount_cents == 1700
    assert totals.change_amount_cents == 300
    assert totals.is_payment_sufficient is True


def test_percentage_discount_scenario():
    lines = [calculate_line(1000, 2, 1000)]
    totals = calculate_totals(lines, DiscountSpec("percentage", Decimal(50)), 2000)

    assert totals.discount_amount_cents == 1000
    assert totals.total_amount_cents == 1200
    assert totals.change_amount_cents == 800


def test_percentage_discount_is_clamped():
    assert calculate_discount(2000, DiscountSpec("percentage", Decimal(150))) == 2000
    assert calculate_discount(2000, DiscountSpec("percentage", Decimal(-10))) == 0


def test_total_never_negative():
    lines = [calculate_line(500, 1, 0)]
    totals = calculate_totals(lines, DiscountSpec("numerical", Decimal(10_000)), 0)
    assert totals.total_amount_cents == 0
    assert totals.change_amount_cents == 0
    assert totals.is_payment_sufficient is True


def test_empty_cart_prices_to_zero():
    totals = calculate_totals([], NO_DISCOUNT, 0)
    assert totals.subtotal_cents == totals.total_amount_cents == 0


def test_insufficient_payment_reports_shortfall():
    totals = calculate_totals([calculate_line(1000, 2, 1000)], NO_DISCOUNT, 1500)
    assert totals.is_payment_sufficient is False
    assert totals.change_amount_cents == 0

    with pytest.raises(PaymentInsufficient) as exc_info:
        require_sufficient_payment(totals)

    assert exc_info.value.details == {
        "total_amount_cents": 2200,
        "amount_paid_cents": 1500,
        "shortfall_cents": 700,
    }
    assert exc_info.value.status_code == 402


def test_negative_amount_paid_rejected():
    with pytest.raises(InvalidInput):
        calculate_totals([], NO_DISCOUNT, -1)
