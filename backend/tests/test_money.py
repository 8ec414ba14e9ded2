from decimal import Decimal

import pytest

from retailpos.money import (
    MoneyFormatError,
    bps_to_percent,
    clamp,
    format_cents,
    money_to_cents,
    percent_of_cents,
    percent_to_bps,
    percent_value_of_cents,
    round_half_up,
    to_decimal,
)


def test_round_half_up_rounds_halves_away_from_zero():
    assert round_half_up(Decimal("0.5")) == 1
    assert round_half_up(Decimal("1.5")) == 2
    assert round_half_up(Decimal("2.5")) == 3
    assert round_half_up(Decimal("2.49")) == 2
    assert round_half_up(Decimal("-0.5")) == -1


def test_percent_of_cents_uses_basis_points():
    assert percent_of_cents(2000, 1000) == 200       # 10% of 20.00
    assert percent_of_cents(999, 825) == 82          # 82.4175
    assert percent_of_cents(5, 1000) == 1            # 0.5 cent rounds up
    assert percent_of_cents(0, 1000) == 0


def test_percent_value_of_cents_accepts_fractional_percent():
    assert percent_value_of_cents(2000, Decimal("50")) == 1000
    assert percent_value_of_cents(1999, Decimal("12.5")) == 250  # 249.875


def test_to_decimal_reads_floats_through_repr():
    assert to_decimal(0.1) == Decimal("0.1")
    assert to_decimal("12.50") == Decimal("12.50")
    assert to_decimal(7) == Decimal(7)


@pytest.mark.parametrize("value", [None, True, "abc", "NaN", "Infinity", [1]])
def test_to_decimal_rejects_non_numbers(value):
    with pytest.raises(MoneyFormatError):
        to_decimal(value)


def test_money_and_percent_parsing():
    assert money_to_cents("12.345") == 1235
    assert money_to_cents("10") == 1000
    assert percent_to_bps("8.25") == 825
    assert bps_to_percent(825) == Decimal("8.25")


def test_clamp():
    assert clamp(Decimal(150), Decimal(0), Decimal(100)) == Decimal(100)
    assert clamp(Decimal(-3), Decimal(0)) == Decimal(0)
    assert clamp(Decimal(42), Decimal(0), Decimal(100)) == Decimal(42)


def test_format_cents():
    assert format_cents(1234) == "12.34"
    assert format_cents(123456789) == "1,234,567.89"
