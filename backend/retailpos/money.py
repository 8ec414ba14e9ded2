# Overview: Exact money and percentage arithmetic.

"""
Money primitives.

All monetary amounts are integer cents. Percentages that are persisted
(tax rates) are integer basis points: 1 % == 100 bps, 100 % == 10_000 bps.
Anything that has to be rounded is rounded half-up (away from zero on the
half), the usual till-receipt convention.
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

BPS_PER_PERCENT = 100
MAX_RATE_BPS = 100 * BPS_PER_PERCENT
ONE_HUNDRED = Decimal(100)


class MoneyFormatError(ValueError):
    """Raised when a value cannot be read as an exact decimal."""


def to_decimal(value) -> Decimal:
    """
    Read an int, Decimal or numeric string as an exact Decimal.

    Floats are accepted through their shortest repr ("0.1" not
    0.1000000000000000055...). Booleans, NaN and infinities are rejected.
    """
    if isinstance(value, bool) or value is None:
        raise MoneyFormatError(f"not a number: {value!r}")
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, int):
        result = Decimal(value)
    elif isinstance(value, float):
        result = Decimal(repr(value))
    elif isinstance(value, str):
        try:
            result = Decimal(value.strip())
        except InvalidOperation:
            raise MoneyFormatError(f"not a number: {value!r}")
    else:
        raise MoneyFormatError(f"not a number: {value!r}")

    if not result.is_finite():
        raise MoneyFormatError(f"not a finite number: {value!r}")
    return result


def round_half_up(value: Decimal) -> int:
    """Round to the nearest whole unit, halves away from zero."""
    return int(value.quantize(Decimal(1), rounding=ROUND_HALF_UP))


def percent_of_cents(amount_cents: int, rate_bps: int) -> int:
    """amount * rate / 100, rate given in basis points, rounded to the cent."""
    return round_half_up(Decimal(amount_cents) * Decimal(rate_bps) / Decimal(MAX_RATE_BPS))


def percent_value_of_cents(amount_cents: int, percent: Decimal) -> int:
    """amount * percent / 100 for an arbitrary Decimal percent."""
    return round_half_up(Decimal(amount_cents) * percent / ONE_HUNDRED)


def clamp(value: Decimal, low: Decimal | None = None, high: Decimal | None = None) -> Decimal:
    if low is not None and value < low:
        return low
    if high is not None and value > high:
        return high
    return value


def money_to_cents(value) -> int:
    """'12.345' -> 1235; currency units in, cents out."""
    return round_half_up(to_decimal(value) * ONE_HUNDRED)


def percent_to_bps(value) -> int:
    """'8.25' -> 825."""
    return round_half_up(to_decimal(value) * BPS_PER_PERCENT)


def cents_to_decimal(cents: int) -> Decimal:
    return (Decimal(cents) / ONE_HUNDRED).quantize(Decimal("0.01"))


def bps_to_percent(bps: int) -> Decimal:
    return (Decimal(bps) / BPS_PER_PERCENT).quantize(Decimal("0.01"))


def format_cents(cents: int) -> str:
    """1234 -> '12.34', -5 -> '-0.05'."""
    return f"{cents_to_decimal(cents):,.2f}"
