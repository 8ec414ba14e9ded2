# Overview: Line-item and order totals arithmetic. Pure functions, no database access.

"""
Pricing

Line:
    total_price = unit_price * quantity
    tax_amount  = round_half_up(total_price * tax_rate / 100)

Order:
    subtotal        = sum(line total_price)
    tax_amount      = sum(line tax_amount)       (tax is on the pre-discount line totals)
    discount_amount = numerical: max(0, value)
                      percentage: subtotal * clamp(value, 0, 100) / 100
    total_amount    = max(0, subtotal + tax_amount - discount_amount)
    change_amount   = max(0, amount_paid - total_amount)

The discount is a flat reduction of the tax-inclusive total; it is not spread
back over the lines and does not reduce the taxable base.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable

from ..errors import InvalidInput, PaymentInsufficient
from ..money import MAX_RATE_BPS, ONE_HUNDRED, clamp, format_cents, percent_of_cents, percent_value_of_cents, round_half_up
from ..validation import DISCOUNT_NUMERICAL, DISCOUNT_PERCENTAGE, DiscountSpec, NO_DISCOUNT


@dataclass(frozen=True)
class LineAmounts:
    total_price_cents: int
    tax_amount_cents: int


@dataclass(frozen=True)
class OrderTotals:
    subtotal_cents: int
    tax_amount_cents: int
    discount_amount_cents: int
    total_amount_cents: int
    amount_paid_cents: int
    change_amount_cents: int

    @property
    def is_payment_sufficient(self) -> bool:
        return self.amount_paid_cents >= self.total_amount_cents

    @property
    def shortfall_cents(self) -> int:
        return max(0, self.total_amount_cents - self.amount_paid_cents)

    def to_dict(self) -> dict:
        return {
            "subtotal_cents": self.subtotal_cents,
            "tax_amount_cents": self.tax_amount_cents,
            "discount_amount_cents": self.discount_amount_cents,
            "total_amount_cents": self.total_amount_cents,
            "amount_paid_cents": self.amount_paid_cents,
            "change_amount_cents": self.change_amount_cents,
            "is_payment_sufficient": self.is_payment_sufficient,
            "shortfall_cents": self.shortfall_cents,
        }


def _is_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def calculate_line(unit_price_cents: int, quantity: int, tax_rate_bps: int) -> LineAmounts:
    """Total and tax for one line; raises InvalidInput on a bad price, quantity or rate."""
    if not _is_int(quantity) or quantity < 1:
        raise InvalidInput("Quantity must be at least 1.", {"quantity": quantity})
    if not _is_int(unit_price_cents) or unit_price_cents < 0:
        raise InvalidInput("Unit price cannot be negative.", {"unit_price_cents": unit_price_cents})
    if not _is_int(tax_rate_bps) or not 0 <= tax_rate_bps <= MAX_RATE_BPS:
        raise InvalidInput("Tax rate must be between 0 and 100 percent.", {"tax_rate_bps": tax_rate_bps})

    total = unit_price_cents * quantity
    return LineAmounts(
        total_price_cents=total,
        tax_amount_cents=percent_of_cents(total, tax_rate_bps),
    )


def calculate_discount(subtotal_cents: int, discount: DiscountSpec | None) -> int:
    discount = discount or NO_DISCOUNT
    if discount.type == DISCOUNT_PERCENTAGE:
        percent = clamp(discount.value, Decimal(0), ONE_HUNDRED)
        return percent_value_of_cents(subtotal_cents, percent)
    if discount.type == DISCOUNT_NUMERICAL:
        return round_half_up(clamp(discount.value, Decimal(0)))
    raise InvalidInput(f"Unknown discount type: {discount.type}")


def calculate_totals(
    lines: Iterable,
    discount: DiscountSpec | None = None,
    amount_paid_cents: int = 0,
) -> OrderTotals:
    """
    Aggregate priced lines into order totals.

    `lines` holds anything exposing total_price_cents and tax_amount_cents
    (LineAmounts or OrderItem rows). An empty cart prices to all zeros.
    """
    if not _is_int(amount_paid_cents) or amount_paid_cents < 0:
        raise InvalidInput("Amount paid cannot be negative.", {"amount_paid_cents": amount_paid_cents})

    subtotal = 0
    tax = 0
    for line in lines:
        subtotal += line.total_price_cents
        tax += line.tax_amount_cents

    discount_amount = calculate_discount(subtotal, discount)
    total = max(0, subtotal + tax - discount_amount)

    return OrderTotals(
        subtotal_cents=subtotal,
        tax_amount_cents=tax,
        discount_amount_cents=discount_amount,
        total_amount_cents=total,
        amount_paid_cents=amount_paid_cents,
        change_amount_cents=max(0, amount_paid_cents - total),
    )


def require_sufficient_payment(totals: OrderTotals) -> None:
    if totals.is_payment_sufficient:
        return
    raise PaymentInsufficient(
        "The amount paid must be at least {total}. Amount paid: {paid}, Shortfall: {short}".format(
            total=format_cents(totals.total_amount_cents),
            paid=format_cents(totals.amount_paid_cents),
            short=format_cents(totals.shortfall_cents),
        ),
        details={
            "total_amount_cents": totals.total_amount_cents,
            "amount_paid_cents": totals.amount_paid_cents,
            "shortfall_cents": totals.shortfall_cents,
        },
    )
