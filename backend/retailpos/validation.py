from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Any

from .errors import InvalidInput
from .money import MoneyFormatError, to_decimal
from .time_utils import parse_iso_date


# Maximum price / tender: 9,999,999.99 (999,999,999 cents)
MAX_AMOUNT_CENTS = 999_999_999
MAX_LINE_QUANTITY = 100_000
MAX_REASON_LENGTH = 500
MAX_NOTES_LENGTH = 2000
# Largest value a signed 64-bit INTEGER primary key can hold
MAX_DB_ID = 2**63 - 1
MAX_PAGE = 1_000_000

PAYMENT_METHODS = ("cash", "card", "digital", "mixed")

DISCOUNT_NUMERICAL = "numerical"
DISCOUNT_PERCENTAGE = "percentage"
DISCOUNT_TYPES = (DISCOUNT_NUMERICAL, DISCOUNT_PERCENTAGE)


@dataclass(frozen=True)
class DiscountSpec:
    """
    Order-level discount.

    numerical:  value is an amount in cents
    percentage: value is a percent of the subtotal
    """
    type: str = DISCOUNT_NUMERICAL
    value: Decimal = Decimal(0)


NO_DISCOUNT = DiscountSpec()


@dataclass(frozen=True)
class CheckoutItem:
    product_id: int
    quantity: int


@dataclass(frozen=True)
class CheckoutRequest:
    items: tuple[CheckoutItem, ...]
    payment_method: str
    amount_paid_cents: int
    discount: DiscountSpec = NO_DISCOUNT
    customer_id: int | None = None
    notes: str | None = None


@dataclass(frozen=True)
class CartBackupRequest:
    items: tuple[CheckoutItem, ...]
    payment_method: str = "cash"
    discount: DiscountSpec = NO_DISCOUNT
    customer_id: int | None = None

    def to_payload(self) -> dict:
        return {
            "items": [{"product_id": i.product_id, "quantity": i.quantity} for i in self.items],
            "payment_method": self.payment_method,
            "discount_type": self.discount.type,
            "discount_value": str(self.discount.value),
            "customer_id": self.customer_id,
        }


@dataclass(frozen=True)
class RefundRequest:
    quantity: int
    reason: str


@dataclass(frozen=True)
class CompletionRequest:
    amount_paid_cents: int | None = None
    payment_method: str | None = None


@dataclass(frozen=True)
class OrderFilters:
    status: str | None = None
    date_from: date | None = None
    date_to: date | None = None
    search: str | None = None
    page: int = 1


def coerce_int(key: str, value: Any) -> int:
    """
    Strict integer coercion for JSON/form input.

    Rejects booleans, floats, decimal strings and scientific notation so that
    "2.5" items or "1e3" cents never silently become integers.
    """
    if isinstance(value, bool):
        raise InvalidInput(f"{key} must be an integer", {"field": key})
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            raise InvalidInput(f"{key} must be an integer", {"field": key})
        if "e" in stripped.lower():
            raise InvalidInput(
                f"{key} must be a plain integer (scientific notation not allowed)",
                {"field": key},
            )
        if "." in stripped:
            raise InvalidInput(f"{key} must be an integer (no decimals)", {"field": key})
        try:
            return int(stripped)
        except ValueError:
            raise InvalidInput(f"{key} must be an integer", {"field": key})
    if isinstance(value, float):
        raise InvalidInput(f"{key} must be an integer, not a decimal", {"field": key})
    raise InvalidInput(f"{key} must be an integer", {"field": key})


def _required(payload: dict, key: str) -> Any:
    if key not in payload or payload[key] is None:
        raise InvalidInput(f"{key} is required", {"field": key})
    return payload[key]


def _positive_int(key: str, value: Any, *, maximum: int | None = None) -> int:
    n = coerce_int(key, value)
    if n < 1:
        raise InvalidInput(f"{key} must be at least 1", {"field": key})
    if maximum is not None and n > maximum:
        raise InvalidInput(f"{key} must be at most {maximum}", {"field": key})
    return n


def _id(key: str, value: Any) -> int:
    return _positive_int(key, value, maximum=MAX_DB_ID)


def is_valid_id(value: int) -> bool:
    """True when value can be looked up as a primary key without overflowing the driver."""
    return 1 <= value <= MAX_DB_ID


def _amount_cents(key: str, value: Any) -> int:
    n = coerce_int(key, value)
    if n < 0:
        raise InvalidInput(f"{key} cannot be negative", {"field": key})
    if n > MAX_AMOUNT_CENTS:
        raise InvalidInput(f"{key} must be at most {MAX_AMOUNT_CENTS}", {"field": key})
    return n


def _reason(payload: dict, key: str = "reason") -> str:
    raw = _required(payload, key)
    reason = str(raw).strip()
    if not reason:
        raise InvalidInput(f"{key} is required", {"field": key})
    if len(reason) > MAX_REASON_LENGTH:
        raise InvalidInput(
            f"{key} cannot exceed {MAX_REASON_LENGTH} characters",
            {"field": key},
        )
    return reason


def _payment_method(value: Any) -> str:
    method = str(value).strip().lower()
    if method not in PAYMENT_METHODS:
        raise InvalidInput(
            "Payment method must be cash, card, digital, or mixed.",
            {"field": "payment_method", "allowed": list(PAYMENT_METHODS)},
        )
    return method


def _ensure_dict(payload: Any) -> dict:
    if payload is None:
        return {}
    if not isinstance(payload, dict):
        raise InvalidInput("Invalid JSON payload")
    return payload


def parse_discount(discount_type: Any, discount_value: Any) -> DiscountSpec:
    dtype = DISCOUNT_NUMERICAL if discount_type in (None, "") else str(discount_type).strip().lower()
    if dtype not in DISCOUNT_TYPES:
        raise InvalidInput(
            "Discount type must be either percentage or numerical.",
            {"field": "discount_type", "allowed": list(DISCOUNT_TYPES)},
        )

    if discount_value is None:
        return NO_DISCOUNT

    if dtype == DISCOUNT_NUMERICAL:
        value = Decimal(_amount_cents("discount_value", discount_value))
    else:
        try:
            value = to_decimal(discount_value)
        except MoneyFormatError:
            raise InvalidInput("discount_value must be a number", {"field": "discount_value"})
        if value < 0:
            raise InvalidInput("discount_value cannot be negative", {"field": "discount_value"})
        if value.as_tuple().exponent < -2:
            raise InvalidInput(
                "Percentage discount can have at most two decimal places",
                {"field": "discount_value"},
            )
    return DiscountSpec(type=dtype, value=value)


def _items(payload: dict, empty_message: str) -> tuple[CheckoutItem, ...]:
    raw_items = _required(payload, "items")
    if not isinstance(raw_items, list) or not raw_items:
        raise InvalidInput(empty_message, {"field": "items"})

    items = []
    for i, raw in enumerate(raw_items):
        if not isinstance(raw, dict):
            raise InvalidInput("Items must be objects with product_id and quantity", {"field": f"items[{i}]"})
        product_id = _id(f"items[{i}].product_id", _required(raw, "product_id"))
        quantity = _positive_int(
            f"items[{i}].quantity",
            _required(raw, "quantity"),
            maximum=MAX_LINE_QUANTITY,
        )
        items.append(CheckoutItem(product_id=product_id, quantity=quantity))
    return tuple(items)


def parse_checkout_request(payload: Any) -> CheckoutRequest:
    """
    Validate a checkout payload into a CheckoutRequest.

    Only the shape of the request is checked here; product existence,
    stock and payment sufficiency are decided by the services.
    """
    payload = _ensure_dict(payload)
    items = _items(payload, "At least one item is required to create an order.")

    payment_method = _payment_method(_required(payload, "payment_method"))
    amount_paid_cents = _amount_cents("amount_paid_cents", _required(payload, "amount_paid_cents"))
    discount = parse_discount(payload.get("discount_type"), payload.get("discount_value"))

    customer_id = payload.get("customer_id")
    if customer_id is not None:
        customer_id = _id("customer_id", customer_id)

    notes = payload.get("notes")
    if notes is not None:
        notes = str(notes).strip() or None
        if notes and len(notes) > MAX_NOTES_LENGTH:
            raise InvalidInput(f"notes cannot exceed {MAX_NOTES_LENGTH} characters", {"field": "notes"})

    return CheckoutRequest(
        items=items,
        payment_method=payment_method,
        amount_paid_cents=amount_paid_cents,
        discount=discount,
        customer_id=customer_id,
        notes=notes,
    )


def parse_cart_backup(payload: Any) -> CartBackupRequest:
    """Shape check for a register cart being saved; prices and stock are not looked at."""
    payload = _ensure_dict(payload)
    items = _items(payload, "A saved cart needs at least one item.")

    method = payload.get("payment_method")
    customer_id = payload.get("customer_id")
    return CartBackupRequest(
        items=items,
        payment_method=_payment_method(method) if method is not None else "cash",
        discount=parse_discount(payload.get("discount_type"), payload.get("discount_value")),
        customer_id=_id("customer_id", customer_id) if customer_id is not None else None,
    )


def parse_search_term(args) -> str:
    term = (args.get("q") or "").strip()
    if len(term) > 100:
        raise InvalidInput("q cannot exceed 100 characters", {"field": "q"})
    return term


def parse_refund_request(payload: Any) -> RefundRequest:
    payload = _ensure_dict(payload)
    quantity = _positive_int("quantity", _required(payload, "quantity"), maximum=MAX_LINE_QUANTITY)
    return RefundRequest(quantity=quantity, reason=_reason(payload))


def parse_order_refund_reason(payload: Any) -> str:
    return _reason(_ensure_dict(payload))


def parse_cancel_reason(payload: Any) -> str | None:
    payload = _ensure_dict(payload)
    if payload.get("reason") is None:
        return None
    return _reason(payload)


def parse_completion_request(payload: Any) -> CompletionRequest:
    payload = _ensure_dict(payload)
    amount = payload.get("amount_paid_cents")
    method = payload.get("payment_method")
    return CompletionRequest(
        amount_paid_cents=_amount_cents("amount_paid_cents", amount) if amount is not None else None,
        payment_method=_payment_method(method) if method is not None else None,
    )


def parse_order_filters(args) -> OrderFilters:
    """Query-string filters for the order list; status "all" or "" means no filter."""
    status = (args.get("status") or "").strip().lower()
    if status in ("", "all"):
        status = None

    try:
        date_from = parse_iso_date(args.get("date_from"))
        date_to = parse_iso_date(args.get("date_to"))
    except ValueError:
        raise InvalidInput("date_from and date_to must be YYYY-MM-DD dates")

    search = (args.get("search") or "").strip() or None

    page_raw = args.get("page")
    page = _positive_int("page", page_raw, maximum=MAX_PAGE) if page_raw not in (None, "") else 1

    return OrderFilters(status=status, date_from=date_from, date_to=date_to, search=search, page=page)


def validate_refund_quantity(quantity: Any) -> int:
    return _positive_int("quantity", quantity, maximum=MAX_LINE_QUANTITY)


def validate_reason(reason: Any) -> str:
    return _reason({"reason": reason})
