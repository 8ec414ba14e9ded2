# Overview: Domain error taxonomy shared by services and routes.

"""
Order domain errors.

Every error carries a human readable message plus a `details` dict with the
structured facts a caller needs to correct and resubmit (shortfall, maximum
refundable quantity, offending products). None of them are fatal: services
raise them before or inside a transaction that is rolled back.
"""


class OrderError(Exception):
    """Base class for recoverable order/checkout failures."""
    status_code = 400

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}

    @property
    def code(self) -> str:
        return type(self).__name__

    def to_dict(self) -> dict:
        return {"error": str(self), "code": self.code, "details": self.details}


class InvalidInput(OrderError):
    """Malformed quantities, prices, ids or payloads. Rejected before any mutation."""
    status_code = 400


class OrderNotFound(OrderError):
    status_code = 404


class InvalidTransition(OrderError):
    """Order lifecycle guard failed (wrong status, empty cart, nothing left to refund)."""
    status_code = 409


class InsufficientStock(OrderError):
    status_code = 409


class PaymentInsufficient(OrderError):
    status_code = 402


class RefundExceedsRemaining(OrderError):
    status_code = 409
