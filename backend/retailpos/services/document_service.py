# Overview: Service-layer operations for document numbering.

from __future__ import annotations

from datetime import date

from sqlalchemy import update

from ..extensions import db
from ..models import DocumentSequence
from ..time_utils import utcnow


class DocumentSequenceError(Exception):
    """Raised when document sequence operations fail."""


def _allocate(document_type: str, period: str) -> int:
    stmt = (
        update(DocumentSequence)
        .where(
            DocumentSequence.document_type == document_type,
            DocumentSequence.period == period,
        )
        .values(next_number=DocumentSequence.next_number + 1)
    )

    def _read_allocated() -> int:
        current = (
            db.session.query(DocumentSequence.next_number)
            .filter_by(document_type=document_type, period=period)
            .scalar()
        )
        return current - 1

    result = db.session.execute(stmt)
    if result.rowcount:
        return _read_allocated()

    # First number of the period. A concurrent first insert fails on the unique
    # constraint and rolls back with the caller's transaction.
    db.session.add(DocumentSequence(document_type=document_type, period=period, next_number=2))
    db.session.flush()
    return 1


def next_order_number(prefix: str = "ORD", on_date: date | None = None, pad: int = 4) -> str:
    """
    Allocate the next order number for the day, e.g. "ORD-20261019-0007".

    Runs inside the caller's transaction, so a rolled back checkout gives its
    number back.
    """
    if not prefix:
        raise DocumentSequenceError("prefix is required")
    day = on_date or utcnow().date()
    period = day.strftime("%Y%m%d")
    number = _allocate("ORDER", period)
    return f"{prefix}-{period}-{number:0{pad}d}"
