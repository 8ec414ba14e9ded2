# Overview: Transaction scoping and row locking shared by the write paths.

from __future__ import annotations

from contextlib import contextmanager

from sqlalchemy import text

from ..extensions import db


def lock_for_update(query):
    """
    Apply row-level locking for critical operations.

    NOTE: SQLite ignores SELECT ... FOR UPDATE; write_transaction() takes the
    database write lock up front there instead.
    """
    return query.with_for_update()


def _sqlite_in_transaction() -> bool:
    dbapi_conn = db.session.connection().connection.driver_connection
    return bool(getattr(dbapi_conn, "in_transaction", False))


@contextmanager
def write_transaction():
    """
    Run a block as one all-or-nothing database transaction.

    Commits when the block finishes, rolls back on any exception (domain
    errors included) and re-raises. On SQLite the transaction starts with
    BEGIN IMMEDIATE so concurrent writers queue on the database lock instead
    of reading stale rows. Nothing is retried; callers resubmit.
    """
    if db.engine.dialect.name == "sqlite" and not _sqlite_in_transaction():
        db.session.execute(text("BEGIN IMMEDIATE"))
    try:
        yield db.session
        db.session.commit()
    except BaseException:
        db.session.rollback()
        raise
