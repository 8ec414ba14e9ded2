# Overview: Service-layer operations for server-side backups of register carts.

from __future__ import annotations

from datetime import timedelta

from flask import current_app

from ..extensions import db
from ..models import CartBackup
from ..time_utils import to_utc_z, utcnow
from ..validation import CartBackupRequest
from .concurrency import write_transaction


def _live_backup(actor_id: int) -> CartBackup | None:
    return (
        db.session.query(CartBackup)
        .filter(CartBackup.user_id == actor_id, CartBackup.expires_at > utcnow())
        .first()
    )


def save_cart(request: CartBackupRequest, actor_id: int) -> CartBackup:
    """Store the cart for this user, replacing any earlier backup."""
    now = utcnow()
    ttl = timedelta(hours=current_app.config.get("CART_BACKUP_TTL_HOURS", 24))

    with write_transaction():
        backup = db.session.query(CartBackup).filter_by(user_id=actor_id).first()
        if backup is None:
            backup = CartBackup(user_id=actor_id)
            db.session.add(backup)
        backup.payload = request.to_payload()
        backup.item_count = len(request.items)
        backup.saved_at = now
        backup.expires_at = now + ttl

    current_app.logger.info(
        "Cart backed up for user %s (%s items)", actor_id, backup.item_count,
    )
    return backup


def restore_cart(actor_id: int) -> dict | None:
    backup = _live_backup(actor_id)
    return backup.to_dict() if backup is not None else None


def clear_cart(actor_id: int) -> bool:
    """Delete the user's backup; returns False when there was none."""
    with write_transaction():
        deleted = db.session.query(CartBackup).filter_by(user_id=actor_id).delete()
    if deleted:
        current_app.logger.info("Cart backup cleared for user %s", actor_id)
    return bool(deleted)


def cart_info(actor_id: int) -> dict:
    backup = _live_backup(actor_id)
    if backup is None:
        return {"has_backup": False, "info": None}
    info = backup.info()
    info["expires_at"] = to_utc_z(backup.expires_at)
    return {"has_backup": True, "info": info}
