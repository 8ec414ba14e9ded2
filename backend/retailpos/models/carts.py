from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z


class CartBackup(db.Model):
    """
    Server-side copy of a cashier's in-progress cart.

    One row per user; saving again overwrites it. The payload is the cart
    as the register last sent it and is never priced or stock-checked here.
    A backup older than expires_at is treated as missing.
    """
    __tablename__ = "cart_backups"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, unique=True)

    payload = db.Column(db.JSON, nullable=False)
    item_count = db.Column(db.Integer, nullable=False, default=0)

    saved_at = db.Column(db.DateTime(timezone=True), nullable=False)
    expires_at = db.Column(db.DateTime(timezone=True), nullable=False)

    def __repr__(self) -> str:
        return f"<CartBackup user_id={self.user_id} items={self.item_count}>"

    def to_dict(self) -> dict:
        data = dict(self.payload or {})
        data["saved_at"] = to_utc_z(self.saved_at)
        data["user_id"] = self.user_id
        return data

    def info(self) -> dict:
        payload = self.payload or {}
        return {
            "item_count": self.item_count,
            "saved_at": to_utc_z(self.saved_at),
            "discount_value": payload.get("discount_value"),
            "payment_method": payload.get("payment_method"),
        }
