# Overview: Service-layer operations for acting users.

from __future__ import annotations

from ..errors import InvalidInput
from ..extensions import db
from ..models import User


def get_active_user(user_id: int) -> User | None:
    user = db.session.get(User, user_id)
    if user is None or not user.is_active:
        return None
    return user


def create_user(username: str, name: str) -> User:
    username = (username or "").strip()
    name = (name or "").strip()
    if not username or not name:
        raise InvalidInput("username and name are required")
    if db.session.query(User).filter_by(username=username).first():
        raise InvalidInput(f"Username {username!r} already exists")

    user = User(username=username, name=name, is_active=True)
    db.session.add(user)
    db.session.commit()
    return user
