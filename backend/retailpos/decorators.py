# Overview: Request decorators for API routes.

from functools import wraps

from flask import jsonify, request

from .services import user_service

ACTOR_HEADER = "X-Actor-Id"


def require_actor(f):
    """
    Resolve the acting user from the X-Actor-Id header.

    There is no login; the till sends the id of the cashier operating it.
    The route receives it as the `actor_id` keyword argument.

    Returns 401 if:
    - No X-Actor-Id header
    - Header is not an integer id
    - User unknown or deactivated
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        raw = (request.headers.get(ACTOR_HEADER) or "").strip()
        if not raw:
            return jsonify({"error": "Actor required", "code": "ActorRequired"}), 401

        if not raw.isdigit():
            return jsonify({"error": "Invalid actor id", "code": "ActorRequired"}), 401

        user = user_service.get_active_user(int(raw))
        if user is None:
            return jsonify({"error": "Unknown or inactive actor", "code": "ActorRequired"}), 401

        return f(*args, actor_id=user.id, **kwargs)

    return decorated_function
