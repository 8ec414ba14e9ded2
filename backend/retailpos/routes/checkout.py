# Overview: Flask API route for checkout; parses the cart and returns the completed order.

from flask import Blueprint, current_app, jsonify, request

from ..decorators import require_actor
from ..errors import OrderError
from ..services import checkout_service
from ..validation import parse_checkout_request

checkout_bp = Blueprint("checkout", __name__, url_prefix="/api/checkout")


@checkout_bp.post("")
@require_actor
def checkout_route(actor_id: int):
    """
    Ring up a cart.

    Request body:
    {
        "items": [{"product_id": 1, "quantity": 2}],
        "customer_id": 7,               (optional)
        "payment_method": "cash",
        "amount_paid_cents": 2000,
        "discount_type": "percentage",  (optional: percentage | numerical)
        "discount_value": "10",         (optional: percent, or cents when numerical)
        "notes": "..."                  (optional)
    }

    Returns:
        201: Order completed
        400: InvalidInput
        402: PaymentInsufficient (order left pending, id in details)
        409: InsufficientStock (order left pending, id in details)
    """
    try:
        checkout_request = parse_checkout_request(request.get_json(silent=True))
        order = checkout_service.checkout(checkout_request, actor_id)
        return jsonify({"order": order.to_dict(include_items=True)}), 201

    except OrderError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Checkout failed")
        return jsonify({"error": "Internal server error"}), 500
