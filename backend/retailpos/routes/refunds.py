# Overview: Flask API route for partial refunds of a single order line.

from flask import Blueprint, current_app, jsonify, request

from ..decorators import require_actor
from ..errors import OrderError
from ..services import refund_service
from ..validation import parse_refund_request

refunds_bp = Blueprint("refunds", __name__, url_prefix="/api/order-items")


@refunds_bp.post("/<int:line_item_id>/refund")
@require_actor
def refund_item_route(line_item_id: int, actor_id: int):
    """
    Request body:
    {
        "quantity": 1,
        "reason": "Damaged packaging"
    }

    Returns:
        200: Refund recorded; order status is refunded once nothing remains
        400: InvalidInput
        404: Line item not found
        409: RefundExceedsRemaining (max_refundable_quantity in details)
    """
    try:
        refund = parse_refund_request(request.get_json(silent=True))
        result = refund_service.refund_item(line_item_id, refund.quantity, refund.reason, actor_id)
        return jsonify(result.to_dict()), 200

    except OrderError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to refund order item")
        return jsonify({"error": "Internal server error"}), 500
