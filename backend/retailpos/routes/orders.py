# Overview: Flask API routes for orders; listing, detail, completion, cancellation and refunds.

from flask import Blueprint, current_app, jsonify, request

from ..decorators import require_actor
from ..errors import OrderError
from ..services import order_service, refund_service
from ..validation import (
    parse_cancel_reason,
    parse_completion_request,
    parse_order_filters,
    parse_order_refund_reason,
)

orders_bp = Blueprint("orders", __name__, url_prefix="/api/orders")


# =============================================================================
# QUERIES
# =============================================================================

@orders_bp.get("")
@require_actor
def list_orders_route(actor_id: int):
    """
    Query params: status (pending|completed|cancelled|refunded|all),
    date_from, date_to (YYYY-MM-DD), search, page.
    """
    try:
        filters = parse_order_filters(request.args)
        result = order_service.list_orders(filters)
        return jsonify({
            "orders": [order.to_dict() for order in result["orders"]],
            "total": result["total"],
            "page": result["page"],
            "per_page": result["per_page"],
            "pages": result["pages"],
            "stats": order_service.order_stats(),
        }), 200

    except OrderError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to list orders")
        return jsonify({"error": "Internal server error"}), 500


@orders_bp.get("/<int:order_id>")
@require_actor
def get_order_route(order_id: int, actor_id: int):
    try:
        order = order_service.get_order(order_id)
        return jsonify({
            "order": order.to_dict(include_items=True),
            "refund_summary": order.refund_summary(),
        }), 200

    except OrderError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to get order")
        return jsonify({"error": "Internal server error"}), 500


@orders_bp.get("/<int:order_id>/refund-history")
@require_actor
def refund_history_route(order_id: int, actor_id: int):
    try:
        return jsonify(refund_service.get_refund_history(order_id)), 200

    except OrderError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to get refund history")
        return jsonify({"error": "Internal server error"}), 500


# =============================================================================
# LIFECYCLE
# =============================================================================

@orders_bp.post("/<int:order_id>/complete")
@require_actor
def complete_order_route(order_id: int, actor_id: int):
    """
    Retry completion of a pending order.

    Request body (optional):
    {
        "amount_paid_cents": 2500,
        "payment_method": "card"
    }

    Returns:
        200: Order completed
        402: PaymentInsufficient
        409: InsufficientStock or order not pending
    """
    try:
        completion = parse_completion_request(request.get_json(silent=True))
        order = order_service.complete_order(
            order_id,
            actor_id,
            amount_paid_cents=completion.amount_paid_cents,
            payment_method=completion.payment_method,
        )
        return jsonify({"order": order.to_dict(include_items=True)}), 200

    except OrderError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to complete order")
        return jsonify({"error": "Internal server error"}), 500


@orders_bp.post("/<int:order_id>/cancel")
@require_actor
def cancel_order_route(order_id: int, actor_id: int):
    """
    Request body (optional):
    {
        "reason": "Customer walked away"
    }
    """
    try:
        reason = parse_cancel_reason(request.get_json(silent=True))
        order = order_service.cancel_order(order_id, actor_id, reason)
        return jsonify({"order": order.to_dict()}), 200

    except OrderError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to cancel order")
        return jsonify({"error": "Internal server error"}), 500


@orders_bp.post("/<int:order_id>/refund")
@require_actor
def refund_order_route(order_id: int, actor_id: int):
    """
    Refund every remaining unit of a completed order.

    Request body:
    {
        "reason": "Wrong items rung up"
    }

    Returns:
        200: Order refunded
        400: reason missing
        409: Order not completed or nothing left to refund
    """
    try:
        reason = parse_order_refund_reason(request.get_json(silent=True))
        result = refund_service.refund_order(order_id, reason, actor_id)
        return jsonify(result.to_dict()), 200

    except OrderError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to refund order")
        return jsonify({"error": "Internal server error"}), 500
