# Overview: Flask API routes for the register: product lookup and cart backups.

from flask import Blueprint, current_app, jsonify, request

from ..decorators import require_actor
from ..errors import OrderError
from ..services import cart_service, products_service
from ..time_utils import to_utc_z
from ..validation import parse_cart_backup, parse_search_term

pos_bp = Blueprint("pos", __name__, url_prefix="/api/pos")


@pos_bp.get("/products/search")
@require_actor
def search_products_route(actor_id: int):
    """Query params: q (matched against name, SKU and barcode)."""
    try:
        term = parse_search_term(request.args)
        limit = current_app.config.get("PRODUCT_SEARCH_LIMIT", 20)
        products = products_service.search_products(term, limit=limit)
        return jsonify({"products": [p.to_search_dict() for p in products]}), 200

    except OrderError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to search products")
        return jsonify({"error": "Internal server error"}), 500


# =============================================================================
# CART BACKUP
# =============================================================================

@pos_bp.post("/save-cart")
@require_actor
def save_cart_route(actor_id: int):
    """
    Request body:
    {
        "items": [{"product_id": 1, "quantity": 2}],
        "payment_method": "cash",                 // optional
        "discount_type": "percentage",            // optional
        "discount_value": "10",                   // optional
        "customer_id": 3                          // optional
    }
    """
    try:
        cart = parse_cart_backup(request.get_json(silent=True))
        backup = cart_service.save_cart(cart, actor_id)
        return jsonify({
            "success": True,
            "message": "Cart saved successfully",
            "saved_at": to_utc_z(backup.saved_at),
        }), 200

    except OrderError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to back up cart")
        return jsonify({"error": "Internal server error"}), 500


@pos_bp.get("/restore-cart")
@require_actor
def restore_cart_route(actor_id: int):
    try:
        data = cart_service.restore_cart(actor_id)
        if data is None:
            return jsonify({"success": False, "message": "No saved cart found", "data": None}), 200
        return jsonify({"success": True, "message": "Cart restored successfully", "data": data}), 200

    except Exception:
        current_app.logger.exception("Failed to restore cart")
        return jsonify({"error": "Internal server error"}), 500


@pos_bp.delete("/clear-cart")
@require_actor
def clear_cart_route(actor_id: int):
    try:
        cart_service.clear_cart(actor_id)
        return jsonify({"success": True, "message": "Saved cart cleared successfully"}), 200

    except Exception:
        current_app.logger.exception("Failed to clear cart backup")
        return jsonify({"error": "Internal server error"}), 500


@pos_bp.get("/cart-info")
@require_actor
def cart_info_route(actor_id: int):
    try:
        return jsonify({"success": True, **cart_service.cart_info(actor_id)}), 200

    except Exception:
        current_app.logger.exception("Failed to get cart backup info")
        return jsonify({"error": "Internal server error"}), 500
