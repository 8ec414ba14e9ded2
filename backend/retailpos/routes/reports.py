from flask import Blueprint, current_app, jsonify

from ..decorators import require_actor
from ..services import reporting_service


reports_bp = Blueprint("reports", __name__, url_prefix="/api/reports")


@reports_bp.get("/dashboard")
@require_actor
def dashboard_report(actor_id: int):
    try:
        return jsonify(reporting_service.dashboard()), 200
    except Exception:
        current_app.logger.exception("Failed to build dashboard")
        return jsonify({"error": "Internal server error"}), 500
