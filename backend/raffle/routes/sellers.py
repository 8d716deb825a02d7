# Overview: Flask API routes for the seller directory and sales statistics.

from flask import Blueprint, request, jsonify, current_app

from ..services import auth_service
from ..services import reporting_service
from ..decorators import require_auth, require_permission


sellers_bp = Blueprint("sellers", __name__, url_prefix="/api/sellers")


@sellers_bp.get("")
@require_auth
@require_permission("VIEW_SELLERS")
def list_sellers_route():
    try:
        sellers = auth_service.list_sellers()
        return jsonify({"sellers": [seller.to_dict() for seller in sellers]}), 200

    except Exception:
        current_app.logger.exception("Failed to list sellers")
        return jsonify({"error": "Internal server error"}), 500


@sellers_bp.get("/stats")
@require_auth
@require_permission("VIEW_STATS")
def seller_stats_route():
    """
    Tickets sold and amount collected per seller.

    Query params: seller_id, payment_method (both optional)
    """
    try:
        rows = reporting_service.seller_stats(
            seller_id=request.args.get("seller_id", type=int),
            payment_method=request.args.get("payment_method") or None,
        )
        return jsonify({
            "stats": rows,
            "tickets_sold": sum(row["tickets_sold"] for row in rows),
            "total_collected": sum(row["total_collected"] for row in rows),
        }), 200

    except Exception:
        current_app.logger.exception("Failed to compute seller stats")
        return jsonify({"error": "Internal server error"}), 500
