# Overview: Flask API routes for prizes, the draw and winners.

from flask import Blueprint, request, jsonify, current_app

from ..services import prize_service
from ..services.prize_service import PrizeError, PrizeNotFoundError
from ..decorators import require_auth, require_permission


prizes_bp = Blueprint("prizes", __name__, url_prefix="/api/prizes")


@prizes_bp.get("")
def list_prizes_route():
    """Prizes in order. Seeds the default prizes on first use."""
    try:
        prizes = prize_service.list_prizes()
        return jsonify({"prizes": [prize.to_dict() for prize in prizes]}), 200

    except Exception:
        current_app.logger.exception("Failed to list prizes")
        return jsonify({"error": "Internal server error"}), 500


@prizes_bp.get("/winners")
def list_winners_route():
    """Every prize with its winner, if drawn and sold."""
    try:
        winners = prize_service.list_winners()
        return jsonify({
            "winners": [winner.to_dict() for winner in winners],
            "drawing_date": current_app.config["DRAWING_DATE"],
        }), 200

    except Exception:
        current_app.logger.exception("Failed to list winners")
        return jsonify({"error": "Internal server error"}), 500


@prizes_bp.put("/<int:prize_id>")
@require_auth
@require_permission("MANAGE_PRIZES")
def update_prize_route(prize_id: int):
    """
    Update a prize's title and image.

    Request body: {"title": "...", "image_url": "..."}
    """
    try:
        data = request.get_json(silent=True) or {}
        prize = prize_service.update_prize(prize_id, data.get("title"), data.get("image_url"))
        return jsonify({"prize": prize.to_dict()}), 200

    except PrizeNotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except PrizeError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to update prize")
        return jsonify({"error": "Internal server error"}), 500


@prizes_bp.put("/<int:prize_id>/winning-number")
@require_auth
@require_permission("SET_WINNING_NUMBER")
def set_winning_number_route(prize_id: int):
    """
    Set or clear the winning number.

    Request body: {"winning_number": 417} or {"winning_number": null}
    """
    try:
        data = request.get_json(silent=True) or {}
        if "winning_number" not in data:
            return jsonify({"error": "winning_number required (null clears it)"}), 400

        prize = prize_service.set_winning_number(prize_id, data["winning_number"])
        return jsonify({"prize": prize.to_dict()}), 200

    except PrizeNotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except PrizeError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to set winning number")
        return jsonify({"error": "Internal server error"}), 500


@prizes_bp.get("/<int:prize_id>/winner")
def resolve_winner_route(prize_id: int):
    """
    Who holds the winning number of this prize.

    status "not_drawn" and "not_found" are normal answers (200), not errors.
    """
    try:
        resolution = prize_service.resolve_winner(prize_id)
        return jsonify(resolution.to_dict()), 200

    except PrizeNotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to resolve winner")
        return jsonify({"error": "Internal server error"}), 500
