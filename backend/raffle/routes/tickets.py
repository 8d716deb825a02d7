# Overview: Flask API routes for ticket issuance and ticket lookups.

# backend/raffle/routes/tickets.py
"""Ticket API routes with session and capability enforcement"""

from flask import Blueprint, request, jsonify, g, current_app

from ..services import ticket_service
from ..services import number_pool
from ..services.number_pool import PoolExhaustedError, TicketValidationError
from ..services.ticket_service import (
    CapacityExceededError,
    DuplicateNumberError,
    GenerationFailedError,
    InvalidSessionError,
    TicketError,
)
from ..decorators import require_auth, require_permission
from ..permissions import has_permission


tickets_bp = Blueprint("tickets", __name__, url_prefix="/api/tickets")


def _error(message: str, code: str, status: int, details: dict | None = None):
    body = {"error": message, "code": code}
    if details:
        body["details"] = details
    return jsonify(body), status


@tickets_bp.get("/used-numbers")
@require_auth
def used_numbers_route():
    """Numbers already claimed, for client-side candidate sampling."""
    used = sorted(number_pool.get_used_numbers())
    return jsonify({"used_numbers": used, "count": len(used)}), 200


@tickets_bp.post("")
@require_auth
@require_permission("ISSUE_TICKET")
def issue_ticket_route():
    """
    Issue a ticket for a buyer.

    Request body:
    {
        "buyer_name": "Ana",
        "buyer_phone_number": "+56 9 1234 5678",
        "payment_method": "efectivo",
        "numbers": [3, 417, 58, 990]     // optional
    }

    With "numbers" the quad is tried first; on a conflict the server
    resamples. Without it the server samples the numbers itself.
    """
    try:
        data = request.get_json(silent=True) or {}

        ticket = ticket_service.issue_ticket_with_retry(
            seller_id=g.current_seller.id,
            session_token=g.session_token,
            buyer_name=data.get("buyer_name"),
            buyer_phone_number=data.get("buyer_phone_number"),
            payment_method=data.get("payment_method"),
            initial_numbers=data.get("numbers"),
        )

        return jsonify({"ticket": ticket.to_dict()}), 201

    except TicketValidationError as e:
        return _error(str(e), "validation_error", 400, e.details)
    except InvalidSessionError as e:
        return _error(str(e), "invalid_session", 401)
    except CapacityExceededError as e:
        return _error(str(e), "capacity_exceeded", 409, e.details)
    except DuplicateNumberError as e:
        return _error(str(e), "duplicate_number", 409, e.details)
    except (GenerationFailedError, PoolExhaustedError) as e:
        return _error(str(e), "generation_failed", 503, e.details)
    except TicketError as e:
        return _error(str(e), "try_again", 503)
    except Exception:
        current_app.logger.exception("Failed to issue ticket")
        return jsonify({"error": "Internal server error, try again"}), 500


@tickets_bp.get("")
@require_auth
def list_tickets_route():
    """
    List tickets, newest first.

    Admins see every ticket and may filter by seller_id; sellers only see
    their own. Both may filter by payment_method.
    """
    seller = g.current_seller
    payment_method = request.args.get("payment_method") or None

    if has_permission(seller, "VIEW_ALL_TICKETS"):
        seller_id = request.args.get("seller_id", type=int)
    elif has_permission(seller, "VIEW_OWN_TICKETS"):
        seller_id = seller.id
    else:
        return jsonify({"error": "Permission denied"}), 403

    tickets = ticket_service.list_tickets(seller_id=seller_id, payment_method=payment_method)
    return jsonify({
        "tickets": [ticket.to_dict() for ticket in tickets],
        "count": len(tickets),
        "max_tickets": current_app.config["MAX_TICKETS"],
    }), 200


@tickets_bp.get("/<int:ticket_id>")
@require_auth
def get_ticket_route(ticket_id: int):
    ticket = ticket_service.get_ticket(ticket_id)
    if not ticket:
        return jsonify({"error": "Ticket not found"}), 404

    seller = g.current_seller
    if ticket.seller_id != seller.id and not has_permission(seller, "VIEW_ALL_TICKETS"):
        # Same answer as a missing ticket
        return jsonify({"error": "Ticket not found"}), 404

    return jsonify({"ticket": ticket.to_dict()}), 200


@tickets_bp.get("/by-number/<int:number>")
@require_auth
@require_permission("VIEW_ALL_TICKETS")
def ticket_by_number_route(number: int):
    if not number_pool.is_valid_number(number):
        return jsonify({"error": "Number must be between 0 and 999"}), 400

    ticket = ticket_service.get_ticket_by_number(number)
    if not ticket:
        return jsonify({"error": "No ticket holds that number"}), 404

    return jsonify({"ticket": ticket.to_dict()}), 200
