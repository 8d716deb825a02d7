# Overview: Flask API routes for seller login, forced login, logout and session checks.

# backend/raffle/routes/auth.py
"""
Authentication API routes

Login has a confirmation branch: when the seller is already logged in on
another device the response is {"status": "session_active"} and nothing
changes. The client confirms by calling /force-login with the same
credentials, which replaces the old session.
"""

from flask import Blueprint, request, jsonify, current_app, g

from ..services import auth_service
from ..services import session_service
from ..services.auth_service import LOGIN_INVALID_CREDENTIALS
from ..decorators import require_auth


auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


def _credentials():
    data = request.get_json(silent=True) or {}
    identifier = data.get("name") or data.get("username")
    password = data.get("password")
    # Non-string values are treated as missing (400)
    if not isinstance(identifier, str) or not isinstance(password, str):
        return None, None
    return identifier, password


@auth_bp.post("/login")
def login_route():
    """
    Check credentials and open a session if the seller has none.

    Returns:
    - 200 {"status": "success", "seller": {...}, "token": "..."}
    - 200 {"status": "session_active", "seller": {...}} (confirmation needed)
    - 401 {"status": "invalid_credentials"}
    """
    try:
        identifier, password = _credentials()
        if not all([identifier, password]):
            return jsonify({"error": "name and password required"}), 400

        result = auth_service.validate_credentials(
            identifier,
            password,
            user_agent=request.headers.get("User-Agent"),
            ip_address=request.remote_addr,
        )

        if result.status == LOGIN_INVALID_CREDENTIALS:
            return jsonify({**result.to_dict(), "error": "Invalid credentials"}), 401

        return jsonify(result.to_dict()), 200

    except Exception:
        current_app.logger.exception("Failed to login seller")
        return jsonify({"error": "Internal server error"}), 500


@auth_bp.post("/force-login")
def force_login_route():
    """
    Confirm a login over an active session.

    Credentials are checked again; on success the previous session is
    replaced and its token stops working.
    """
    try:
        identifier, password = _credentials()
        if not all([identifier, password]):
            return jsonify({"error": "name and password required"}), 400

        seller = auth_service.authenticate(identifier, password)
        if not seller:
            return jsonify({"status": LOGIN_INVALID_CREDENTIALS, "error": "Invalid credentials"}), 401

        result = auth_service.force_login(
            seller.id,
            user_agent=request.headers.get("User-Agent"),
            ip_address=request.remote_addr,
        )
        return jsonify(result.to_dict()), 200

    except Exception:
        current_app.logger.exception("Failed to force login seller")
        return jsonify({"error": "Internal server error"}), 500


@auth_bp.post("/logout")
@require_auth
def logout_route():
    """Clear the current seller's session."""
    try:
        auth_service.logout(g.current_seller.id)
        return jsonify({"message": "Logout successful"}), 200

    except Exception:
        current_app.logger.exception("Failed to logout seller")
        return jsonify({"error": "Internal server error"}), 500


@auth_bp.post("/verify")
def verify_route():
    """
    Check whether a (seller_id, token) pair is still the active session.

    Request body: {"seller_id": 1, "token": "..."}
    Returns {"valid": true/false}. A false answer means this device was
    logged out, possibly by a login elsewhere.
    """
    try:
        data = request.get_json(silent=True) or {}
        seller_id = data.get("seller_id")
        token = data.get("token")

        if not isinstance(seller_id, int) or isinstance(seller_id, bool):
            return jsonify({"error": "seller_id must be an integer"}), 400

        valid = session_service.verify_session(seller_id, token)
        return jsonify({"valid": valid}), 200

    except Exception:
        current_app.logger.exception("Failed to verify session")
        return jsonify({"error": "Internal server error"}), 500


@auth_bp.get("/me")
@require_auth
def me_route():
    """The authenticated seller's public info."""
    return jsonify({"seller": g.current_seller.to_dict()}), 200
