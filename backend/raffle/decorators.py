# Overview: Request decorators for API routes (authentication and capabilities).

from functools import wraps
from flask import request, jsonify, g

from .services import session_service
from .permissions import has_permission


def bearer_token() -> str | None:
    """Token from the Authorization header, or None."""
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith("Bearer "):
        return None
    return auth_header.split(" ", 1)[1].strip() or None


def _is_authenticated() -> bool:
    return hasattr(g, 'current_seller')


def require_auth(f):
    """
    Require a valid seller session.

    Sets the following Flask g attributes:
    - g.current_seller: The authenticated Seller
    - g.session_token: The plaintext bearer token (re-checked by issuance)

    Returns 401 with code "invalid_session" when the token is missing,
    logged out, or replaced by a newer login; the client must log in again.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        token = bearer_token()
        if not token:
            return jsonify({"error": "Authentication required", "code": "invalid_session"}), 401

        context = session_service.resolve_session(token)
        if not context:
            return jsonify({"error": "Invalid or expired token", "code": "invalid_session"}), 401

        g.current_seller = context.seller
        g.session_token = token

        return f(*args, **kwargs)

    return decorated_function


def require_permission(permission_code: str):
    """Require a capability of the authenticated seller's role."""
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            # Ensure @require_auth was called first
            if not _is_authenticated():
                return jsonify({"error": "Authentication required", "code": "invalid_session"}), 401

            if not has_permission(g.current_seller, permission_code):
                return jsonify({
                    "error": "Permission denied",
                    "required_permission": permission_code,
                }), 403

            return f(*args, **kwargs)

        return decorated_function
    return decorator
