# Overview: Service-layer operations for seller sessions; token issue, check and revocation.

"""
Single-Active-Session Token Management

WHY: A seller may be logged in on exactly one device. The session is a
1:1 row on seller_sessions; issuing a new token overwrites that row, so any
token handed out earlier stops verifying. There is no separate session
server: the database row is the authority.

SECURITY FEATURES:
- Cryptographically secure random tokens (32 bytes)
- Tokens hashed with SHA-256 before storage (fast, one-way)
- Constant-time comparison on verification
- Revocable on logout
"""

import hashlib
import hmac
import secrets
from dataclasses import dataclass

from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import Seller, SellerSession
from raffle.time_utils import utcnow
from .concurrency import lock_for_update, run_with_retry


class SessionConflictError(Exception):
    """Raised when a seller already has an active session."""
    pass


@dataclass
class SessionContext:
    """Authenticated request context returned by resolve_session."""
    seller: Seller
    session: SellerSession


def generate_token() -> str:
    """
    Generate cryptographically secure random token.

    Returns 64-character hex string (32 bytes of entropy).
    This is the plaintext token sent to client (never stored).
    """
    return secrets.token_hex(32)


def hash_token(token: str) -> str:
    """Hash token for database storage using SHA-256."""
    return hashlib.sha256(token.encode('utf-8')).hexdigest()


def has_active_session(seller_id: int) -> bool:
    return db.session.query(SellerSession.id).filter_by(seller_id=seller_id).first() is not None


def open_session(
    seller_id: int,
    user_agent: str | None = None,
    ip_address: str | None = None,
) -> tuple[SellerSession, str]:
    """
    Create the session for a LoggedOut seller.

    Returns (session_record, plaintext_token).

    Raises SessionConflictError if the seller already has a session,
    including one committed concurrently by another login (the unique
    seller_id constraint turns that race into an IntegrityError).
    """
    if has_active_session(seller_id):
        raise SessionConflictError("Seller already has an active session")

    plaintext_token = generate_token()
    session = SellerSession(
        seller_id=seller_id,
        token_hash=hash_token(plaintext_token),
        issued_at=utcnow(),
        user_agent=user_agent,
        ip_address=ip_address,
    )
    db.session.add(session)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise SessionConflictError("Seller already has an active session")

    return session, plaintext_token


def replace_session(
    seller_id: int,
    user_agent: str | None = None,
    ip_address: str | None = None,
) -> tuple[SellerSession, str]:
    """
    Unconditionally issue a new token for the seller, overwriting any
    existing session. Last writer wins when two of these race.

    Returns (session_record, plaintext_token).
    """
    def _op() -> tuple[SellerSession, str]:
        # Second pass only happens when a concurrent insert beat us to the row
        for attempt in range(2):
            plaintext_token = generate_token()
            now = utcnow()

            session = lock_for_update(
                db.session.query(SellerSession).filter_by(seller_id=seller_id)
            ).first()

            if session:
                session.token_hash = hash_token(plaintext_token)
                session.issued_at = now
                session.user_agent = user_agent
                session.ip_address = ip_address
            else:
                session = SellerSession(
                    seller_id=seller_id,
                    token_hash=hash_token(plaintext_token),
                    issued_at=now,
                    user_agent=user_agent,
                    ip_address=ip_address,
                )
                db.session.add(session)

            try:
                db.session.commit()
                return session, plaintext_token
            except IntegrityError:
                db.session.rollback()
                if attempt:
                    raise

    return run_with_retry(_op)


def verify_session(seller_id: int, token: str | None) -> bool:
    """
    True iff `token` is the seller's current session token.

    Never commits: when called inside an open transaction (ticket issuance)
    the check is part of that transaction.
    """
    if not token:
        return False

    stored_hash = (
        db.session.query(SellerSession.token_hash)
        .filter_by(seller_id=seller_id)
        .scalar()
    )
    if stored_hash is None:
        return False

    return hmac.compare_digest(stored_hash, hash_token(token))


def resolve_session(token: str | None) -> SessionContext | None:
    """
    Map a bearer token to its seller.

    Returns None if the token is unknown, i.e. never issued, logged out, or
    replaced by a newer login.
    """
    if not token:
        return None

    session = db.session.query(SellerSession).filter_by(token_hash=hash_token(token)).first()
    if not session or not session.seller:
        return None

    return SessionContext(seller=session.seller, session=session)


def clear_session(seller_id: int) -> bool:
    """
    Log the seller out.

    Returns True if a session was removed, False if already LoggedOut.
    """
    deleted = db.session.query(SellerSession).filter_by(seller_id=seller_id).delete()
    db.session.commit()
    return deleted > 0
