# Overview: Service-layer operations for seller authentication; credentials and login outcomes.

"""
Seller Authentication Service

WHY: Every ticket must be attributable to an authenticated seller. Uses
bcrypt for salted password hashing; tokens are handled by session_service.

Login has three outcomes:
- invalid_credentials: unknown name or wrong password
- session_active:      credentials correct, but the seller is logged in
                       elsewhere; the client must confirm and call force_login
- success:             credentials correct, no session; a new token is issued

SECURITY NOTES:
- Passwords hashed with bcrypt (cost factor from BCRYPT_ROUNDS, default 12)
- Minimum 8 characters with at least one letter and one digit
- Unknown names still pay for one bcrypt check so timing does not reveal
  which names exist
"""

import re
from dataclasses import dataclass
from functools import lru_cache

import bcrypt
from flask import current_app

from ..extensions import db
from ..models import Seller
from ..permissions import ROLES, ROLE_SELLER
from . import session_service
from .session_service import SessionConflictError


LOGIN_INVALID_CREDENTIALS = "invalid_credentials"
LOGIN_SESSION_ACTIVE = "session_active"
LOGIN_SUCCESS = "success"

# bcrypt only looks at the first 72 bytes
MAX_PASSWORD_BYTES = 72


class PasswordValidationError(Exception):
    """Raised when password doesn't meet strength requirements."""
    pass


@dataclass
class LoginResult:
    status: str
    seller: Seller | None = None
    token: str | None = None

    def to_dict(self) -> dict:
        data = {"status": self.status}
        if self.seller is not None:
            data["seller"] = self.seller.to_dict()
        if self.token is not None:
            data["token"] = self.token
        return data


def validate_password_strength(password: str) -> None:
    """
    Validate password meets strength requirements.

    Requirements:
    - Minimum 8 characters
    - At most 72 bytes once encoded
    - At least one letter
    - At least one digit

    Raises PasswordValidationError if requirements not met.
    """
    if len(password) < 8:
        raise PasswordValidationError("Password must be at least 8 characters long")

    if len(password.encode('utf-8')) > MAX_PASSWORD_BYTES:
        raise PasswordValidationError("Password must be at most 72 bytes long")

    if not re.search(r'[A-Za-z]', password):
        raise PasswordValidationError("Password must contain at least one letter")

    if not re.search(r'\d', password):
        raise PasswordValidationError("Password must contain at least one digit")


def _bcrypt_rounds() -> int:
    return current_app.config.get("BCRYPT_ROUNDS", 12)


def hash_password(password: str) -> str:
    """
    Hash password using bcrypt.

    Password is validated for strength before hashing.
    """
    validate_password_strength(password)
    salt = bcrypt.gensalt(rounds=_bcrypt_rounds())
    hashed = bcrypt.hashpw(password.encode('utf-8'), salt)
    return hashed.decode('utf-8')  # Store as string in database


def verify_password(password: str, password_hash: str) -> bool:
    """
    Verify password against bcrypt hash.

    bcrypt.checkpw() compares in constant time.
    """
    try:
        return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))
    except ValueError:
        # Malformed hash or oversized password
        return False


@lru_cache(maxsize=1)
def _dummy_hash() -> str:
    return bcrypt.hashpw(b"not-a-real-password-0", bcrypt.gensalt(rounds=_bcrypt_rounds())).decode('utf-8')


def create_seller(name: str, username: str, password: str, role: str = ROLE_SELLER) -> Seller:
    """
    Create a seller with a bcrypt password hash.

    Raises:
        ValueError: If role is unknown or name/username is taken
        PasswordValidationError: If password doesn't meet requirements
    """
    name = (name or "").strip()
    username = (username or "").strip()
    if not name or not username:
        raise ValueError("name and username are required")

    if role not in ROLES:
        raise ValueError(f"Unknown role: {role}")

    existing = db.session.query(Seller).filter(
        db.or_(Seller.name == name, Seller.username == username)
    ).first()
    if existing:
        raise ValueError("A seller with that name or username already exists")

    seller = Seller(
        name=name,
        username=username,
        password_hash=hash_password(password),
        role=role,
    )
    db.session.add(seller)
    db.session.commit()
    return seller


def authenticate(identifier: str, password: str) -> Seller | None:
    """
    Check credentials. `identifier` matches either the seller's display name
    or their username.

    Returns Seller if credentials valid, None otherwise. Does not touch sessions.
    """
    seller = db.session.query(Seller).filter(
        db.or_(Seller.name == identifier, Seller.username == identifier)
    ).first()

    if not seller:
        verify_password(password, _dummy_hash())
        return None

    if verify_password(password, seller.password_hash):
        return seller

    return None


def validate_credentials(
    identifier: str,
    password: str,
    user_agent: str | None = None,
    ip_address: str | None = None,
) -> LoginResult:
    """
    Log a seller in, unless they are already logged in somewhere else.

    This is the only path that moves a seller from LoggedOut to LoggedIn
    without confirmation.
    """
    seller = authenticate(identifier, password)
    if not seller:
        return LoginResult(status=LOGIN_INVALID_CREDENTIALS)

    try:
        _, token = session_service.open_session(
            seller.id,
            user_agent=user_agent,
            ip_address=ip_address,
        )
    except SessionConflictError:
        return LoginResult(status=LOGIN_SESSION_ACTIVE, seller=seller)

    return LoginResult(status=LOGIN_SUCCESS, seller=seller, token=token)


def force_login(
    seller_id: int,
    user_agent: str | None = None,
    ip_address: str | None = None,
) -> LoginResult:
    """
    Issue a fresh token for the seller, overwriting any existing session.

    This is how the session_active confirmation resolves: the device that
    held the old token is logged out on its next verification.

    Raises ValueError if the seller does not exist.
    """
    seller = db.session.get(Seller, seller_id)
    if not seller:
        raise ValueError("Seller not found")

    _, token = session_service.replace_session(
        seller.id,
        user_agent=user_agent,
        ip_address=ip_address,
    )
    return LoginResult(status=LOGIN_SUCCESS, seller=seller, token=token)


def logout(seller_id: int) -> bool:
    """Explicit logout. Returns False if the seller had no session."""
    return session_service.clear_session(seller_id)


def list_sellers() -> list[Seller]:
    return db.session.query(Seller).order_by(Seller.name.asc()).all()
