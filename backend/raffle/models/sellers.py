from __future__ import annotations

from ..extensions import db
from raffle.time_utils import to_utc_z


class Seller(db.Model):
    """
    Raffle sellers (and the admin who runs the draw).

    WHY: Every ticket must be attributable to the seller who issued it.
    Role is a closed set ("seller" | "admin"); capabilities per role live in
    raffle/permissions.py.
    """
    __tablename__ = "sellers"
    __table_args__ = (
        db.UniqueConstraint("name", name="uq_sellers_name"),
        db.UniqueConstraint("username", name="uq_sellers_username"),
        db.CheckConstraint("role IN ('seller', 'admin')", name="ck_sellers_role"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    # Display name; also accepted as the login identifier
    name = db.Column(db.String(120), nullable=False)
    username = db.Column(db.String(64), nullable=False, index=True)

    # Bcrypt hashed password
    password_hash = db.Column(db.String(255), nullable=False)

    role = db.Column(db.String(16), nullable=False, default="seller")

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def to_dict(self) -> dict:
        # Public view: never expose password hash or session token
        return {
            "id": self.id,
            "name": self.name,
            "username": self.username,
            "role": self.role,
            "created_at": to_utc_z(self.created_at),
        }


class SellerSession(db.Model):
    """
    The single active session of a seller.

    One row per seller at most (unique seller_id): a row means LoggedIn,
    no row means LoggedOut. Issuing a new token overwrites the row, which
    is what invalidates whatever device held the previous token.

    SECURITY NOTES:
    - Only the SHA-256 hash of the token is stored
    - Tokens are 32 random bytes (64 hex chars)
    """
    __tablename__ = "seller_sessions"
    __table_args__ = (
        db.UniqueConstraint("seller_id", name="uq_seller_sessions_seller"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    seller_id = db.Column(db.Integer, db.ForeignKey("sellers.id"), nullable=False, index=True)

    # Token hash (never store plaintext tokens!)
    token_hash = db.Column(db.String(64), nullable=False, unique=True, index=True)

    issued_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    # Client information (for security monitoring)
    user_agent = db.Column(db.String(512), nullable=True)
    ip_address = db.Column(db.String(45), nullable=True)  # IPv6 max length

    seller = db.relationship("Seller", backref=db.backref("session", uselist=False, lazy=True))
