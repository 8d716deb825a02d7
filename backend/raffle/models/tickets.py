from __future__ import annotations

from ..extensions import db
from raffle.time_utils import to_utc_z


class Ticket(db.Model):
    """
    A raffle entry: one buyer, one seller, exactly four numbers.

    Append-only. Created once by the issuance transaction together with its
    four TicketNumber rows and never updated afterwards. The seller's name is
    joined at read time, not copied onto the ticket.
    """
    __tablename__ = "tickets"
    __table_args__ = (
        db.Index("ix_tickets_seller_id", "seller_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    seller_id = db.Column(db.Integer, db.ForeignKey("sellers.id"), nullable=False)

    buyer_name = db.Column(db.String(120), nullable=False)
    buyer_phone_number = db.Column(db.String(32), nullable=False)
    payment_method = db.Column(db.String(32), nullable=False)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    seller = db.relationship("Seller", backref=db.backref("tickets", lazy=True))
    number_rows = db.relationship(
        "TicketNumber",
        backref="ticket",
        lazy="selectin",
        order_by="TicketNumber.number",
    )

    @property
    def numbers(self) -> list[int]:
        return [row.number for row in self.number_rows]

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "seller_id": self.seller_id,
            "seller_name": self.seller.name if self.seller else None,
            "buyer_name": self.buyer_name,
            "buyer_phone_number": self.buyer_phone_number,
            "payment_method": self.payment_method,
            "numbers": self.numbers,
            "created_at": to_utc_z(self.created_at),
        }


class TicketNumber(db.Model):
    """
    number -> ticket association.

    The UNIQUE constraint on `number` is what guarantees a number is claimed
    by at most one ticket, ever. Client-side sampling only avoids wasted
    round trips; two sellers racing for the same number turn into an
    IntegrityError for the second writer.
    """
    __tablename__ = "ticket_numbers"
    __table_args__ = (
        db.UniqueConstraint("number", name="uq_ticket_numbers_number"),
        db.CheckConstraint("number >= 0 AND number <= 999", name="ck_ticket_numbers_range"),
        db.Index("ix_ticket_numbers_ticket_id", "ticket_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    ticket_id = db.Column(db.Integer, db.ForeignKey("tickets.id"), nullable=False)
    number = db.Column(db.Integer, nullable=False)


class IssuanceLock(db.Model):
    """
    Singleton row every ticket issuance locks before counting tickets.

    Serializes issuance across all sellers on databases that honor
    SELECT ... FOR UPDATE, so the ticket cap check and the insert that
    follows it cannot interleave with another issuer's.
    """
    __tablename__ = "issuance_lock"

    id = db.Column(db.Integer, primary_key=True, autoincrement=False)
