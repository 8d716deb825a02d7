from __future__ import annotations

from ..extensions import db
from raffle.time_utils import to_utc_z


class Prize(db.Model):
    """
    Prizes of the draw, shown in prize_order.

    winning_number is set by the admin at draw time (re-settable, nullable)
    and is a lookup key into ticket_numbers.
    """
    __tablename__ = "prizes"
    __table_args__ = (
        db.UniqueConstraint("prize_order", name="uq_prizes_order"),
        db.CheckConstraint(
            "winning_number IS NULL OR (winning_number >= 0 AND winning_number <= 999)",
            name="ck_prizes_winning_number_range",
        ),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    prize_order = db.Column(db.Integer, nullable=False)
    title = db.Column(db.String(255), nullable=False)
    image_url = db.Column(db.Text, nullable=False, default="/generic-prize.jpg")
    winning_number = db.Column(db.Integer, nullable=True)

    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "prize_order": self.prize_order,
            "title": self.title,
            "image_url": self.image_url,
            "winning_number": self.winning_number,
            "updated_at": to_utc_z(self.updated_at),
        }
