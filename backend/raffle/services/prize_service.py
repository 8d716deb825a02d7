# Overview: Service-layer operations for prizes, the draw and winner resolution.

from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import Prize, Ticket
from raffle.time_utils import utcnow
from .number_pool import is_valid_number, POOL_MIN, POOL_MAX
from .ticket_service import get_ticket_by_number


WINNER_NOT_DRAWN = "not_drawn"
WINNER_NOT_FOUND = "not_found"
WINNER_WON = "won"

DEFAULT_PRIZES = [
    (1, "1° Premio | Freidora De Aire", "/generic-prize.jpg"),
    (2, "2° Premio | Juego De Sábanas", "/generic-prize.jpg"),
    (3, "3° Premio | Libro de Chistes", "/generic-prize.jpg"),
]


class PrizeError(Exception):
    """Raised for prize operation errors."""
    pass


class PrizeNotFoundError(PrizeError):
    pass


@dataclass
class WinnerResolution:
    """
    Outcome of looking up a prize's winning number.

    status is one of:
    - not_drawn: the prize has no winning number yet
    - not_found: no ticket holds the winning number
    - won:       `ticket` holds it
    """
    prize: Prize
    status: str
    ticket: Ticket | None = None

    def to_dict(self) -> dict:
        data = {
            "prize": self.prize.to_dict(),
            "status": self.status,
            "winner": None,
        }
        if self.ticket is not None:
            data["winner"] = {
                "ticket_id": self.ticket.id,
                "buyer_name": self.ticket.buyer_name,
                "buyer_phone_number": self.ticket.buyer_phone_number,
                "seller_id": self.ticket.seller_id,
                "seller_name": self.ticket.seller.name if self.ticket.seller else None,
                "ticket_numbers": self.ticket.numbers,
            }
        return data


def seed_default_prizes() -> list[Prize]:
    """
    Insert the default prizes in one transaction.

    If another request seeded them first, the unique prize_order makes this
    insert fail and the already-seeded rows are returned instead.
    """
    prizes = [
        Prize(prize_order=order, title=title, image_url=image_url, updated_at=utcnow())
        for order, title, image_url in DEFAULT_PRIZES
    ]
    try:
        db.session.add_all(prizes)
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        return db.session.query(Prize).order_by(Prize.prize_order.asc()).all()
    return prizes


def list_prizes(seed_if_empty: bool = True) -> list[Prize]:
    """Prizes in prize order. An empty table gets the defaults first."""
    prizes = db.session.query(Prize).order_by(Prize.prize_order.asc()).all()
    if not prizes and seed_if_empty:
        return seed_default_prizes()
    return prizes


def get_prize(prize_id: int) -> Prize:
    prize = db.session.get(Prize, prize_id)
    if not prize:
        raise PrizeNotFoundError("Prize not found")
    return prize


def update_prize(prize_id: int, title: str, image_url: str) -> Prize:
    title = (title or "").strip()
    if not title:
        raise PrizeError("title is required")
    if not image_url:
        raise PrizeError("image_url is required")

    prize = get_prize(prize_id)
    prize.title = title
    prize.image_url = image_url
    prize.updated_at = utcnow()
    db.session.commit()
    return prize


def set_winning_number(prize_id: int, number: int | None) -> Prize:
    """
    Assign (or clear, with None) the prize's winning number.

    The number does not have to be sold: an unsold winning number resolves
    to not_found.
    """
    if number is not None and not is_valid_number(number):
        raise PrizeError(f"Winning number must be between {POOL_MIN} and {POOL_MAX}")

    prize = get_prize(prize_id)
    prize.winning_number = number
    prize.updated_at = utcnow()
    db.session.commit()
    return prize


def _resolve(prize: Prize) -> WinnerResolution:
    if prize.winning_number is None:
        return WinnerResolution(prize=prize, status=WINNER_NOT_DRAWN)

    ticket = get_ticket_by_number(prize.winning_number)
    if ticket is None:
        return WinnerResolution(prize=prize, status=WINNER_NOT_FOUND)

    return WinnerResolution(prize=prize, status=WINNER_WON, ticket=ticket)


def resolve_winner(prize_id: int) -> WinnerResolution:
    """Read-only: find who holds the prize's winning number."""
    return _resolve(get_prize(prize_id))


def list_winners() -> list[WinnerResolution]:
    return [_resolve(prize) for prize in list_prizes()]
