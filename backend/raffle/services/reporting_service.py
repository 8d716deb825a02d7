# Overview: Service-layer operations for reporting; per-seller sales figures.

from __future__ import annotations

from flask import current_app
from sqlalchemy import func

from ..extensions import db
from ..models import Seller, Ticket


def seller_stats(seller_id: int | None = None, payment_method: str | None = None) -> list[dict]:
    """
    Tickets sold and amount collected per seller, best sellers first.

    Sellers without sales in the filtered set are left out, unless the
    report is filtered to that one seller.
    """
    ticket_price = current_app.config["TICKET_PRICE"]

    ticket_filters = [Ticket.seller_id == Seller.id]
    if payment_method:
        ticket_filters.append(Ticket.payment_method == payment_method)

    query = (
        db.session.query(Seller, func.count(Ticket.id))
        .outerjoin(Ticket, db.and_(*ticket_filters))
        .group_by(Seller.id)
    )
    if seller_id is not None:
        query = query.filter(Seller.id == seller_id)

    rows = []
    for seller, sold in query.all():
        if sold == 0 and seller_id is None:
            continue
        rows.append({
            "seller_id": seller.id,
            "seller_name": seller.name,
            "tickets_sold": sold,
            "total_collected": sold * ticket_price,
        })

    rows.sort(key=lambda row: (-row["tickets_sold"], row["seller_name"]))
    return rows
