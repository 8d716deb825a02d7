# Overview: Ticket issuance transaction and ticket read paths.

"""
Ticket Issuance

issue_ticket is the one operation with real correctness requirements:

- the session check, the ticket insert and the four number inserts run in a
  single transaction and either all commit or all roll back
- a number is claimed by at most one ticket, ever; the unique constraint on
  ticket_numbers.number enforces it, so two sellers who sampled the same free
  number cannot both commit
- the raffle is capped at MAX_TICKETS tickets; the cap is checked under a
  raffle-wide issuance lock, before any write is attempted, so concurrent
  sellers cannot overshoot it

Retrying with fresh numbers after a DuplicateNumberError is a caller concern
and lives in issue_ticket_with_retry, outside the transaction.
"""

from __future__ import annotations

import re

from flask import current_app
from sqlalchemy import func, text
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from ..extensions import db
from ..models import IssuanceLock, Ticket, TicketNumber
from . import session_service
from .concurrency import lock_for_update, run_with_retry
from .number_pool import (
    TicketValidationError,
    get_used_numbers,
    sample_unused_quad,
    validate_numbers,
)


PHONE_PATTERN = re.compile(r"^\+?[0-9\s-]{7,15}$")
MIN_BUYER_NAME_LENGTH = 2
ISSUANCE_LOCK_ID = 1


class TicketError(Exception):
    """Raised for ticket operation errors."""
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}


class InvalidSessionError(TicketError):
    """The session token is stale, replaced or missing. Log in again."""


class CapacityExceededError(TicketError):
    """The raffle is sold out. Not retryable."""


class DuplicateNumberError(TicketError):
    """A requested number was claimed by a concurrently committed ticket."""
    def __init__(self, message: str, conflicts: list[int]):
        super().__init__(message, details={"conflicts": conflicts})
        self.conflicts = conflicts


class GenerationFailedError(TicketError):
    """Resampling after number conflicts gave up."""


def _validate_request(
    buyer_name: str,
    buyer_phone_number: str,
    payment_method: str,
    numbers,
) -> tuple[str, str, str, list[int]]:
    buyer_name = (buyer_name or "").strip()
    if len(buyer_name) < MIN_BUYER_NAME_LENGTH:
        raise TicketValidationError("Buyer name must be at least 2 characters")

    buyer_phone_number = (buyer_phone_number or "").strip()
    if not PHONE_PATTERN.match(buyer_phone_number):
        raise TicketValidationError("Buyer phone number is not valid")

    allowed_methods = current_app.config["PAYMENT_METHODS"]
    if payment_method not in allowed_methods:
        raise TicketValidationError(
            "Unknown payment method",
            details={"allowed": list(allowed_methods)},
        )

    return buyer_name, buyer_phone_number, payment_method, validate_numbers(numbers)


def _claimed_among(numbers: list[int]) -> list[int]:
    rows = (
        db.session.query(TicketNumber.number)
        .filter(TicketNumber.number.in_(numbers))
        .all()
    )
    return sorted(number for (number,) in rows)


def count_tickets() -> int:
    return db.session.query(func.count(Ticket.id)).scalar() or 0


def lock_issuance() -> None:
    """
    Take the raffle-wide issuance lock for the current transaction.

    SQLite: BEGIN IMMEDIATE takes the database write lock up front, since
    pysqlite would otherwise defer BEGIN to the first INSERT and let two
    issuers count tickets before either writes.
    Other dialects: SELECT ... FOR UPDATE on the singleton IssuanceLock
    row, created on first use.
    """
    if db.engine.dialect.name == "sqlite":
        db.session.execute(text("BEGIN IMMEDIATE"))
        return

    query = db.session.query(IssuanceLock).filter_by(id=ISSUANCE_LOCK_ID)
    if lock_for_update(query).first() is not None:
        return

    try:
        with db.session.begin_nested():
            db.session.add(IssuanceLock(id=ISSUANCE_LOCK_ID))
    except IntegrityError:
        # Created concurrently; wait for that row instead
        lock_for_update(query).one()


def issue_ticket(
    seller_id: int,
    session_token: str | None,
    buyer_name: str,
    buyer_phone_number: str,
    numbers,
    payment_method: str,
) -> Ticket:
    """
    Atomically create a ticket holding `numbers` for the seller.

    Raises:
        TicketValidationError: Bad buyer data, payment method or numbers
        InvalidSessionError: session_token is not the seller's current token
        CapacityExceededError: MAX_TICKETS already issued
        DuplicateNumberError: Some number is already held by another ticket
        TicketError: Any other integrity failure (nothing was written)
    """
    buyer_name, buyer_phone_number, payment_method, numbers = _validate_request(
        buyer_name, buyer_phone_number, payment_method, numbers
    )
    max_tickets = current_app.config["MAX_TICKETS"]

    def _op() -> Ticket:
        try:
            # Held until commit or rollback; no other issuer can interleave
            lock_issuance()

            if not session_service.verify_session(seller_id, session_token):
                raise InvalidSessionError("Session is no longer valid, log in again")

            issued = count_tickets()
            if issued >= max_tickets:
                raise CapacityExceededError(
                    "All tickets have been sold",
                    details={"max_tickets": max_tickets},
                )

            ticket = Ticket(
                seller_id=seller_id,
                buyer_name=buyer_name,
                buyer_phone_number=buyer_phone_number,
                payment_method=payment_method,
            )
            db.session.add(ticket)
            db.session.flush()

            for number in numbers:
                db.session.add(TicketNumber(ticket_id=ticket.id, number=number))
            db.session.flush()

            db.session.commit()
            return ticket

        except TicketError:
            db.session.rollback()
            raise
        except IntegrityError:
            db.session.rollback()
            conflicts = _claimed_among(numbers)
            if conflicts:
                raise DuplicateNumberError("Number already taken", conflicts=conflicts)
            current_app.logger.warning(
                "Ticket insert for seller %s failed an integrity check", seller_id, exc_info=True
            )
            raise TicketError("Could not save the ticket, try again")
        except SQLAlchemyError:
            db.session.rollback()
            raise

    return run_with_retry(_op)


def issue_ticket_with_retry(
    seller_id: int,
    session_token: str | None,
    buyer_name: str,
    buyer_phone_number: str,
    payment_method: str,
    *,
    initial_numbers=None,
    attempts: int | None = None,
    rng=None,
) -> Ticket:
    """
    Issue a ticket, resampling numbers on DuplicateNumberError.

    The first attempt uses `initial_numbers` (the client's pre-selection)
    when given. Every later attempt samples from a freshly read used set.
    Bounded by ISSUE_RETRY_ATTEMPTS; exhaustion raises GenerationFailedError.
    PoolExhaustedError from sampling propagates as is.
    """
    if attempts is None:
        attempts = current_app.config["ISSUE_RETRY_ATTEMPTS"]
    sample_budget = current_app.config["SAMPLE_MAX_ATTEMPTS"]

    numbers = initial_numbers
    conflicts: list[int] = []

    for _ in range(attempts):
        if numbers is None:
            numbers = sample_unused_quad(get_used_numbers(), rng=rng, max_attempts=sample_budget)
        try:
            return issue_ticket(
                seller_id,
                session_token,
                buyer_name,
                buyer_phone_number,
                numbers,
                payment_method,
            )
        except DuplicateNumberError as exc:
            conflicts = exc.conflicts
            numbers = None

    current_app.logger.warning(
        "Gave up issuing a ticket for seller %s after %s attempts", seller_id, attempts
    )
    raise GenerationFailedError(
        "Could not find free numbers for the ticket, try again",
        details={"attempts": attempts, "last_conflicts": conflicts},
    )


def list_tickets(seller_id: int | None = None, payment_method: str | None = None) -> list[Ticket]:
    """Tickets newest first, optionally filtered."""
    query = db.session.query(Ticket)
    if seller_id is not None:
        query = query.filter(Ticket.seller_id == seller_id)
    if payment_method:
        query = query.filter(Ticket.payment_method == payment_method)
    return query.order_by(Ticket.id.desc()).all()


def get_ticket(ticket_id: int) -> Ticket | None:
    return db.session.get(Ticket, ticket_id)


def get_ticket_by_number(number: int) -> Ticket | None:
    """The ticket holding `number`, if any."""
    return (
        db.session.query(Ticket)
        .join(TicketNumber, TicketNumber.ticket_id == Ticket.id)
        .filter(TicketNumber.number == number)
        .first()
    )
