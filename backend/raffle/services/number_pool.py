# Overview: Number pool tracking; which raffle numbers are claimed and candidate sampling.

"""
Number Pool Tracker

The pool is the 1000 raffle numbers 0..999. A number is "used" once any
persisted ticket holds it. The ticket_numbers table is always the ground
truth: the used set is re-derived per request and never cached in process.

Sampling here is advisory. It lets a caller pick a quad that is very likely
free; the unique constraint checked at commit time is the real guarantee.
"""

from __future__ import annotations

import random
from typing import Iterable

from ..extensions import db
from ..models import TicketNumber


POOL_MIN = 0
POOL_MAX = 999
POOL_SIZE = POOL_MAX - POOL_MIN + 1
NUMBERS_PER_TICKET = 4

DEFAULT_SAMPLE_ATTEMPTS = 1000

_system_random = random.SystemRandom()


class PoolExhaustedError(Exception):
    """Raised when no set of free numbers could be drawn."""
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}


class TicketValidationError(ValueError):
    """400-level problem with the ticket request itself."""
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}


def is_valid_number(n) -> bool:
    # bool is an int subclass; True must not pass as 1
    return isinstance(n, int) and not isinstance(n, bool) and POOL_MIN <= n <= POOL_MAX


def validate_numbers(numbers) -> list[int]:
    """
    Check a requested quad: exactly 4 distinct integers in 0..999.

    Returns the numbers as a list. Raises TicketValidationError.
    """
    if not isinstance(numbers, (list, tuple)):
        raise TicketValidationError("numbers must be a list")

    if len(numbers) != NUMBERS_PER_TICKET:
        raise TicketValidationError(
            f"A ticket needs exactly {NUMBERS_PER_TICKET} numbers",
            details={"received": len(numbers)},
        )

    invalid = [n for n in numbers if not is_valid_number(n)]
    if invalid:
        raise TicketValidationError(
            f"Numbers must be integers between {POOL_MIN} and {POOL_MAX}",
            details={"invalid": invalid},
        )

    if len(set(numbers)) != NUMBERS_PER_TICKET:
        raise TicketValidationError("Numbers on a ticket must be distinct")

    return list(numbers)


def is_used(n: int) -> bool:
    """True iff some persisted ticket already holds `n`."""
    return db.session.query(TicketNumber.id).filter_by(number=n).first() is not None


def get_used_numbers() -> set[int]:
    """All numbers currently claimed by any ticket."""
    return {number for (number,) in db.session.query(TicketNumber.number).all()}


def sample_unused_quad(
    used: Iterable[int],
    rng: random.Random | None = None,
    max_attempts: int = DEFAULT_SAMPLE_ATTEMPTS,
) -> list[int]:
    """
    Draw 4 distinct numbers uniformly from 0..999, skipping `used`.

    Rejection sampling: each draw that hits a used number or one already in
    the candidate costs one attempt. Raises PoolExhaustedError when the
    attempt budget runs out, or up front when fewer than 4 numbers are free.
    """
    used = set(used)
    free_count = POOL_SIZE - len(used & set(range(POOL_MIN, POOL_MAX + 1)))
    if free_count < NUMBERS_PER_TICKET:
        raise PoolExhaustedError(
            "Not enough free numbers left in the pool",
            details={"free": free_count},
        )

    rng = rng or _system_random
    picked: list[int] = []
    attempts = 0

    while len(picked) < NUMBERS_PER_TICKET:
        if attempts >= max_attempts:
            raise PoolExhaustedError(
                "Could not draw a set of free numbers",
                details={"attempts": attempts, "free": free_count},
            )
        attempts += 1
        candidate = rng.randint(POOL_MIN, POOL_MAX)
        if candidate in used or candidate in picked:
            continue
        picked.append(candidate)

    return picked
