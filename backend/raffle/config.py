# backend/raffle/config.py
from __future__ import annotations
import os


def _csv(value: str) -> tuple[str, ...]:
    return tuple(part.strip() for part in value.split(",") if part.strip())


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/raffle.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///raffle.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Raffle sizing: 250 tickets x 4 numbers exhausts the 0-999 pool exactly
    MAX_TICKETS = int(os.environ.get("MAX_TICKETS", "250"))
    TICKET_PRICE = int(os.environ.get("TICKET_PRICE", "5000"))

    # Caller-level resampling bound after a DuplicateNumber conflict
    ISSUE_RETRY_ATTEMPTS = int(os.environ.get("ISSUE_RETRY_ATTEMPTS", "5"))
    # Rejection-sampling budget for one candidate quad
    SAMPLE_MAX_ATTEMPTS = int(os.environ.get("SAMPLE_MAX_ATTEMPTS", "1000"))

    PAYMENT_METHODS = _csv(os.environ.get("PAYMENT_METHODS", "efectivo,transferencia"))

    DRAWING_DATE = os.environ.get("DRAWING_DATE", "2025-10-28")
