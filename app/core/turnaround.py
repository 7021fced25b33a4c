"""Turnaround time and status derivation shared by both record types."""
from __future__ import annotations

from datetime import date
from enum import Enum


class TurnaroundStatus(str, Enum):
    PENDING = "Pending"
    ON_TIME = "Closed on time"
    EXCEEDED = "Closed - exceeded"


INSURANCE_EXPECTED_DAYS = 7
VERIFICATION_EXPECTED_DAYS = 5


def derive(
    date_received: date | None,
    date_closed: date | None,
    expected_days: int,
) -> tuple[int, TurnaroundStatus]:
    """Return ``(turn_around_time, status)`` for a record.

    A record without both dates is pending with a turnaround of zero. A
    same-day closure is on time. Callers reject ``date_closed`` earlier than
    ``date_received`` before reaching this point.
    """
    if date_received is None or date_closed is None:
        return 0, TurnaroundStatus.PENDING
    elapsed = (date_closed - date_received).days
    if elapsed <= expected_days:
        return elapsed, TurnaroundStatus.ON_TIME
    return elapsed, TurnaroundStatus.EXCEEDED
