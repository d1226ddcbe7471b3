"""
Duration arithmetic for work sessions.

Works on anything with ``check_in``, ``check_out`` and ``total_hours``
attributes: client-side WorkSession models and the store's table rows alike.
"""
from __future__ import annotations

import math
from datetime import datetime
from typing import Iterable, Protocol


class SessionLike(Protocol):
    check_in: datetime
    check_out: datetime | None
    total_hours: float | None


def duration_between(start: datetime, end: datetime) -> float:
    """Hours between two instants (negative when end precedes start)."""
    return (end - start).total_seconds() / 3600


def hours_of(session: SessionLike) -> float:
    # a stored duration wins, unclamped
    if session.total_hours is not None:
        return session.total_hours
    if session.check_out is not None:
        return max(0.0, duration_between(session.check_in, session.check_out))
    return 0.0


def elapsed_seconds(session: SessionLike, now: datetime) -> int:
    """Whole seconds since the session's check-in, never negative."""
    return max(0, math.floor((now - session.check_in).total_seconds()))


def total_hours(sessions: Iterable[SessionLike]) -> float:
    return sum(hours_of(s) for s in sessions)
