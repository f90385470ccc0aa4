"""Injectable clocks.

Everything that needs "now" takes a :class:`Clock` so tests can pin time.
"""

from __future__ import annotations

from datetime import UTC, date, datetime, timedelta
from typing import Protocol


class Clock(Protocol):
    def now(self) -> datetime: ...


class SystemClock:
    """Wall clock in UTC."""

    def now(self) -> datetime:
        return datetime.now(UTC)


class FixedClock:
    """A clock that only moves when told to."""

    def __init__(self, at: datetime) -> None:
        if at.tzinfo is None:
            at = at.replace(tzinfo=UTC)
        self._at = at

    def now(self) -> datetime:
        return self._at

    def advance(self, **kwargs: float) -> None:
        self._at = self._at + timedelta(**kwargs)

    def set(self, at: datetime) -> None:
        if at.tzinfo is None:
            at = at.replace(tzinfo=UTC)
        self._at = at


def today(clock: Clock) -> date:
    """Calendar date of *clock* (UTC)."""
    return clock.now().date()


def whole_days_between(earlier: datetime, later: datetime) -> int:
    """Number of whole days from *earlier* to *later*, floored."""
    return int((later - earlier).total_seconds() // 86400)
