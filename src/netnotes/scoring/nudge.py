"""Daily nudge — one line of encouragement derived from recent activity."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime

from netnotes.models import NoteWithPerson, Person
from netnotes.scoring._common import NoteStats, resolve_now, top_city

EXPANDING_MIN_NOTES = 2
DRIFTING_DAYS = 45

EXPANDING_TEMPLATE = "You have been expanding in {city} lately."
DRIFTING_TEXT = "Someone you met recently is drifting."
PLACE_TEXT = "A place you visit often keeps showing up."


def compute_nudge(
    people: Sequence[Person],
    notes: Sequence[NoteWithPerson],
    *,
    now: datetime | None = None,
) -> str | None:
    """Pick the nudge text, or None when there is nothing to say.

    Stateless; showing it at most once per day is the caller's job (see
    :class:`netnotes.scoring.daily.DailyGate`).
    """
    now = resolve_now(now)
    stats = NoteStats.collect(notes)
    city, count = top_city(stats.city_counts)

    if city and count >= EXPANDING_MIN_NOTES:
        return EXPANDING_TEMPLATE.format(city=city)

    if any(stats.days_quiet(person, now) >= DRIFTING_DAYS for person in people):
        return DRIFTING_TEXT

    if city:
        return PLACE_TEXT

    return None
