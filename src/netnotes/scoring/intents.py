"""Intent cards — at most one reason per person to reach out, best five overall.

Quiet days count from the latest note; a person with no notes falls back to
``last_interaction_at`` and then ``created_at``. A fresh interaction does not
hide a stale note here, unlike the heat score.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass
from datetime import datetime

from netnotes.geo.cities import normalize_city
from netnotes.models import IntentCard, NoteWithPerson, Person, Trip
from netnotes.scoring._common import NoteStats, resolve_now

MAX_CARDS = 5


@dataclass(frozen=True)
class _Facts:
    person: Person
    days_quiet: int
    note_count: int
    trip: Trip | None


@dataclass(frozen=True)
class IntentRule:
    reason: str
    score: float
    applies: Callable[[_Facts], bool]

    def render(self, facts: _Facts) -> str:
        city = facts.trip.city if facts.trip else ""
        return self.reason.format(city=city)


def _same_city_as_trip(facts: _Facts) -> bool:
    if facts.trip is None or not facts.trip.city or not facts.person.city:
        return False
    return normalize_city(facts.person.city) == normalize_city(facts.trip.city)


# Evaluated in order; the first matching rule is the person's only card.
INTENT_RULES: tuple[IntentRule, ...] = (
    IntentRule("You will be in {city} soon", 5.0, _same_city_as_trip),
    IntentRule("You met them recently", 4.0, lambda f: f.days_quiet <= 7),
    IntentRule(
        "Strong connection, quiet lately",
        3.8,
        lambda f: f.note_count >= 4 and f.days_quiet >= 30,
    ),
    IntentRule("You have not logged anything in a while", 3.4, lambda f: f.days_quiet >= 60),
    IntentRule(
        "A one-off worth remembering",
        3.1,
        lambda f: f.note_count == 1 and f.days_quiet >= 45,
    ),
)


def compute_intent_cards(
    people: Sequence[Person],
    notes: Sequence[NoteWithPerson],
    upcoming_trip: Trip | None,
    *,
    now: datetime | None = None,
) -> list[IntentCard]:
    """Top intent cards by score; equal scores keep the order of *people*."""
    now = resolve_now(now)
    stats = NoteStats.collect(notes)
    cards: list[IntentCard] = []

    for person in people:
        facts = _Facts(
            person=person,
            days_quiet=stats.days_since_noted(person, now),
            note_count=stats.counts[person.id],
            trip=upcoming_trip,
        )
        rule = next((r for r in INTENT_RULES if r.applies(facts)), None)
        if rule is None:
            continue
        latest = stats.latest.get(person.id)
        reason = rule.render(facts)
        cards.append(
            IntentCard(
                id=f"{person.id}-{reason}",
                person_id=person.id,
                name=person.name,
                reason=reason,
                context=person.city
                or person.place_label
                or (latest.note.place_label if latest else None),
                score=rule.score,
            )
        )

    # list.sort is stable, so ties keep insertion order.
    cards.sort(key=lambda card: card.score, reverse=True)
    return cards[:MAX_CARDS]
