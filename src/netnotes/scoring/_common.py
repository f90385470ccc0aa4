"""Shared aggregation helpers for the relevance scorers."""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import UTC, datetime

from netnotes.clock import whole_days_between
from netnotes.geo.cities import normalize_city
from netnotes.models import NoteWithPerson, Person

FNV_OFFSET_BASIS = 0x811C9DC5
FNV_PRIME = 0x01000193


def fnv1a_32(text: str) -> int:
    """32-bit FNV-1a over the UTF-8 bytes of *text*."""
    value = FNV_OFFSET_BASIS
    for byte in text.encode("utf-8"):
        value ^= byte
        value = (value * FNV_PRIME) & 0xFFFFFFFF
    return value


def clamp(value: float, low: float = 0.0, high: float = 1.0) -> float:
    return max(low, min(high, value))


def note_city(item: NoteWithPerson) -> str | None:
    """Normalized city a note counts towards, if any."""
    place = item.person.city or item.person.place_label or item.note.place_label
    return normalize_city(place) if place else None


def person_city(person: Person) -> str | None:
    label = person.city or person.place_label
    return normalize_city(label) if label else None


@dataclass
class NoteStats:
    """Per-person note aggregates over a snapshot of recent notes."""

    counts: Counter[str] = field(default_factory=Counter)
    latest: dict[str, NoteWithPerson] = field(default_factory=dict)
    city_counts: Counter[str] = field(default_factory=Counter)

    @classmethod
    def collect(cls, notes: Iterable[NoteWithPerson]) -> NoteStats:
        stats = cls()
        for item in notes:
            person_id = item.person.id
            stats.counts[person_id] += 1
            previous = stats.latest.get(person_id)
            if previous is None or item.note.created_at > previous.note.created_at:
                stats.latest[person_id] = item
            city = note_city(item)
            if city:
                stats.city_counts[city] += 1
        return stats

    def last_relevant_at(self, person: Person) -> datetime:
        """Most recent of latest note, last interaction and creation."""
        candidates = [person.created_at]
        if person.last_interaction_at is not None:
            candidates.append(person.last_interaction_at)
        latest = self.latest.get(person.id)
        if latest is not None:
            candidates.append(latest.note.created_at)
        return max(candidates)

    def last_noted_at(self, person: Person) -> datetime:
        """Latest note, else last interaction, else creation. First hit wins."""
        latest = self.latest.get(person.id)
        if latest is not None:
            return latest.note.created_at
        return person.last_interaction_at or person.created_at

    def days_quiet(self, person: Person, now: datetime) -> int:
        return max(0, whole_days_between(self.last_relevant_at(person), now))

    def days_since_noted(self, person: Person, now: datetime) -> int:
        return max(0, whole_days_between(self.last_noted_at(person), now))


def top_city(city_counts: Counter[str]) -> tuple[str | None, int]:
    """City with the most mentions; ties go to the first one seen."""
    best: str | None = None
    best_count = 0
    for city, count in city_counts.items():
        if count > best_count:
            best, best_count = city, count
    return best, best_count


def resolve_now(now: datetime | None) -> datetime:
    return now if now is not None else datetime.now(UTC)
