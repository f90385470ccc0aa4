"""Shared fixtures: a pinned clock, an in-memory store and fake location sources."""

from __future__ import annotations

import asyncio
import uuid
from datetime import UTC, datetime, timedelta

import pytest

from netnotes.clock import FixedClock
from netnotes.location import Geocoder, LocationProvider
from netnotes.models import Coordinates, Note, NoteWithPerson, Person, PersonRef
from netnotes.storage.memory import InMemoryStore

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=UTC)


class FakeLocationProvider(LocationProvider):
    """Reports a fixed fix and label; optionally hangs to exercise timeouts."""

    def __init__(
        self,
        lat: float = 55.6761,
        lng: float = 12.5683,
        label: str | None = None,
        *,
        delay_s: float = 0.0,
    ) -> None:
        self.lat = lat
        self.lng = lng
        self.label = label
        self.delay_s = delay_s
        self.position_calls = 0

    async def get_current_position(self) -> Coordinates | None:
        self.position_calls += 1
        if self.delay_s:
            await asyncio.sleep(self.delay_s)
        return Coordinates(lat=self.lat, lng=self.lng)

    async def reverse_geocode(self, lat: float, lng: float) -> str | None:
        return self.label


class FakeGeocoder(Geocoder):
    def __init__(self, known: dict[str, Coordinates] | None = None) -> None:
        self.known = known or {}
        self.queries: list[str] = []

    async def forward_geocode(self, city_text: str) -> Coordinates | None:
        self.queries.append(city_text)
        return self.known.get(city_text)

    async def reverse_geocode(self, lat: float, lng: float) -> str | None:
        return None


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(NOW)


@pytest.fixture
def store(clock: FixedClock) -> InMemoryStore:
    return InMemoryStore(clock)


def make_person(
    name: str,
    *,
    person_id: str | None = None,
    city: str | None = None,
    place_label: str | None = None,
    created_days_ago: float = 0,
    last_interaction_days_ago: float | None = None,
    now: datetime = NOW,
) -> Person:
    created = now - timedelta(days=created_days_ago)
    last = (
        now - timedelta(days=last_interaction_days_ago)
        if last_interaction_days_ago is not None
        else None
    )
    return Person(
        id=person_id or str(uuid.uuid4()),
        name=name,
        city=city,
        place_label=place_label,
        created_at=created,
        updated_at=created,
        last_interaction_at=last,
    )


def make_note(
    person: Person,
    content: str = "caught up",
    *,
    days_ago: float = 0,
    place_label: str | None = None,
    now: datetime = NOW,
) -> NoteWithPerson:
    return NoteWithPerson(
        note=Note(
            id=str(uuid.uuid4()),
            person_id=person.id,
            content=content,
            created_at=now - timedelta(days=days_ago),
            place_label=place_label,
        ),
        person=PersonRef(
            id=person.id,
            name=person.name,
            city=person.city,
            place_label=person.place_label,
        ),
    )
