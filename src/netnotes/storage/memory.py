"""In-process store. Used by tests, the CLI and single-user demos."""

from __future__ import annotations

import uuid
from datetime import date

from netnotes.clock import Clock, SystemClock
from netnotes.models import (
    Note,
    NoteFields,
    NoteWithPerson,
    Person,
    PersonFields,
    PersonRef,
    Trip,
)
from netnotes.storage.base import PersonStore, clean_optional_text, require_name

_TEXT_FIELDS = ("city", "tags")


class InMemoryStore(PersonStore):
    """Dict-backed :class:`PersonStore`.

    ``calls`` records the name of every mutating call, which lets tests assert
    that nothing was written.
    """

    def __init__(self, clock: Clock | None = None) -> None:
        self._clock = clock or SystemClock()
        self._people: dict[str, Person] = {}
        self._notes: list[Note] = []
        self._trips: list[Trip] = []
        self.calls: list[str] = []

    async def find_person_by_name(self, name: str) -> Person | None:
        wanted = name.strip().lower()
        for person in self._people.values():
            if person.name.lower() == wanted:
                return person
        return None

    async def get_person(self, person_id: str) -> Person | None:
        return self._people.get(person_id)

    async def create_person(self, fields: PersonFields) -> Person:
        self.calls.append("create_person")
        now = self._clock.now()
        values = fields.model_dump()
        for key in _TEXT_FIELDS:
            values[key] = clean_optional_text(values[key])
        values["name"] = require_name(fields)
        if values["importance"] is None:
            values["importance"] = 3
        person = Person(id=str(uuid.uuid4()), created_at=now, updated_at=now, **values)
        self._people[person.id] = person
        return person

    async def update_person(self, person_id: str, fields: PersonFields) -> Person | None:
        self.calls.append("update_person")
        existing = self._people.get(person_id)
        if existing is None:
            return None
        changes = fields.supplied_values()
        if "name" in changes:
            changes["name"] = require_name(fields)
        for key in _TEXT_FIELDS:
            if key in changes:
                changes[key] = clean_optional_text(changes[key])
        changes["updated_at"] = self._clock.now()
        updated = Person.model_validate({**existing.model_dump(), **changes})
        self._people[person_id] = updated
        return updated

    async def create_note(self, fields: NoteFields) -> Note:
        self.calls.append("create_note")
        if fields.person_id not in self._people:
            raise ValueError(f"Person {fields.person_id} not found")
        note = Note(id=str(uuid.uuid4()), created_at=self._clock.now(), **fields.model_dump())
        self._notes.append(note)
        return note

    async def list_people(self) -> list[Person]:
        return sorted(self._people.values(), key=lambda p: p.updated_at, reverse=True)

    async def list_recent_notes(self, limit: int = 200) -> list[NoteWithPerson]:
        notes = sorted(self._notes, key=lambda n: n.created_at, reverse=True)[:limit]
        items = []
        for note in notes:
            person = self._people.get(note.person_id)
            if person is None:
                continue
            items.append(
                NoteWithPerson(
                    note=note,
                    person=PersonRef(
                        id=person.id,
                        name=person.name,
                        city=person.city,
                        place_label=person.place_label,
                    ),
                )
            )
        return items

    async def list_notes_for(self, person_id: str) -> list[Note]:
        return [n for n in self._notes if n.person_id == person_id]

    async def create_trip(self, city: str, start_date: date, end_date: date | None = None) -> Trip:
        self.calls.append("create_trip")
        trip = Trip(
            id=str(uuid.uuid4()),
            city=city.strip(),
            start_date=start_date,
            end_date=end_date,
            created_at=self._clock.now(),
        )
        self._trips.append(trip)
        return trip

    async def list_trips(self) -> list[Trip]:
        return sorted(self._trips, key=lambda t: t.start_date)

    async def list_upcoming_trips(self, on_or_after: date) -> list[Trip]:
        return [t for t in await self.list_trips() if t.start_date >= on_or_after]
