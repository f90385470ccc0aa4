"""Persistence contract consumed by the resolver, the capture workflow and the API."""

from __future__ import annotations

import abc
from datetime import date

from netnotes.models import Note, NoteFields, NoteWithPerson, Person, PersonFields, Trip


class PersonStore(abc.ABC):
    """CRUD-only storage for people, notes and trips.

    Implementations raise :class:`~netnotes.errors.StorageError` for backend
    failures. ``update_person`` applies only the fields present in
    ``fields.model_fields_set`` and always refreshes ``updated_at``.
    """

    @abc.abstractmethod
    async def find_person_by_name(self, name: str) -> Person | None:
        """Case-insensitive exact match on the trimmed name."""

    @abc.abstractmethod
    async def get_person(self, person_id: str) -> Person | None: ...

    @abc.abstractmethod
    async def create_person(self, fields: PersonFields) -> Person: ...

    @abc.abstractmethod
    async def update_person(self, person_id: str, fields: PersonFields) -> Person | None: ...

    @abc.abstractmethod
    async def create_note(self, fields: NoteFields) -> Note: ...

    @abc.abstractmethod
    async def list_people(self) -> list[Person]: ...

    @abc.abstractmethod
    async def list_recent_notes(self, limit: int = 200) -> list[NoteWithPerson]:
        """Newest notes first, each joined with its person."""

    @abc.abstractmethod
    async def create_trip(self, city: str, start_date: date, end_date: date | None = None) -> Trip:
        ...

    @abc.abstractmethod
    async def list_trips(self) -> list[Trip]: ...

    @abc.abstractmethod
    async def list_upcoming_trips(self, on_or_after: date) -> list[Trip]:
        """Trips starting on or after *on_or_after*, soonest first."""

    async def close(self) -> None:  # noqa: B027
        """Release backend resources. No-op by default."""


def require_name(fields: PersonFields) -> str:
    """Trimmed name from *fields*; a person is never stored without one."""
    name = (fields.name or "").strip()
    if not name:
        raise ValueError("Person name is required")
    return name


def clean_optional_text(value: str | None) -> str | None:
    if value is None:
        return None
    value = value.strip()
    return value or None
