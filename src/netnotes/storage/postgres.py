"""PostgreSQL-backed store over an asyncpg pool."""

from __future__ import annotations

import logging
import uuid
from datetime import date
from typing import Any

import asyncpg

from netnotes.clock import Clock, SystemClock
from netnotes.errors import StorageError
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

logger = logging.getLogger(__name__)

# Connection loss surfaces as InterfaceError, not PostgresError.
_DB_ERRORS = (OSError, asyncpg.PostgresError, asyncpg.InterfaceError)

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS people (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL CHECK (length(trim(name)) > 0),
    city TEXT,
    tags TEXT,
    importance INTEGER NOT NULL DEFAULT 3 CHECK (importance BETWEEN 1 AND 5),
    created_at TIMESTAMPTZ NOT NULL,
    updated_at TIMESTAMPTZ NOT NULL,
    last_interaction_at TIMESTAMPTZ,
    place_label TEXT,
    lat DOUBLE PRECISION,
    lng DOUBLE PRECISION,
    phone_contact_id TEXT,
    phone_number TEXT,
    preferred_channel TEXT,
    age INTEGER,
    CHECK ((lat IS NULL) = (lng IS NULL))
);
CREATE INDEX IF NOT EXISTS idx_people_lower_name ON people (LOWER(name));

CREATE TABLE IF NOT EXISTS notes (
    id TEXT PRIMARY KEY,
    person_id TEXT NOT NULL REFERENCES people(id) ON DELETE CASCADE,
    content TEXT NOT NULL,
    created_at TIMESTAMPTZ NOT NULL,
    needs_follow_up BOOLEAN NOT NULL DEFAULT false,
    follow_up_at TIMESTAMPTZ,
    lat DOUBLE PRECISION,
    lng DOUBLE PRECISION,
    place_label TEXT
);
CREATE INDEX IF NOT EXISTS idx_notes_created_at ON notes (created_at DESC);

CREATE TABLE IF NOT EXISTS trips (
    id TEXT PRIMARY KEY,
    city TEXT NOT NULL,
    start_date DATE NOT NULL,
    end_date DATE,
    created_at TIMESTAMPTZ NOT NULL
);
"""

_PERSON_COLUMNS = (
    "id",
    "name",
    "city",
    "tags",
    "importance",
    "created_at",
    "updated_at",
    "last_interaction_at",
    "place_label",
    "lat",
    "lng",
    "phone_contact_id",
    "phone_number",
    "preferred_channel",
    "age",
)
_UPDATABLE = frozenset(PersonFields.model_fields)
_TEXT_FIELDS = ("city", "tags")


class PostgresStore(PersonStore):
    """:class:`PersonStore` backed by the ``people``/``notes``/``trips`` tables."""

    def __init__(self, pool: asyncpg.Pool, clock: Clock | None = None) -> None:
        self._pool = pool
        self._clock = clock or SystemClock()

    @classmethod
    async def connect(cls, dsn: str, clock: Clock | None = None) -> PostgresStore:
        try:
            pool = await asyncpg.create_pool(dsn, min_size=1, max_size=5)
        except _DB_ERRORS as exc:
            raise StorageError(f"Could not connect to PostgreSQL: {exc}") from exc
        store = cls(pool, clock)
        await store.ensure_schema()
        return store

    async def ensure_schema(self) -> None:
        await self._execute(SCHEMA_SQL)

    async def close(self) -> None:
        await self._pool.close()

    # -- low-level helpers -------------------------------------------------

    async def _execute(self, query: str, *args: Any) -> str:
        try:
            return await self._pool.execute(query, *args)
        except _DB_ERRORS as exc:
            logger.exception("PostgreSQL execute failed")
            raise StorageError(str(exc)) from exc

    async def _fetchrow(self, query: str, *args: Any) -> asyncpg.Record | None:
        try:
            return await self._pool.fetchrow(query, *args)
        except _DB_ERRORS as exc:
            logger.exception("PostgreSQL fetchrow failed")
            raise StorageError(str(exc)) from exc

    async def _fetch(self, query: str, *args: Any) -> list[asyncpg.Record]:
        try:
            return await self._pool.fetch(query, *args)
        except _DB_ERRORS as exc:
            logger.exception("PostgreSQL fetch failed")
            raise StorageError(str(exc)) from exc

    # -- people ------------------------------------------------------------

    async def find_person_by_name(self, name: str) -> Person | None:
        row = await self._fetchrow(
            f"""
            SELECT {", ".join(_PERSON_COLUMNS)}
            FROM people
            WHERE LOWER(name) = LOWER($1)
            ORDER BY created_at
            LIMIT 1
            """,
            name.strip(),
        )
        return Person.model_validate(dict(row)) if row else None

    async def get_person(self, person_id: str) -> Person | None:
        row = await self._fetchrow(
            f"SELECT {', '.join(_PERSON_COLUMNS)} FROM people WHERE id = $1", person_id
        )
        return Person.model_validate(dict(row)) if row else None

    async def create_person(self, fields: PersonFields) -> Person:
        now = self._clock.now()
        values = fields.model_dump()
        values["name"] = require_name(fields)
        for key in _TEXT_FIELDS:
            values[key] = clean_optional_text(values[key])
        if values["importance"] is None:
            values["importance"] = 3
        values.update(id=str(uuid.uuid4()), created_at=now, updated_at=now)
        placeholders = ", ".join(f"${i}" for i in range(1, len(_PERSON_COLUMNS) + 1))
        row = await self._fetchrow(
            f"""
            INSERT INTO people ({", ".join(_PERSON_COLUMNS)})
            VALUES ({placeholders})
            RETURNING {", ".join(_PERSON_COLUMNS)}
            """,
            *(values[c] for c in _PERSON_COLUMNS),
        )
        return Person.model_validate(dict(row))

    async def update_person(self, person_id: str, fields: PersonFields) -> Person | None:
        changes = fields.supplied_values()
        if "name" in changes:
            changes["name"] = require_name(fields)
        for key in _TEXT_FIELDS:
            if key in changes:
                changes[key] = clean_optional_text(changes[key])
        changes = {k: v for k, v in changes.items() if k in _UPDATABLE}
        changes["updated_at"] = self._clock.now()

        assignments = ", ".join(f"{col} = ${i}" for i, col in enumerate(changes, start=2))
        row = await self._fetchrow(
            f"""
            UPDATE people SET {assignments}
            WHERE id = $1
            RETURNING {", ".join(_PERSON_COLUMNS)}
            """,
            person_id,
            *changes.values(),
        )
        return Person.model_validate(dict(row)) if row else None

    async def list_people(self) -> list[Person]:
        rows = await self._fetch(
            f"SELECT {', '.join(_PERSON_COLUMNS)} FROM people ORDER BY updated_at DESC"
        )
        return [Person.model_validate(dict(r)) for r in rows]

    # -- notes -------------------------------------------------------------

    async def create_note(self, fields: NoteFields) -> Note:
        row = await self._fetchrow(
            """
            INSERT INTO notes (
                id, person_id, content, created_at, needs_follow_up, follow_up_at,
                lat, lng, place_label
            )
            VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9)
            RETURNING *
            """,
            str(uuid.uuid4()),
            fields.person_id,
            fields.content,
            self._clock.now(),
            fields.needs_follow_up,
            fields.follow_up_at,
            fields.lat,
            fields.lng,
            fields.place_label,
        )
        return Note.model_validate(dict(row))

    async def list_recent_notes(self, limit: int = 200) -> list[NoteWithPerson]:
        rows = await self._fetch(
            """
            SELECT n.*, p.name AS person_name, p.city AS person_city,
                   p.place_label AS person_place_label
            FROM notes n
            JOIN people p ON p.id = n.person_id
            ORDER BY n.created_at DESC
            LIMIT $1
            """,
            limit,
        )
        items = []
        for row in rows:
            data = dict(row)
            person = PersonRef(
                id=data["person_id"],
                name=data.pop("person_name"),
                city=data.pop("person_city"),
                place_label=data.pop("person_place_label"),
            )
            items.append(NoteWithPerson(note=Note.model_validate(data), person=person))
        return items

    # -- trips -------------------------------------------------------------

    async def create_trip(self, city: str, start_date: date, end_date: date | None = None) -> Trip:
        row = await self._fetchrow(
            """
            INSERT INTO trips (id, city, start_date, end_date, created_at)
            VALUES ($1, $2, $3, $4, $5)
            RETURNING *
            """,
            str(uuid.uuid4()),
            city.strip(),
            start_date,
            end_date,
            self._clock.now(),
        )
        return Trip.model_validate(dict(row))

    async def list_trips(self) -> list[Trip]:
        rows = await self._fetch("SELECT * FROM trips ORDER BY start_date")
        return [Trip.model_validate(dict(r)) for r in rows]

    async def list_upcoming_trips(self, on_or_after: date) -> list[Trip]:
        rows = await self._fetch(
            "SELECT * FROM trips WHERE start_date >= $1 ORDER BY start_date", on_or_after
        )
        return [Trip.model_validate(dict(r)) for r in rows]
