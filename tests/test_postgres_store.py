"""Integration tests for PostgresStore.

Set ``NETNOTES_TEST_DSN`` to a disposable database to run these.
"""

from __future__ import annotations

import os
import uuid
from datetime import date, timedelta

import pytest

from netnotes.errors import StorageError
from netnotes.models import NoteFields, PersonFields
from netnotes.resolver import upsert_by_name

pytestmark = [
    pytest.mark.integration,
    pytest.mark.skipif(
        not os.environ.get("NETNOTES_TEST_DSN"), reason="NETNOTES_TEST_DSN not set"
    ),
]


@pytest.fixture
async def pg_store(clock):
    from netnotes.storage.postgres import PostgresStore

    store = await PostgresStore.connect(os.environ["NETNOTES_TEST_DSN"], clock)
    yield store
    await store.close()


def _unique(name: str) -> str:
    return f"{name}-{uuid.uuid4().hex[:8]}"


async def test_create_and_find_case_insensitive(pg_store):
    name = _unique("Alex")
    created = await pg_store.create_person(PersonFields(name=name, city="Paris", lat=1.0, lng=2.0))
    found = await pg_store.find_person_by_name(f"  {name.upper()} ")
    assert found is not None
    assert found.id == created.id
    assert (found.lat, found.lng) == (1.0, 2.0)
    assert found.importance == 3


async def test_update_applies_supplied_fields_only(pg_store, clock):
    created = await pg_store.create_person(PersonFields(name=_unique("Alex"), tags="jazz"))
    clock.advance(minutes=5)
    updated = await pg_store.update_person(created.id, PersonFields(city="London"))
    assert updated.city == "London"
    assert updated.tags == "jazz"
    assert updated.updated_at == created.updated_at + timedelta(minutes=5)
    assert await pg_store.update_person(str(uuid.uuid4()), PersonFields(city="x")) is None


async def test_upsert_merges(pg_store):
    name = _unique("Sam")
    await upsert_by_name(pg_store, PersonFields(name=name, city="Paris"))
    person = await upsert_by_name(pg_store, PersonFields(name=name, city="LA", age=40))
    assert person.city == "Paris"
    assert person.age == 40


async def test_notes_joined_with_person(pg_store):
    person = await pg_store.create_person(PersonFields(name=_unique("Robin"), city="Paris"))
    note = await pg_store.create_note(NoteFields(person_id=person.id, content="coffee"))
    recent = await pg_store.list_recent_notes(limit=50)
    item = next(i for i in recent if i.note.id == note.id)
    assert item.person.name == person.name
    assert item.person.city == "Paris"


async def test_note_for_unknown_person_is_storage_error(pg_store):
    with pytest.raises(StorageError):
        await pg_store.create_note(NoteFields(person_id=str(uuid.uuid4()), content="x"))


async def test_trips(pg_store):
    city = _unique("Lisbon")
    trip = await pg_store.create_trip(city, date(2099, 1, 1), date(2099, 1, 5))
    upcoming = await pg_store.list_upcoming_trips(date(2098, 12, 31))
    assert trip.id in {t.id for t in upcoming}
    assert all(t.start_date >= date(2098, 12, 31) for t in upcoming)
