"""Tests for name-based upsert and field merging."""

from __future__ import annotations

from datetime import timedelta

import pytest

from netnotes.models import PersonFields
from netnotes.resolver import merge_person_fields, upsert_by_name
from netnotes.storage.memory import InMemoryStore

pytestmark = pytest.mark.unit


class TestUpsertByName:
    async def test_creates_when_missing(self, store):
        person = await upsert_by_name(store, PersonFields(name="  Alex "))
        assert person.name == "Alex"
        assert person.importance == 3
        assert person.city is None
        assert store.calls == ["create_person"]

    async def test_matches_case_insensitively(self, store):
        first = await upsert_by_name(store, PersonFields(name="Alex"))
        second = await upsert_by_name(store, PersonFields(name="ALEX"))
        assert second.id == first.id
        assert len(await store.list_people()) == 1

    async def test_name_takes_incoming_casing(self, store):
        await upsert_by_name(store, PersonFields(name="alex"))
        person = await upsert_by_name(store, PersonFields(name="Alex"))
        assert person.name == "Alex"

    async def test_first_write_wins(self, store):
        await upsert_by_name(
            store, PersonFields(name="Alex", city="New York City", age=29, place_label="Bar A")
        )
        person = await upsert_by_name(
            store, PersonFields(name="Alex", city="Los Angeles", age=30, place_label="Bar B")
        )
        assert person.city == "New York City"
        assert person.age == 29
        assert person.place_label == "Bar A"

    async def test_first_write_fills_gaps(self, store):
        await upsert_by_name(store, PersonFields(name="Alex"))
        person = await upsert_by_name(store, PersonFields(name="Alex", city="Paris", age=41))
        assert person.city == "Paris"
        assert person.age == 41

    async def test_explicit_override_wins(self, store):
        await upsert_by_name(
            store, PersonFields(name="Alex", tags="climbing", phone_number="555", importance=5)
        )
        person = await upsert_by_name(store, PersonFields(name="Alex", tags=None))
        assert person.tags is None
        assert person.phone_number == "555"
        assert person.importance == 5

    async def test_explicit_none_importance_resets_to_default(self, store):
        await upsert_by_name(store, PersonFields(name="Alex", importance=5))
        person = await upsert_by_name(store, PersonFields(name="Alex", importance=None))
        assert person.importance == 3

    async def test_coordinates_replaced_as_pair(self, store):
        await upsert_by_name(store, PersonFields(name="Alex", lat=1.0, lng=2.0))
        person = await upsert_by_name(store, PersonFields(name="Alex"))
        assert (person.lat, person.lng) == (1.0, 2.0)
        person = await upsert_by_name(store, PersonFields(name="Alex", lat=3.0, lng=4.0))
        assert (person.lat, person.lng) == (3.0, 4.0)

    async def test_updated_at_refreshed(self, store, clock):
        created = await upsert_by_name(store, PersonFields(name="Alex"))
        clock.advance(hours=2)
        updated = await upsert_by_name(store, PersonFields(name="Alex"))
        assert updated.updated_at == created.updated_at + timedelta(hours=2)
        assert updated.created_at == created.created_at

    async def test_blank_name_rejected(self, store):
        with pytest.raises(ValueError):
            await upsert_by_name(store, PersonFields(name="   "))
        assert store.calls == []

    async def test_recreates_when_person_vanishes(self, clock):
        class VanishingStore(InMemoryStore):
            async def update_person(self, person_id, fields):
                self.calls.append("update_person")
                return None

        store = VanishingStore(clock)
        await upsert_by_name(store, PersonFields(name="Alex"))
        person = await upsert_by_name(store, PersonFields(name="Alex", city="Paris"))
        assert person.city == "Paris"
        assert store.calls == ["create_person", "update_person", "create_person"]


class TestMergePersonFields:
    async def test_omitted_override_fields_keep_existing(self, store):
        existing = await store.create_person(
            PersonFields(name="Alex", preferred_channel="sms", phone_contact_id="c-1")
        )
        merged = merge_person_fields(existing, PersonFields(name="Alex"))
        assert merged.preferred_channel == "sms"
        assert merged.phone_contact_id == "c-1"

    async def test_every_field_is_supplied(self, store):
        existing = await store.create_person(PersonFields(name="Alex"))
        merged = merge_person_fields(existing, PersonFields(name="Alex"))
        assert "city" in merged.model_fields_set
        assert "importance" in merged.model_fields_set
