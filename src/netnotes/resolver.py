"""Name-based entity resolution — find a person by name or create one, then merge.

Lookup is a case-insensitive exact match on the trimmed name. When a match
exists the incoming fields are merged field by field:

- first write wins: ``city``, ``place_label``, ``age`` keep an existing value
  and only fill gaps.
- explicit override wins: ``importance``, ``tags``, ``last_interaction_at``,
  ``phone_contact_id``, ``phone_number``, ``preferred_channel`` take the new
  value whenever the caller supplied the field, even as ``None``. Omitted
  fields are left alone.
- ``lat``/``lng`` move as a pair: a supplied pair replaces, otherwise the
  existing pair stays.

The read-then-write is not isolated; two concurrent upserts of the same name
can both read "no match".
"""

from __future__ import annotations

import logging
from typing import Any

from netnotes.models import Person, PersonFields
from netnotes.storage.base import PersonStore, clean_optional_text, require_name

logger = logging.getLogger(__name__)

FIRST_WRITE_WINS: tuple[str, ...] = ("city", "place_label", "age")
EXPLICIT_OVERRIDE_WINS: tuple[str, ...] = (
    "importance",
    "tags",
    "last_interaction_at",
    "phone_contact_id",
    "phone_number",
    "preferred_channel",
)
DEFAULT_IMPORTANCE = 3


def merge_person_fields(existing: Person, incoming: PersonFields) -> PersonFields:
    """Merged write payload for *existing* given *incoming*.

    Every field of the result is explicitly set so the store writes all of them.
    """
    merged: dict[str, Any] = {"name": require_name(incoming)}

    for field in FIRST_WRITE_WINS:
        current = getattr(existing, field)
        new = getattr(incoming, field)
        if isinstance(new, str):
            new = clean_optional_text(new)
        merged[field] = current if current is not None and current != "" else new

    for field in EXPLICIT_OVERRIDE_WINS:
        if incoming.supplied(field):
            value = getattr(incoming, field)
            if field == "tags":
                value = clean_optional_text(value)
            if field == "importance" and value is None:
                value = DEFAULT_IMPORTANCE
            merged[field] = value
        else:
            merged[field] = getattr(existing, field)

    if incoming.lat is not None and incoming.lng is not None:
        merged["lat"], merged["lng"] = incoming.lat, incoming.lng
    else:
        merged["lat"], merged["lng"] = existing.lat, existing.lng

    return PersonFields(**merged)


async def upsert_by_name(store: PersonStore, fields: PersonFields) -> Person:
    """Return the person named ``fields.name``, creating or merging as needed."""
    name = require_name(fields)
    existing = await store.find_person_by_name(name)

    if existing is None:
        person = await store.create_person(fields.model_copy(update={"name": name}))
        logger.info("Created person %s (%r)", person.id, person.name)
        return person

    merged = merge_person_fields(existing, fields)
    person = await store.update_person(existing.id, merged)
    if person is None:
        # Deleted between the read and the write.
        logger.warning("Person %s vanished during upsert; recreating", existing.id)
        person = await store.create_person(fields.model_copy(update={"name": name}))
        return person
    logger.info("Merged capture into existing person %s (%r)", person.id, person.name)
    return person
