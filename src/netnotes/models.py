"""Pydantic models for people, notes, trips and the values derived from them.

``PersonFields`` is the write payload used for create, upsert and update.
Pydantic records which fields the caller actually supplied in
``model_fields_set``, which is how an explicit ``None`` ("clear this") is told
apart from an omitted field ("leave it alone").
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class Person(BaseModel):
    """A contact the user has met."""

    id: str
    name: str = Field(min_length=1)
    city: str | None = None
    tags: str | None = None
    importance: int = Field(default=3, ge=1, le=5)
    created_at: datetime
    updated_at: datetime
    last_interaction_at: datetime | None = None
    place_label: str | None = None
    lat: float | None = None
    lng: float | None = None
    phone_contact_id: str | None = None
    phone_number: str | None = None
    preferred_channel: str | None = None
    age: int | None = None

    @model_validator(mode="after")
    def _coordinates_are_paired(self) -> Person:
        if (self.lat is None) != (self.lng is None):
            raise ValueError("lat and lng must both be set or both be null")
        return self


class PersonFields(BaseModel):
    """Fields supplied when creating, upserting or editing a person."""

    model_config = ConfigDict(extra="forbid")

    name: str | None = None
    city: str | None = None
    tags: str | None = None
    importance: int | None = Field(default=None, ge=1, le=5)
    last_interaction_at: datetime | None = None
    place_label: str | None = None
    lat: float | None = None
    lng: float | None = None
    phone_contact_id: str | None = None
    phone_number: str | None = None
    preferred_channel: str | None = None
    age: int | None = None

    def supplied(self, field: str) -> bool:
        """True if *field* was passed explicitly, even as ``None``."""
        return field in self.model_fields_set

    def supplied_values(self) -> dict[str, Any]:
        """Explicitly supplied fields only."""
        return self.model_dump(include=self.model_fields_set)


class Note(BaseModel):
    """A free-text memory attached to one person."""

    id: str
    person_id: str
    content: str
    created_at: datetime
    needs_follow_up: bool = False
    follow_up_at: datetime | None = None
    lat: float | None = None
    lng: float | None = None
    place_label: str | None = None

    @model_validator(mode="after")
    def _follow_up_requires_flag(self) -> Note:
        if self.follow_up_at is not None and not self.needs_follow_up:
            raise ValueError("follow_up_at is only valid when needs_follow_up is set")
        return self


class NoteFields(BaseModel):
    """Fields supplied when creating a note."""

    person_id: str
    content: str = Field(min_length=1)
    needs_follow_up: bool = False
    follow_up_at: datetime | None = None
    lat: float | None = None
    lng: float | None = None
    place_label: str | None = None


class PersonRef(BaseModel):
    """Compact person reference carried alongside recent notes."""

    id: str
    name: str
    city: str | None = None
    place_label: str | None = None


class NoteWithPerson(BaseModel):
    note: Note
    person: PersonRef


class Trip(BaseModel):
    id: str
    city: str
    start_date: date
    end_date: date | None = None
    created_at: datetime


class Coordinates(BaseModel):
    lat: float
    lng: float


class DeviceLocation(BaseModel):
    """A device fix plus an optional reverse-geocoded label."""

    lat: float
    lng: float
    place_label: str | None = None


class ParsedCandidate(BaseModel):
    """Best guess at a person extracted from one line of text."""

    name: str | None = None
    age: int | None = None
    city: str | None = None
    place_candidate: str | None = None
    company: str | None = None
    occupation: str | None = None
    notes: str | None = None
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)


class PendingEntry(BaseModel):
    """Workflow state for one in-flight capture."""

    name: str
    age: int | None = None
    city: str | None = None
    place_candidate: str | None = None
    occupation: str | None = None
    notes: str | None = None
    typed_geo: bool = False
    location: DeviceLocation | None = None

    @field_validator("name")
    @classmethod
    def _name_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("pending entry name must be non-empty")
        return value


class HeatNode(BaseModel):
    """A positioned marker for the network heat background."""

    id: str
    x: float
    y: float
    size: float
    opacity: float
    color: str
    score: float = 0.0
    filler: bool = False


class IntentCard(BaseModel):
    """One reason to reach out to one person."""

    id: str
    person_id: str
    name: str
    reason: str
    context: str | None = None
    score: float


class CityPresence(BaseModel):
    city: str
    intensity: float
