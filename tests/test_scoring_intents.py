"""Tests for intent cards."""

from __future__ import annotations

import uuid
from datetime import date

import pytest

from netnotes.models import Trip
from netnotes.scoring.intents import MAX_CARDS, compute_intent_cards
from tests.conftest import NOW, make_note, make_person

pytestmark = pytest.mark.unit


def _trip(city: str) -> Trip:
    return Trip(id=str(uuid.uuid4()), city=city, start_date=date(2026, 3, 10), created_at=NOW)


class TestIntentRules:
    def test_upcoming_trip_to_their_city(self):
        person = make_person("Alex", city="LA", created_days_ago=100)
        [card] = compute_intent_cards([person], [], _trip("Los Angeles"), now=NOW)
        assert card.reason == "You will be in Los Angeles soon"
        assert card.score == 5.0
        assert card.context == "LA"

    def test_recently_met(self):
        person = make_person("Alex", created_days_ago=3)
        [card] = compute_intent_cards([person], [], None, now=NOW)
        assert card.reason == "You met them recently"
        assert card.score == 4.0

    def test_strong_connection_gone_quiet(self):
        person = make_person("Alex", created_days_ago=200)
        notes = [make_note(person, days_ago=40 + i) for i in range(4)]
        [card] = compute_intent_cards([person], notes, None, now=NOW)
        assert card.reason == "Strong connection, quiet lately"
        assert card.score == 3.8

    def test_long_silence(self):
        person = make_person("Alex", created_days_ago=70)
        [card] = compute_intent_cards([person], [], None, now=NOW)
        assert card.reason == "You have not logged anything in a while"
        assert card.score == 3.4

    def test_one_off(self):
        person = make_person("Alex", created_days_ago=200)
        notes = [make_note(person, days_ago=50, place_label="Ace Hotel")]
        [card] = compute_intent_cards([person], notes, None, now=NOW)
        assert card.reason == "A one-off worth remembering"
        assert card.score == 3.1
        assert card.context == "Ace Hotel"

    def test_nothing_applies(self):
        person = make_person("Alex", created_days_ago=200)
        notes = [make_note(person, days_ago=20), make_note(person, days_ago=25)]
        assert compute_intent_cards([person], notes, None, now=NOW) == []

    def test_stale_note_wins_over_fresh_interaction(self):
        person = make_person("Alex", created_days_ago=100, last_interaction_days_ago=0)
        notes = [make_note(person, days_ago=40)]
        assert compute_intent_cards([person], notes, None, now=NOW) == []

    def test_interaction_used_when_there_are_no_notes(self):
        person = make_person("Alex", created_days_ago=100, last_interaction_days_ago=2)
        [card] = compute_intent_cards([person], [], None, now=NOW)
        assert card.reason == "You met them recently"

    def test_first_matching_rule_only(self):
        person = make_person("Alex", city="Paris", created_days_ago=2)
        cards = compute_intent_cards([person], [], _trip("paris"), now=NOW)
        assert [c.reason for c in cards] == ["You will be in paris soon"]


class TestOrdering:
    def test_highest_score_first(self):
        quiet = make_person("Quiet", created_days_ago=70)
        recent = make_person("Recent", created_days_ago=1)
        cards = compute_intent_cards([quiet, recent], [], None, now=NOW)
        assert [c.name for c in cards] == ["Recent", "Quiet"]

    def test_ties_keep_input_order_and_cap(self):
        people = [make_person(f"P{i}", created_days_ago=1) for i in range(7)]
        cards = compute_intent_cards(people, [], None, now=NOW)
        assert len(cards) == MAX_CARDS
        assert [c.name for c in cards] == [f"P{i}" for i in range(MAX_CARDS)]
