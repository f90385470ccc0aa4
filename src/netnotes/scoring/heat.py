"""Network heat — recency/frequency relevance rendered as positioned nodes.

Per person::

    recency   = clamp(1 - days_quiet / 60)
    frequency = clamp(note_count / 5)
    context   = clamp(contextual_note_count / 3)
    geo_boost = clamp(city_note_count / max_city_note_count)
    score     = 0.5 recency + 0.3 frequency + 0.1 context + 0.1 geo_boost

The top 30 become nodes. A node's position comes from a random generator
seeded with the FNV-1a hash of ``"{seed_key}-{person_id}"``, so the same
inputs always land in the same place. Sparse networks are padded with
non-interactive filler nodes up to 12.
"""

from __future__ import annotations

import random
from collections import Counter
from collections.abc import Sequence
from datetime import datetime

from netnotes.models import HeatNode, NoteWithPerson, Person
from netnotes.scoring._common import NoteStats, clamp, fnv1a_32, person_city, resolve_now

CONTEXT_KEYWORDS: tuple[str, ...] = (
    "met",
    "coffee",
    "dinner",
    "lunch",
    "breakfast",
    "hotel",
    "restaurant",
    "bar",
    "lounge",
    "cafe",
    "trip",
)

WARM = "#E2C4A4"
COOL = "#B9C7D6"

RECENCY_WINDOW_DAYS = 60
FREQUENCY_SATURATION = 5
CONTEXT_SATURATION = 3
MAX_NODES = 30
MIN_NODES_BEFORE_FILL = 10
FILLED_NODE_COUNT = 12
WARM_THRESHOLD = 0.5

WEIGHT_RECENCY = 0.5
WEIGHT_FREQUENCY = 0.3
WEIGHT_CONTEXT = 0.1
WEIGHT_GEO = 0.1


def is_contextual(item: NoteWithPerson) -> bool:
    """A note carries meeting context if it names one or has a place label."""
    if item.note.place_label:
        return True
    content = item.note.content.lower()
    return any(keyword in content for keyword in CONTEXT_KEYWORDS)


def score_people(
    people: Sequence[Person],
    notes: Sequence[NoteWithPerson],
    *,
    now: datetime | None = None,
) -> list[tuple[Person, float]]:
    """``(person, score)`` pairs in input order."""
    now = resolve_now(now)
    stats = NoteStats.collect(notes)
    context_counts: Counter[str] = Counter(
        item.person.id for item in notes if is_contextual(item)
    )
    max_city_count = max([1, *stats.city_counts.values()])

    scored = []
    for person in people:
        recency = clamp(1 - stats.days_quiet(person, now) / RECENCY_WINDOW_DAYS)
        frequency = clamp(stats.counts[person.id] / FREQUENCY_SATURATION)
        context = clamp(context_counts[person.id] / CONTEXT_SATURATION)
        city = person_city(person)
        geo_boost = clamp(stats.city_counts[city] / max_city_count) if city else 0.0
        score = (
            WEIGHT_RECENCY * recency
            + WEIGHT_FREQUENCY * frequency
            + WEIGHT_CONTEXT * context
            + WEIGHT_GEO * geo_boost
        )
        scored.append((person, score))
    return scored


def _rng(seed_text: str) -> random.Random:
    return random.Random(fnv1a_32(seed_text))


def _person_node(person: Person, score: float, seed_key: str) -> HeatNode:
    rng = _rng(f"{seed_key}-{person.id}")
    return HeatNode(
        id=person.id,
        x=0.08 + rng.random() * 0.84,
        y=0.12 + rng.random() * 0.76,
        size=6 + score * 14,
        opacity=0.06 + score * 0.18,
        color=WARM if score > WARM_THRESHOLD else COOL,
        score=score,
    )


def _filler_node(index: int, seed_key: str) -> HeatNode:
    rng = _rng(f"{seed_key}-f-{index}")
    return HeatNode(
        id=f"filler-{index}",
        x=0.1 + rng.random() * 0.8,
        y=0.15 + rng.random() * 0.7,
        size=6 + rng.randrange(6),
        opacity=0.05 + rng.randrange(10) / 200,
        color=COOL,
        filler=True,
    )


def compute_network_heat(
    people: Sequence[Person],
    notes: Sequence[NoteWithPerson],
    seed_key: str,
    *,
    now: datetime | None = None,
) -> list[HeatNode]:
    """Ranked, positioned heat nodes; fillers (``filler=True``) come last."""
    scored = score_people(people, notes, now=now)
    scored.sort(key=lambda pair: pair[1], reverse=True)
    nodes = [_person_node(person, score, seed_key) for person, score in scored[:MAX_NODES]]

    if len(nodes) >= MIN_NODES_BEFORE_FILL:
        return nodes
    fill = FILLED_NODE_COUNT - len(nodes)
    nodes.extend(_filler_node(i, seed_key) for i in range(fill))
    return nodes
