"""City presence — which cities the network lives in, weighted for display."""

from __future__ import annotations

from collections import Counter
from collections.abc import Sequence

from netnotes.geo.cities import normalize_city
from netnotes.models import CityPresence, NoteWithPerson, Person, Trip
from netnotes.scoring._common import note_city, person_city

PERSON_WEIGHT = 1.0
NOTE_WEIGHT = 0.5
TRIP_WEIGHT = 1.5
MAX_CITIES = 8
MIN_INTENSITY = 0.35


def compute_city_presence(
    people: Sequence[Person],
    trips: Sequence[Trip],
    notes: Sequence[NoteWithPerson],
) -> list[CityPresence]:
    weights: Counter[str] = Counter()
    for person in people:
        city = person_city(person)
        if city:
            weights[city] += PERSON_WEIGHT
    for item in notes:
        city = note_city(item)
        if city:
            weights[city] += NOTE_WEIGHT
    for trip in trips:
        weights[normalize_city(trip.city)] += TRIP_WEIGHT

    peak = max([1.0, *weights.values()])
    ranked = sorted(weights.items(), key=lambda kv: kv[1], reverse=True)[:MAX_CITIES]
    return [
        CityPresence(city=city, intensity=MIN_INTENSITY + (value / peak) * (1 - MIN_INTENSITY))
        for city, value in ranked
    ]
