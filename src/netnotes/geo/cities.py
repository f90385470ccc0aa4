"""City alias table and normalization.

Aliases are matched case-insensitively against the whole input. Aliases of
three characters or fewer ("la", "sf", "dc") must appear as whole words so
that e.g. "salad" does not resolve to Los Angeles; longer aliases match as
plain substrings.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from netnotes.models import Person

CITY_ALIASES: tuple[tuple[tuple[str, ...], str], ...] = (
    (("nyc", "new york", "manhattan", "new york city"), "New York City"),
    (("la", "los angeles"), "Los Angeles"),
    (("sf", "san francisco"), "San Francisco"),
    (("dc", "washington", "washington dc", "washington, dc"), "Washington, DC"),
    (("copenhagen", "kobenhavn"), "Copenhagen"),
    (("london",), "London"),
    (("paris",), "Paris"),
)

_SHORT_ALIAS_MAX_LEN = 3


def _compile_alias(alias: str) -> re.Pattern[str]:
    if len(alias) <= _SHORT_ALIAS_MAX_LEN:
        return re.compile(rf"\b{re.escape(alias)}\b")
    return re.compile(re.escape(alias))


_COMPILED: tuple[tuple[tuple[re.Pattern[str], ...], str], ...] = tuple(
    (tuple(_compile_alias(a) for a in aliases), city) for aliases, city in CITY_ALIASES
)


def match_city(text: str | None) -> str | None:
    """Return the canonical city mentioned in *text*, or None."""
    if not text:
        return None
    lower = text.strip().lower()
    for patterns, city in _COMPILED:
        if any(p.search(lower) for p in patterns):
            return city
    return None


def normalize_city(text: str) -> str:
    """Canonicalize *text* via the alias table; unknown places come back trimmed."""
    return match_city(text) or text.strip()


def extract_geo_label(person: Person) -> str | None:
    """Best city-level label for *person*.

    The explicit city wins. Tags and place labels only count when they name a
    known city.
    """
    if person.city and person.city.strip():
        return normalize_city(person.city)
    for value in (person.tags, person.place_label):
        if value:
            city = match_city(value)
            if city is not None:
                return city
    return None
