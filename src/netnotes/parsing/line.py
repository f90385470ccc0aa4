"""Heuristic one-line parser.

Turns something like ``"named Alex, 29, met at Polo Lounge LA"`` into a
:class:`~netnotes.models.ParsedCandidate`.

Every extractor is a pure function over the whitespace-normalized input
string. Name extractors return ``(name, confidence)`` or ``None`` and are
tried in order; the first hit wins:

====================================  ==========
rule                                  confidence
====================================  ==========
``named X`` / ``name is X``           0.9
``met X``                             0.75
Title-case bigram (``Jane Doe``)      0.6
first comma segment (<=3 words)       0.55
nothing                               0.2
====================================  ==========

The parser never raises. A missing field is ``None``.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable

from netnotes.geo.cities import match_city
from netnotes.models import ParsedCandidate

logger = logging.getLogger(__name__)

CONFIDENCE_NAMED = 0.9
CONFIDENCE_MET = 0.75
CONFIDENCE_BIGRAM = 0.6
CONFIDENCE_COMMA = 0.55
CONFIDENCE_NONE = 0.2

STOPWORDS = frozenset(
    {
        "a",
        "an",
        "the",
        "and",
        "or",
        "but",
        "cool",
        "guy",
        "girl",
        "person",
        "someone",
        "named",
        "name",
        "is",
        "met",
        "at",
        "in",
        "on",
        "with",
        "from",
        "of",
        "he",
        "she",
        "they",
        "i",
        "we",
        "was",
        "were",
        "just",
        "really",
        "very",
        "today",
    }
)

VENUE_KEYWORDS: tuple[str, ...] = ("lounge", "cafe", "bar", "hotel", "restaurant", "house")

_MAX_NAME_TOKENS = 3
_MAX_COMMA_NAME_WORDS = 3
_MAX_COMMA_NAME_CHARS = 26
_MIN_NOTES_CHARS = 3
_MIN_AGE = 1
_MAX_AGE = 120

_WHITESPACE = re.compile(r"\s+")
_NAMED = re.compile(r"(?:named|name is)\s+([A-Za-z][A-Za-z'\- ]{2,40})", re.IGNORECASE)
_MET = re.compile(r"\bmet\s+([A-Za-z][A-Za-z'\- ]{2,40})", re.IGNORECASE)
_BIGRAM = re.compile(r"\b([A-Z][a-z]+)\s+([A-Z][a-z]+)\b")
_AGE = re.compile(r"\b(\d{1,3})\b")
_VENUE = re.compile(
    r"\b([A-Za-z0-9'& ]{0,30}?\b(" + "|".join(VENUE_KEYWORDS) + r")s?\b[A-Za-z0-9'& ]{0,20})\b",
    re.IGNORECASE,
)
_VENUE_LEAD = re.compile(r"\b(?:at|in)\s+(?:the\s+)?", re.IGNORECASE)
_COMPANY_CALLED = re.compile(
    r"(?:owns a company called|company called)\s+([A-Za-z0-9'&\- ]{2,40})", re.IGNORECASE
)
_OWNS = re.compile(r"\bowns\s+([A-Za-z0-9'&\-]{2,20})", re.IGNORECASE)
_CONNECTORS = re.compile(
    r"\b(?:i was|i met|met|named|name is|owns a company called|company called|owns)\b",
    re.IGNORECASE,
)
_AND = re.compile(r"\s+and\s+", re.IGNORECASE)
_SPACE_BEFORE_PUNCT = re.compile(r"\s+([.,])")
_REPEATED_COMMAS = re.compile(r",(?:\s*,)+")
_DANGLING_PREPOSITION = re.compile(r"(?:^|\s)(?:at|in|with)$", re.IGNORECASE)
_EDGE_PUNCT = " ,.;:-"

NameExtractor = Callable[[str], "tuple[str, float] | None"]


# ---------------------------------------------------------------------------
# Text helpers
# ---------------------------------------------------------------------------


def normalize_spacing(value: str) -> str:
    return _WHITESPACE.sub(" ", value).strip()


def to_title_case(value: str) -> str:
    return " ".join(word[0].upper() + word[1:].lower() for word in value.split())


def _clean_name(raw: str) -> str | None:
    """First three tokens of *raw*, stopwords dropped, title-cased."""
    tokens = normalize_spacing(raw).split(" ")[:_MAX_NAME_TOKENS]
    kept = [t for t in tokens if t and t.lower() not in STOPWORDS]
    if not kept:
        return None
    return to_title_case(" ".join(kept))


def _remove_phrase(source: str, phrase: str | None) -> str:
    if not phrase:
        return source
    return re.sub(re.escape(phrase), " ", source, flags=re.IGNORECASE)


# ---------------------------------------------------------------------------
# Name extractors
# ---------------------------------------------------------------------------


def extract_named(text: str) -> tuple[str, float] | None:
    match = _NAMED.search(text)
    if match is None:
        return None
    name = _clean_name(match.group(1))
    return (name, CONFIDENCE_NAMED) if name else None


def extract_met(text: str) -> tuple[str, float] | None:
    match = _MET.search(text)
    if match is None:
        return None
    name = _clean_name(match.group(1))
    return (name, CONFIDENCE_MET) if name else None


def extract_title_bigram(text: str) -> tuple[str, float] | None:
    match = _BIGRAM.search(text)
    if match is None:
        return None
    return f"{match.group(1)} {match.group(2)}", CONFIDENCE_BIGRAM


def extract_comma_segment(text: str) -> tuple[str, float] | None:
    segments = [s.strip() for s in text.split(",") if s.strip()]
    if not segments:
        return None
    first = segments[0]
    if len(first.split()) > _MAX_COMMA_NAME_WORDS or len(first) > _MAX_COMMA_NAME_CHARS:
        return None
    return to_title_case(first), CONFIDENCE_COMMA


NAME_EXTRACTORS: tuple[NameExtractor, ...] = (
    extract_named,
    extract_met,
    extract_title_bigram,
    extract_comma_segment,
)


def extract_name(text: str) -> tuple[str | None, float]:
    for extractor in NAME_EXTRACTORS:
        hit = extractor(text)
        if hit is not None:
            return hit
    return None, CONFIDENCE_NONE


# ---------------------------------------------------------------------------
# Field extractors
# ---------------------------------------------------------------------------


def extract_age(text: str) -> int | None:
    """First standalone number in [1, 120]."""
    for match in _AGE.finditer(text):
        value = int(match.group(1))
        if _MIN_AGE <= value <= _MAX_AGE:
            return value
    return None


def extract_venue(text: str) -> str | None:
    """Venue phrase around a venue keyword, minus any leading "at"/"in the"."""
    match = _VENUE.search(text)
    if match is None:
        return None
    venue = match.group(1)
    keyword_offset = match.start(2) - match.start(1)
    leads = list(_VENUE_LEAD.finditer(venue, 0, keyword_offset))
    if leads:
        venue = venue[leads[-1].end() :]
    venue = normalize_spacing(venue)
    return venue or None


def extract_occupation(text: str) -> tuple[str | None, str | None]:
    """Return ``(company, occupation)``."""
    match = _COMPANY_CALLED.search(text)
    if match is not None:
        company = normalize_spacing(match.group(1))
        return company, f"Owner @ {company}"
    match = _OWNS.search(text)
    if match is not None:
        company = match.group(1)
        return company, f"Owner @ {company}"
    return None, None


def build_place_candidate(venue: str | None, city: str | None) -> str | None:
    if venue and city:
        if city.lower() in venue.lower() or match_city(venue) == city:
            return venue
        return f"{venue} {city}"
    return venue or city


def extract_notes(
    text: str,
    *,
    name: str | None,
    place: str | None,
    company: str | None,
) -> str | None:
    """What is left of *text* once the structured fields are taken out."""
    notes = text
    for phrase in (name, place, company):
        notes = _remove_phrase(notes, phrase)
    notes = _CONNECTORS.sub(" ", notes)
    notes = _AND.sub(" ", notes)
    notes = _SPACE_BEFORE_PUNCT.sub(r"\1", notes)
    notes = _REPEATED_COMMAS.sub(",", normalize_spacing(notes))
    while True:
        trimmed = _DANGLING_PREPOSITION.sub("", notes.strip(_EDGE_PUNCT)).strip(_EDGE_PUNCT)
        if trimmed == notes:
            break
        notes = trimmed
    if len(notes) < _MIN_NOTES_CHARS:
        return None
    lower = notes.lower()
    return lower[0].upper() + lower[1:]


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def parse_line(line: str | None) -> ParsedCandidate:
    """Parse one free-text line into a candidate person."""
    raw = normalize_spacing(line or "")
    if not raw:
        return ParsedCandidate(name=None, confidence=0.0)

    name, confidence = extract_name(raw)
    age = extract_age(raw)
    city = match_city(raw)
    venue = extract_venue(raw)
    place = build_place_candidate(venue, city)
    company, occupation = extract_occupation(raw)
    notes = extract_notes(raw, name=name, place=place, company=company)

    candidate = ParsedCandidate(
        name=name,
        age=age,
        city=city,
        place_candidate=place,
        company=company,
        occupation=occupation,
        notes=notes,
        confidence=confidence,
    )
    logger.debug(
        "Parsed line: name=%r confidence=%.2f city=%r place=%r",
        candidate.name,
        candidate.confidence,
        candidate.city,
        candidate.place_candidate,
    )
    return candidate
