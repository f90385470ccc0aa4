"""Free-text line parsing."""

from netnotes.parsing.line import (
    CONFIDENCE_BIGRAM,
    CONFIDENCE_COMMA,
    CONFIDENCE_MET,
    CONFIDENCE_NAMED,
    CONFIDENCE_NONE,
    NAME_EXTRACTORS,
    parse_line,
)

__all__ = [
    "CONFIDENCE_BIGRAM",
    "CONFIDENCE_COMMA",
    "CONFIDENCE_MET",
    "CONFIDENCE_NAMED",
    "CONFIDENCE_NONE",
    "NAME_EXTRACTORS",
    "parse_line",
]
