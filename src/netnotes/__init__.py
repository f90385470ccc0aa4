"""netnotes — turn one-line jottings about people into a ranked personal network."""

from netnotes.capture import CaptureResult, CaptureSession, Prompt, PromptKind, run_capture
from netnotes.geo import normalize_city
from netnotes.parsing import parse_line
from netnotes.resolver import upsert_by_name
from netnotes.scoring import (
    compute_city_presence,
    compute_intent_cards,
    compute_network_heat,
    compute_nudge,
)

__version__ = "0.1.0"

__all__ = [
    "CaptureResult",
    "CaptureSession",
    "Prompt",
    "PromptKind",
    "compute_city_presence",
    "compute_intent_cards",
    "compute_network_heat",
    "compute_nudge",
    "normalize_city",
    "parse_line",
    "run_capture",
    "upsert_by_name",
]
