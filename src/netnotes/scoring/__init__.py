"""Relevance scoring over a snapshot of people and notes.

All scorers are pure functions of their inputs plus ``now``; none of them
touch storage.
"""

from netnotes.scoring.daily import DailyGate, daily_placeholder, default_gate
from netnotes.scoring.heat import compute_network_heat
from netnotes.scoring.intents import compute_intent_cards
from netnotes.scoring.nudge import compute_nudge
from netnotes.scoring.presence import compute_city_presence

__all__ = [
    "DailyGate",
    "compute_city_presence",
    "compute_intent_cards",
    "compute_network_heat",
    "compute_nudge",
    "daily_placeholder",
    "default_gate",
]
