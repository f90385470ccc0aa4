"""Calendar-day gating for things the user should see at most once a day.

State is process-wide and keyed by calendar date, with an injectable clock so
tests can cross midnight on demand.
"""

from __future__ import annotations

import random
import threading
from collections.abc import Sequence
from datetime import date

from netnotes.clock import Clock, SystemClock, today
from netnotes.scoring._common import fnv1a_32

PLACEHOLDERS: tuple[str, ...] = (
    "Type a person... (e.g. alex, 22, Polo Lounge LA)",
    "Who did you meet today?",
    "Anyone worth remembering?",
    "Where were you tonight?",
)


class DailyGate:
    def __init__(self, clock: Clock | None = None) -> None:
        self.clock: Clock = clock or SystemClock()
        self._shown: dict[str, date] = {}
        self._picks: dict[str, tuple[date, str]] = {}
        self._lock = threading.Lock()

    def seed_key(self) -> str:
        """ISO date used to keep layouts stable for the day."""
        return today(self.clock).isoformat()

    def should_show(self, kind: str) -> bool:
        """True the first time *kind* is asked about on a given day."""
        day = today(self.clock)
        with self._lock:
            if self._shown.get(kind) == day:
                return False
            self._shown[kind] = day
            return True

    def pick(self, kind: str, choices: Sequence[str]) -> str:
        """A choice that stays the same for the rest of the day."""
        if not choices:
            raise ValueError("choices must not be empty")
        day = today(self.clock)
        with self._lock:
            stored = self._picks.get(kind)
            if stored is not None and stored[0] == day and stored[1] in choices:
                return stored[1]
            rng = random.Random(fnv1a_32(f"{kind}-{day.isoformat()}"))
            choice = rng.choice(list(choices))
            self._picks[kind] = (day, choice)
            return choice

    def reset(self) -> None:
        with self._lock:
            self._shown.clear()
            self._picks.clear()


_default_gate = DailyGate()


def default_gate() -> DailyGate:
    """The process-wide gate."""
    return _default_gate


def daily_placeholder(gate: DailyGate | None = None) -> str:
    return (gate or _default_gate).pick("placeholder", PLACEHOLDERS)
