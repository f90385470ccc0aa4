"""Storage backends for people, notes and trips."""

from netnotes.storage.base import PersonStore
from netnotes.storage.memory import InMemoryStore

__all__ = ["InMemoryStore", "PersonStore"]
