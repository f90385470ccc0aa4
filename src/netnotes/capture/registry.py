"""In-process registry of open capture sessions, keyed by session id."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable

from netnotes.capture.workflow import CaptureSession, CaptureState, Response, Step
from netnotes.errors import CaptureStateError, StorageError

logger = logging.getLogger(__name__)

SessionFactory = Callable[[str], CaptureSession]


class CaptureRegistry:
    """Tracks open sessions so an HTTP client can answer prompts across requests.

    Each owner may have one open session at a time; a second ``open`` for the
    same owner raises :class:`CaptureStateError` until the first one commits
    or is cancelled. Responses to one session are serialized. A commit that
    fails with :class:`StorageError` keeps the session for ``retry``; any
    other failure drops it and frees the owner.
    """

    def __init__(self, factory: SessionFactory) -> None:
        self._factory = factory
        self._sessions: dict[str, CaptureSession] = {}
        self._owners: dict[str, str] = {}
        self._locks: dict[str, asyncio.Lock] = {}

    def get(self, session_id: str) -> CaptureSession:
        try:
            return self._sessions[session_id]
        except KeyError:
            raise KeyError(f"Unknown capture session {session_id}") from None

    def open_session_for(self, owner: str) -> CaptureSession | None:
        session_id = self._owners.get(owner)
        return self._sessions.get(session_id) if session_id else None

    async def open(self, text: str, *, owner: str = "default") -> tuple[CaptureSession, Step]:
        if self.open_session_for(owner) is not None:
            raise CaptureStateError(f"Owner {owner!r} already has an open capture")
        session = self._factory(text)
        self._sessions[session.id] = session
        self._owners[owner] = session.id
        self._locks[session.id] = asyncio.Lock()
        try:
            step = await session.start()
        except Exception:
            self._forget(session.id)
            raise
        self._reap(session)
        return session, step

    async def respond(self, session_id: str, response: Response) -> Step:
        session = self.get(session_id)
        async with self._locks[session_id]:
            try:
                return await session.respond(response)
            except (CaptureStateError, StorageError):
                raise
            except Exception:
                self._abandon(session)
                raise
            finally:
                self._reap(session)

    async def retry(self, session_id: str) -> Step:
        session = self.get(session_id)
        async with self._locks[session_id]:
            try:
                return await session.retry_commit()
            except StorageError:
                raise
            except Exception:
                self._abandon(session)
                raise
            finally:
                self._reap(session)

    def cancel(self, session_id: str) -> None:
        session = self.get(session_id)
        session.cancel()
        self._reap(session)

    def __len__(self) -> int:
        return len(self._sessions)

    def _abandon(self, session: CaptureSession) -> None:
        """Drop a session whose commit failed for a reason a retry will not fix."""
        logger.warning("Abandoning capture %s after unexpected failure", session.id)
        if session.state is CaptureState.FAILED:
            session.cancel()
        self._forget(session.id)

    def _reap(self, session: CaptureSession) -> None:
        if not session.is_open:
            self._forget(session.id)

    def _forget(self, session_id: str) -> None:
        self._sessions.pop(session_id, None)
        self._locks.pop(session_id, None)
        for owner, sid in list(self._owners.items()):
            if sid == session_id:
                del self._owners[owner]
