"""Capture workflow — from one typed line to a saved person and note.

A :class:`CaptureSession` is an explicit state machine::

    IDLE -> NAME_CHECK -> [ASK_NAME] -> LOCATION_RESOLVE -> [CONFIRM_PLACE]
         -> [ASK_WHERE] -> COMMIT -> DONE

``start()`` and ``respond()`` each advance the machine as far as it can go
without the user and return the next step: a :class:`Prompt` when an answer
is needed, or a :class:`CaptureResult` once everything is saved. Nothing is
written to the store before COMMIT, so ``cancel()`` at any prompt leaves no
trace.

``run_capture`` drives a session with an async ``answer`` callback, which is
the only thing a UI has to provide.
"""

from __future__ import annotations

import enum
import logging
import uuid
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from netnotes.clock import Clock, SystemClock
from netnotes.config import CaptureConfig
from netnotes.core.logging import capture_context
from netnotes.errors import CaptureStateError, StorageError
from netnotes.geo.cities import normalize_city
from netnotes.location import Geocoder, LocationProvider, geocode_city, resolve_device_location
from netnotes.models import Note, NoteFields, ParsedCandidate, PendingEntry, Person, PersonFields
from netnotes.parsing.line import parse_line
from netnotes.resolver import upsert_by_name
from netnotes.storage.base import PersonStore

logger = logging.getLogger(__name__)


class CaptureState(enum.StrEnum):
    IDLE = "idle"
    NAME_CHECK = "name_check"
    ASK_NAME = "ask_name"
    LOCATION_RESOLVE = "location_resolve"
    CONFIRM_PLACE = "confirm_place"
    ASK_WHERE = "ask_where"
    COMMIT = "commit"
    DONE = "done"
    CANCELLED = "cancelled"
    FAILED = "failed"


class PromptKind(enum.StrEnum):
    ASK_NAME = "ask_name"
    CONFIRM_PLACE = "confirm_place"
    ASK_WHERE = "ask_where"


_PROMPT_STATES = {
    CaptureState.ASK_NAME: PromptKind.ASK_NAME,
    CaptureState.CONFIRM_PLACE: PromptKind.CONFIRM_PLACE,
    CaptureState.ASK_WHERE: PromptKind.ASK_WHERE,
}
_TERMINAL_STATES = frozenset({CaptureState.DONE, CaptureState.CANCELLED})


@dataclass(frozen=True)
class Prompt:
    """A question the user has to answer before the capture can continue."""

    kind: PromptKind
    message: str
    name: str | None = None
    label: str | None = None


@dataclass(frozen=True)
class ProvideName:
    """Answer to ASK_NAME. ``name=None`` (or blank) means skip."""

    name: str | None = None


@dataclass(frozen=True)
class ConfirmPlace:
    """Answer to CONFIRM_PLACE."""

    accepted: bool


@dataclass(frozen=True)
class ProvidePlace:
    """Answer to ASK_WHERE. ``text=None`` (or blank) means skip."""

    text: str | None = None


Response = ProvideName | ConfirmPlace | ProvidePlace


@dataclass(frozen=True)
class CaptureResult:
    person: Person
    note: Note | None = None


Step = Prompt | CaptureResult

_EXPECTED_RESPONSE: dict[CaptureState, type] = {
    CaptureState.ASK_NAME: ProvideName,
    CaptureState.CONFIRM_PLACE: ConfirmPlace,
    CaptureState.ASK_WHERE: ProvidePlace,
}


def compose_note_content(occupation: str | None, notes: str | None) -> str | None:
    """Occupation and residual notes joined into one note body, or None."""
    parts = [p.strip() for p in (occupation, notes) if p and p.strip()]
    content = ". ".join(parts).strip()
    return content or None


def city_for_label(entry_city: str | None, label: str | None) -> str | None:
    """City to store: the typed city, else the label if it names a known city."""
    if entry_city:
        return entry_city
    if not label:
        return None
    normalized = normalize_city(label)
    return normalized if normalized != label.strip() else None


class CaptureSession:
    """One capture, from raw text to commit or cancel.

    A session holds at most one :class:`PendingEntry` and is not reusable:
    once DONE or CANCELLED every further call raises
    :class:`~netnotes.errors.CaptureStateError`.
    """

    def __init__(
        self,
        text: str,
        *,
        store: PersonStore,
        location: LocationProvider | None = None,
        geocoder: Geocoder | None = None,
        clock: Clock | None = None,
        config: CaptureConfig | None = None,
        session_id: str | None = None,
    ) -> None:
        self.id = session_id or uuid.uuid4().hex
        self.text = text
        self._store = store
        self._location = location
        self._geocoder = geocoder
        self._clock = clock or SystemClock()
        self._config = config or CaptureConfig()
        self._state = CaptureState.IDLE
        self._candidate: ParsedCandidate | None = None
        self._pending: PendingEntry | None = None
        self._commit_args: tuple[str | None, bool] | None = None
        self._prompt: Prompt | None = None

    # -- introspection -----------------------------------------------------

    @property
    def state(self) -> CaptureState:
        return self._state

    @property
    def candidate(self) -> ParsedCandidate | None:
        return self._candidate

    @property
    def pending(self) -> PendingEntry | None:
        return self._pending

    @property
    def current_prompt(self) -> Prompt | None:
        return self._prompt if self._state in _PROMPT_STATES else None

    @property
    def is_open(self) -> bool:
        return self._state not in _TERMINAL_STATES

    # -- transitions -------------------------------------------------------

    async def start(self) -> Step:
        if self._state is not CaptureState.IDLE:
            raise CaptureStateError(f"Capture {self.id} already started ({self._state})")
        with capture_context(self.id):
            self._candidate = parse_line(self.text)
            logger.info(
                "Capture started: name=%r confidence=%.2f",
                self._candidate.name,
                self._candidate.confidence,
            )
            return await self._name_check()

    async def respond(self, response: Response) -> Step:
        expected = _EXPECTED_RESPONSE.get(self._state)
        if expected is None:
            raise CaptureStateError(f"Capture {self.id} is not waiting for input ({self._state})")
        if not isinstance(response, expected):
            raise CaptureStateError(
                f"Capture {self.id} expected {expected.__name__}, got {type(response).__name__}"
            )
        with capture_context(self.id):
            if isinstance(response, ProvideName):
                return await self._on_name(response)
            if isinstance(response, ConfirmPlace):
                return await self._on_confirm(response)
            return await self._on_where(response)

    def cancel(self) -> None:
        """Drop the pending entry.

        Allowed at any prompt, where nothing has been written yet, and after a
        failed commit. Cancelling a FAILED session abandons the retry but does
        not undo what the failed commit already wrote (typically the person).
        """
        if self._state in (CaptureState.COMMIT, CaptureState.DONE):
            raise CaptureStateError(f"Capture {self.id} can no longer be cancelled")
        if self._state is CaptureState.CANCELLED:
            return
        with capture_context(self.id):
            logger.info("Capture cancelled in state %s", self._state)
        self._state = CaptureState.CANCELLED
        self._pending = None
        self._prompt = None

    async def retry_commit(self) -> CaptureResult:
        """Re-run COMMIT after a failed commit with the same answers."""
        if self._state is not CaptureState.FAILED or self._commit_args is None:
            raise CaptureStateError(f"Capture {self.id} has no failed commit to retry")
        with capture_context(self.id):
            label, keep_coordinates = self._commit_args
            return await self._commit(label, keep_coordinates=keep_coordinates)

    # -- state handlers ----------------------------------------------------

    async def _name_check(self) -> Step:
        self._state = CaptureState.NAME_CHECK
        candidate = self._candidate
        assert candidate is not None
        if candidate.name is None or candidate.confidence < self._config.name_confidence_threshold:
            return self._ask(
                CaptureState.ASK_NAME,
                Prompt(kind=PromptKind.ASK_NAME, message="Who did you meet?", name=candidate.name),
            )
        return await self._resolve_location(candidate.name)

    async def _on_name(self, response: ProvideName) -> Step:
        candidate = self._candidate
        assert candidate is not None
        typed = (response.name or "").strip()
        name = typed or candidate.name or self._config.placeholder_name
        return await self._resolve_location(name)

    async def _resolve_location(self, name: str) -> Step:
        self._state = CaptureState.LOCATION_RESOLVE
        candidate = self._candidate
        assert candidate is not None
        device = await resolve_device_location(
            self._location, timeout_s=self._config.location_timeout_s
        )
        typed_geo = bool(candidate.place_candidate or candidate.city)
        label = candidate.place_candidate or candidate.city or (device.place_label if device else None)

        self._pending = PendingEntry(
            name=name.strip() or self._config.placeholder_name,
            age=candidate.age,
            city=candidate.city,
            place_candidate=label,
            occupation=candidate.occupation,
            notes=candidate.notes,
            typed_geo=typed_geo,
            location=device,
        )

        if label:
            return self._ask(
                CaptureState.CONFIRM_PLACE,
                Prompt(
                    kind=PromptKind.CONFIRM_PLACE,
                    message=f'Did you meet {self._pending.name} at "{label}"?',
                    name=self._pending.name,
                    label=label,
                ),
            )
        return self._ask_where()

    async def _on_confirm(self, response: ConfirmPlace) -> Step:
        pending = self._pending
        assert pending is not None
        if response.accepted:
            return await self._commit(pending.place_candidate, keep_coordinates=True)
        if pending.typed_geo:
            return await self._commit(None, keep_coordinates=False)
        return self._ask_where()

    async def _on_where(self, response: ProvidePlace) -> Step:
        text = (response.text or "").strip()
        if text:
            return await self._commit(text, keep_coordinates=True)
        return await self._commit(None, keep_coordinates=False)

    def _ask_where(self) -> Prompt:
        pending = self._pending
        assert pending is not None
        return self._ask(
            CaptureState.ASK_WHERE,
            Prompt(
                kind=PromptKind.ASK_WHERE,
                message="Where did you meet them?",
                name=pending.name,
            ),
        )

    def _ask(self, state: CaptureState, prompt: Prompt) -> Prompt:
        self._state = state
        self._prompt = prompt
        logger.debug("Capture waiting on %s", prompt.kind)
        return prompt

    async def _commit(self, label: str | None, *, keep_coordinates: bool) -> CaptureResult:
        pending = self._pending
        assert pending is not None
        self._state = CaptureState.COMMIT
        self._prompt = None
        self._commit_args = (label, keep_coordinates)

        try:
            person, note = await self._write(pending, label or None, keep_coordinates)
        except StorageError:
            self._state = CaptureState.FAILED
            logger.exception("Capture commit failed; pending entry kept for retry")
            raise
        except Exception:
            # Never left in COMMIT, so the session can still be retried or cancelled.
            self._state = CaptureState.FAILED
            logger.exception("Capture commit failed unexpectedly")
            raise

        self._state = CaptureState.DONE
        self._pending = None
        logger.info(
            "Capture committed: person=%s note=%s place=%r",
            person.id,
            note.id if note else None,
            label,
        )
        return CaptureResult(person=person, note=note)

    async def _write(
        self, pending: PendingEntry, label: str | None, keep_coordinates: bool
    ) -> tuple[Person, Note | None]:
        """Upsert the person, add the note, stamp the interaction."""
        lat = lng = None
        if keep_coordinates and label and pending.location is not None:
            lat, lng = pending.location.lat, pending.location.lng
        city = city_for_label(pending.city, label)
        if label and lat is None and self._geocoder is not None:
            coords = await geocode_city(
                self._geocoder, city or label, timeout_s=self._config.location_timeout_s
            )
            if coords is not None:
                lat, lng = coords.lat, coords.lng

        person = await upsert_by_name(
            self._store,
            PersonFields(
                name=pending.name,
                city=city,
                age=pending.age,
                place_label=label,
                lat=lat,
                lng=lng,
            ),
        )

        note: Note | None = None
        content = compose_note_content(pending.occupation, pending.notes)
        if content:
            note = await self._store.create_note(
                NoteFields(
                    person_id=person.id,
                    content=content,
                    lat=lat,
                    lng=lng,
                    place_label=label,
                )
            )

        touched = await self._store.update_person(
            person.id, PersonFields(last_interaction_at=self._clock.now())
        )
        return touched or person, note


AnswerFn = Callable[[Prompt], Awaitable[Response | None]]


async def run_capture(
    text: str,
    *,
    store: PersonStore,
    answer: AnswerFn,
    location: LocationProvider | None = None,
    geocoder: Geocoder | None = None,
    clock: Clock | None = None,
    config: CaptureConfig | None = None,
) -> CaptureResult | None:
    """Drive one capture to completion.

    *answer* is awaited for every prompt; returning ``None`` cancels the
    capture and ``None`` is returned.
    """
    session = CaptureSession(
        text,
        store=store,
        location=location,
        geocoder=geocoder,
        clock=clock,
        config=config,
    )
    step = await session.start()
    while isinstance(step, Prompt):
        response = await answer(step)
        if response is None:
            session.cancel()
            return None
        step = await session.respond(response)
    return step
