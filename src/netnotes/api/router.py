"""netnotes endpoints.

Capture sessions live in the process-wide :class:`CaptureRegistry`, so a
client walks a capture through ``POST /capture`` and then one
``POST /capture/{id}/respond`` per prompt. Ranking endpoints read a fresh
snapshot from the store on every call.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, Response

from netnotes.api.models import (
    CaptureAnswer,
    CaptureRequest,
    CaptureStep,
    NudgeOut,
    ParseRequest,
    PlaceholderOut,
    TripCreate,
)
from netnotes.clock import today
from netnotes.errors import CaptureStateError, StorageError
from netnotes.models import CityPresence, HeatNode, IntentCard, ParsedCandidate, Person, Trip
from netnotes.parsing.line import parse_line
from netnotes.scoring import (
    compute_city_presence,
    compute_intent_cards,
    compute_network_heat,
    compute_nudge,
    daily_placeholder,
)
from netnotes.services import Services

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/netnotes", tags=["netnotes"])

RECENT_NOTES_LIMIT = 200


def _get_services() -> Services:
    """Dependency stub — overridden at app startup or in tests."""
    raise RuntimeError("Services not initialized")


def _storage_unavailable(exc: StorageError) -> HTTPException:
    return HTTPException(status_code=503, detail=f"Storage unavailable, try again: {exc}")


# ---------------------------------------------------------------------------
# Parsing and capture
# ---------------------------------------------------------------------------


@router.post("/parse", response_model=ParsedCandidate)
async def parse(body: ParseRequest) -> ParsedCandidate:
    return parse_line(body.text)


@router.post("/capture", response_model=CaptureStep, status_code=201)
async def start_capture(
    body: CaptureRequest,
    services: Services = Depends(_get_services),
) -> CaptureStep:
    if not body.text.strip():
        raise HTTPException(status_code=422, detail="Nothing to capture")
    try:
        session, step = await services.registry.open(body.text, owner=body.owner)
    except CaptureStateError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    return CaptureStep.from_step(session, step)


@router.post("/capture/{session_id}/respond", response_model=CaptureStep)
async def respond_capture(
    session_id: str,
    body: CaptureAnswer,
    services: Services = Depends(_get_services),
) -> CaptureStep:
    try:
        session = services.registry.get(session_id)
    except KeyError:
        raise HTTPException(status_code=404, detail=f"Capture {session_id} not found") from None
    try:
        step = await services.registry.respond(session_id, body.to_response())
    except CaptureStateError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    except StorageError as exc:
        raise _storage_unavailable(exc) from exc
    return CaptureStep.from_step(session, step)


@router.post("/capture/{session_id}/retry", response_model=CaptureStep)
async def retry_capture(
    session_id: str,
    services: Services = Depends(_get_services),
) -> CaptureStep:
    try:
        session = services.registry.get(session_id)
    except KeyError:
        raise HTTPException(status_code=404, detail=f"Capture {session_id} not found") from None
    try:
        step = await services.registry.retry(session_id)
    except CaptureStateError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    except StorageError as exc:
        raise _storage_unavailable(exc) from exc
    return CaptureStep.from_step(session, step)


@router.delete("/capture/{session_id}", status_code=204)
async def cancel_capture(
    session_id: str,
    services: Services = Depends(_get_services),
) -> Response:
    try:
        services.registry.cancel(session_id)
    except KeyError:
        raise HTTPException(status_code=404, detail=f"Capture {session_id} not found") from None
    except CaptureStateError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    return Response(status_code=204)


# ---------------------------------------------------------------------------
# People and trips
# ---------------------------------------------------------------------------


@router.get("/people", response_model=list[Person])
async def list_people(services: Services = Depends(_get_services)) -> list[Person]:
    try:
        return await services.store.list_people()
    except StorageError as exc:
        raise _storage_unavailable(exc) from exc


@router.post("/trips", response_model=Trip, status_code=201)
async def create_trip(body: TripCreate, services: Services = Depends(_get_services)) -> Trip:
    if body.end_date is not None and body.end_date < body.start_date:
        raise HTTPException(status_code=422, detail="end_date must not precede start_date")
    try:
        return await services.store.create_trip(body.city, body.start_date, body.end_date)
    except StorageError as exc:
        raise _storage_unavailable(exc) from exc


# ---------------------------------------------------------------------------
# Rankings
# ---------------------------------------------------------------------------


@router.get("/heat", response_model=list[HeatNode])
async def network_heat(
    seed: str | None = Query(default=None, description="Layout seed; defaults to today's date"),
    services: Services = Depends(_get_services),
) -> list[HeatNode]:
    try:
        people = await services.store.list_people()
        notes = await services.store.list_recent_notes(RECENT_NOTES_LIMIT)
    except StorageError as exc:
        raise _storage_unavailable(exc) from exc
    return compute_network_heat(
        people, notes, seed or services.gate.seed_key(), now=services.clock.now()
    )


@router.get("/intents", response_model=list[IntentCard])
async def intent_cards(services: Services = Depends(_get_services)) -> list[IntentCard]:
    try:
        people = await services.store.list_people()
        notes = await services.store.list_recent_notes(RECENT_NOTES_LIMIT)
        trips = await services.store.list_upcoming_trips(today(services.clock))
    except StorageError as exc:
        raise _storage_unavailable(exc) from exc
    upcoming = trips[0] if trips else None
    return compute_intent_cards(people, notes, upcoming, now=services.clock.now())


@router.get("/nudge", response_model=NudgeOut)
async def nudge(services: Services = Depends(_get_services)) -> NudgeOut:
    try:
        people = await services.store.list_people()
        notes = await services.store.list_recent_notes(RECENT_NOTES_LIMIT)
    except StorageError as exc:
        raise _storage_unavailable(exc) from exc
    text = compute_nudge(people, notes, now=services.clock.now())
    if text is None:
        return NudgeOut()
    return NudgeOut(nudge=text, show=services.gate.should_show("nudge"))


@router.get("/cities", response_model=list[CityPresence])
async def city_presence(services: Services = Depends(_get_services)) -> list[CityPresence]:
    try:
        people = await services.store.list_people()
        notes = await services.store.list_recent_notes(RECENT_NOTES_LIMIT)
        trips = await services.store.list_trips()
    except StorageError as exc:
        raise _storage_unavailable(exc) from exc
    return compute_city_presence(people, trips, notes)


@router.get("/placeholder", response_model=PlaceholderOut)
async def placeholder(services: Services = Depends(_get_services)) -> PlaceholderOut:
    return PlaceholderOut(placeholder=daily_placeholder(services.gate))
