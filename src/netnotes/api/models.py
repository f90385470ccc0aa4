"""Pydantic request/response models for the netnotes HTTP API."""

from __future__ import annotations

from datetime import date
from typing import Literal

from pydantic import BaseModel, Field

from netnotes.capture.workflow import (
    CaptureResult,
    CaptureSession,
    ConfirmPlace,
    Prompt,
    ProvideName,
    ProvidePlace,
    Response,
)
from netnotes.models import Note, Person


class ParseRequest(BaseModel):
    text: str


class CaptureRequest(BaseModel):
    text: str = Field(min_length=1)
    owner: str = "default"


class PromptOut(BaseModel):
    kind: str
    message: str
    name: str | None = None
    label: str | None = None


class CaptureStep(BaseModel):
    """Where a capture session stands after a request."""

    session_id: str
    state: str
    prompt: PromptOut | None = None
    person: Person | None = None
    note: Note | None = None

    @classmethod
    def from_step(cls, session: CaptureSession, step: Prompt | CaptureResult) -> CaptureStep:
        if isinstance(step, Prompt):
            return cls(
                session_id=session.id,
                state=str(session.state),
                prompt=PromptOut(
                    kind=str(step.kind), message=step.message, name=step.name, label=step.label
                ),
            )
        return cls(
            session_id=session.id,
            state=str(session.state),
            person=step.person,
            note=step.note,
        )


class CaptureAnswer(BaseModel):
    """Answer to the current prompt.

    ``ask_name`` reads ``name`` (omit to skip), ``confirm_place`` reads
    ``accepted``, ``ask_where`` reads ``text`` (omit to skip).
    """

    kind: Literal["ask_name", "confirm_place", "ask_where"]
    name: str | None = None
    accepted: bool | None = None
    text: str | None = None

    def to_response(self) -> Response:
        if self.kind == "ask_name":
            return ProvideName(name=self.name)
        if self.kind == "confirm_place":
            return ConfirmPlace(accepted=bool(self.accepted))
        return ProvidePlace(text=self.text)


class NudgeOut(BaseModel):
    nudge: str | None = None
    show: bool = False


class PlaceholderOut(BaseModel):
    placeholder: str


class TripCreate(BaseModel):
    city: str = Field(min_length=1)
    start_date: date
    end_date: date | None = None
