"""Capture workflow: parse a line, ask what is missing, save the person."""

from netnotes.capture.registry import CaptureRegistry
from netnotes.capture.workflow import (
    CaptureResult,
    CaptureSession,
    CaptureState,
    ConfirmPlace,
    Prompt,
    PromptKind,
    ProvideName,
    ProvidePlace,
    Response,
    run_capture,
)

__all__ = [
    "CaptureRegistry",
    "CaptureResult",
    "CaptureSession",
    "CaptureState",
    "ConfirmPlace",
    "Prompt",
    "PromptKind",
    "ProvideName",
    "ProvidePlace",
    "Response",
    "run_capture",
]
