"""Exception hierarchy for netnotes."""

from __future__ import annotations


class NetnotesError(Exception):
    """Base class for all netnotes errors."""


class ConfigError(NetnotesError):
    """Raised when netnotes configuration is missing, malformed, or invalid."""


class StorageError(NetnotesError):
    """Raised when the backing store fails a read or write.

    Surfaced to the caller as a retryable failure; nothing retries internally.
    """


class LocationUnavailableError(NetnotesError):
    """Raised by location providers when permission is denied or no fix is available."""


class GeocodeUnavailableError(NetnotesError):
    """Raised by geocoders when a lookup fails or returns an unusable payload."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        self.status_code = status_code
        super().__init__(message)


class CaptureStateError(NetnotesError):
    """Raised when a capture session receives a response it cannot accept."""
