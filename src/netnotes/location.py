"""Device location and geocoding collaborators.

Location is best effort everywhere: a denied permission, a failed fix, a
geocoder error or a timeout all degrade to ``None`` instead of failing a
capture.
"""

from __future__ import annotations

import abc
import asyncio
import logging
from typing import Any

import httpx

from netnotes.errors import GeocodeUnavailableError, LocationUnavailableError
from netnotes.models import Coordinates, DeviceLocation

logger = logging.getLogger(__name__)

DEFAULT_NOMINATIM_URL = "https://nominatim.openstreetmap.org"
DEFAULT_USER_AGENT = "netnotes/0.1"
DEFAULT_LOCATION_TIMEOUT_S = 5.0


class LocationProvider(abc.ABC):
    """Source of the device's current position."""

    @abc.abstractmethod
    async def get_current_position(self) -> Coordinates | None:
        """Current fix, or None. May raise LocationUnavailableError when denied."""

    @abc.abstractmethod
    async def reverse_geocode(self, lat: float, lng: float) -> str | None:
        """Human-readable label for a position, or None."""


class Geocoder(abc.ABC):
    @abc.abstractmethod
    async def forward_geocode(self, city_text: str) -> Coordinates | None: ...

    @abc.abstractmethod
    async def reverse_geocode(self, lat: float, lng: float) -> str | None: ...


def format_place_label(
    *,
    name: str | None = None,
    street: str | None = None,
    city: str | None = None,
    region: str | None = None,
) -> str | None:
    """Pick the most specific label: venue name, then street/city, then region."""
    if name:
        return name
    if street or city:
        return ", ".join(part for part in (street, city) if part)
    return region or None


class NominatimGeocoder(Geocoder):
    """OpenStreetMap Nominatim client."""

    def __init__(
        self,
        *,
        base_url: str = DEFAULT_NOMINATIM_URL,
        user_agent: str = DEFAULT_USER_AGENT,
        timeout_s: float = DEFAULT_LOCATION_TIMEOUT_S,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._owns_http_client = http_client is None
        self._http_client = (
            http_client
            if http_client is not None
            else httpx.AsyncClient(
                timeout=httpx.Timeout(timeout_s, connect=min(timeout_s, 5.0)),
                headers={"User-Agent": user_agent},
            )
        )

    async def aclose(self) -> None:
        if self._owns_http_client:
            await self._http_client.aclose()

    async def _get(self, path: str, params: dict[str, Any]) -> Any:
        try:
            response = await self._http_client.get(f"{self._base_url}{path}", params=params)
        except httpx.HTTPError as exc:
            raise GeocodeUnavailableError(f"Geocoder request failed: {exc}") from exc
        if response.status_code < 200 or response.status_code >= 300:
            raise GeocodeUnavailableError(
                f"Geocoder returned HTTP {response.status_code}",
                status_code=response.status_code,
            )
        try:
            return response.json()
        except ValueError as exc:
            raise GeocodeUnavailableError("Geocoder returned invalid JSON") from exc

    async def forward_geocode(self, city_text: str) -> Coordinates | None:
        query = city_text.strip()
        if not query:
            return None
        payload = await self._get("/search", {"q": query, "format": "jsonv2", "limit": 1})
        if not isinstance(payload, list) or not payload:
            return None
        first = payload[0]
        try:
            return Coordinates(lat=float(first["lat"]), lng=float(first["lon"]))
        except (KeyError, TypeError, ValueError) as exc:
            raise GeocodeUnavailableError("Geocoder result is missing coordinates") from exc

    async def reverse_geocode(self, lat: float, lng: float) -> str | None:
        payload = await self._get("/reverse", {"lat": lat, "lon": lng, "format": "jsonv2"})
        if not isinstance(payload, dict) or "error" in payload:
            return None
        address = payload.get("address") or {}
        return format_place_label(
            name=payload.get("name") or None,
            street=address.get("road"),
            city=address.get("city") or address.get("town") or address.get("village"),
            region=address.get("state"),
        )


class FixedPositionProvider(LocationProvider):
    """Reports a configured position; labels come from an optional geocoder."""

    def __init__(self, lat: float, lng: float, geocoder: Geocoder | None = None) -> None:
        self._position = Coordinates(lat=lat, lng=lng)
        self._geocoder = geocoder

    async def get_current_position(self) -> Coordinates | None:
        return self._position

    async def reverse_geocode(self, lat: float, lng: float) -> str | None:
        if self._geocoder is None:
            return None
        return await self._geocoder.reverse_geocode(lat, lng)


class DeniedLocationProvider(LocationProvider):
    """Stands in for a device where location permission was not granted."""

    async def get_current_position(self) -> Coordinates | None:
        raise LocationUnavailableError("Location permission denied")

    async def reverse_geocode(self, lat: float, lng: float) -> str | None:
        return None


async def resolve_device_location(
    provider: LocationProvider | None,
    *,
    timeout_s: float = DEFAULT_LOCATION_TIMEOUT_S,
) -> DeviceLocation | None:
    """Current position plus label, or None. Never raises for location failures."""
    if provider is None:
        return None
    try:
        position = await asyncio.wait_for(provider.get_current_position(), timeout=timeout_s)
    except LocationUnavailableError as exc:
        logger.info("Device location unavailable: %s", exc)
        return None
    except TimeoutError:
        logger.warning("Device location timed out after %.1fs", timeout_s)
        return None
    if position is None:
        return None

    label: str | None = None
    try:
        label = await asyncio.wait_for(
            provider.reverse_geocode(position.lat, position.lng), timeout=timeout_s
        )
    except GeocodeUnavailableError as exc:
        logger.info("Reverse geocode unavailable: %s", exc)
    except TimeoutError:
        logger.warning("Reverse geocode timed out after %.1fs", timeout_s)

    return DeviceLocation(lat=position.lat, lng=position.lng, place_label=label or None)


async def geocode_city(
    geocoder: Geocoder | None,
    city_text: str,
    *,
    timeout_s: float = DEFAULT_LOCATION_TIMEOUT_S,
) -> Coordinates | None:
    """Forward-geocode *city_text*; failures and timeouts give None."""
    if geocoder is None:
        return None
    try:
        return await asyncio.wait_for(geocoder.forward_geocode(city_text), timeout=timeout_s)
    except GeocodeUnavailableError as exc:
        logger.info("Forward geocode unavailable for %r: %s", city_text, exc)
    except TimeoutError:
        logger.warning("Forward geocode timed out for %r", city_text)
    return None
