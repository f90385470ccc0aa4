"""Wiring: build the store, location collaborators and capture registry from config."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from netnotes.capture.registry import CaptureRegistry
from netnotes.capture.workflow import CaptureSession
from netnotes.clock import Clock, SystemClock
from netnotes.config import NetnotesConfig, StorageBackend
from netnotes.errors import ConfigError
from netnotes.location import FixedPositionProvider, Geocoder, LocationProvider, NominatimGeocoder
from netnotes.scoring.daily import DailyGate, default_gate
from netnotes.storage.base import PersonStore
from netnotes.storage.memory import InMemoryStore

logger = logging.getLogger(__name__)


@dataclass
class Services:
    """Everything a request handler or CLI command needs."""

    config: NetnotesConfig
    store: PersonStore
    clock: Clock = field(default_factory=SystemClock)
    location: LocationProvider | None = None
    geocoder: Geocoder | None = None
    gate: DailyGate = field(default_factory=default_gate)
    registry: CaptureRegistry = field(init=False)

    def __post_init__(self) -> None:
        self.registry = CaptureRegistry(self.new_session)

    def new_session(self, text: str) -> CaptureSession:
        return CaptureSession(
            text,
            store=self.store,
            location=self.location,
            geocoder=self.geocoder,
            clock=self.clock,
            config=self.config.capture,
        )

    async def aclose(self) -> None:
        if isinstance(self.geocoder, NominatimGeocoder):
            await self.geocoder.aclose()
        await self.store.close()


async def build_services(config: NetnotesConfig, *, clock: Clock | None = None) -> Services:
    clock = clock or SystemClock()

    store: PersonStore
    if config.storage.backend is StorageBackend.POSTGRES:
        from netnotes.storage.postgres import PostgresStore

        if not config.storage.dsn:
            raise ConfigError("storage.dsn is required when storage.backend is 'postgres'")
        store = await PostgresStore.connect(config.storage.dsn, clock)
    else:
        store = InMemoryStore(clock)

    geocoder: Geocoder | None = None
    location: LocationProvider | None = None
    geo = config.geocoder
    if geo.enabled:
        geocoder = NominatimGeocoder(
            base_url=geo.base_url, user_agent=geo.user_agent, timeout_s=geo.timeout_s
        )
    if geo.home_lat is not None and geo.home_lng is not None:
        location = FixedPositionProvider(geo.home_lat, geo.home_lng, geocoder)

    logger.info(
        "Services ready: storage=%s geocoder=%s location=%s",
        config.storage.backend,
        "on" if geocoder else "off",
        "fixed" if location else "none",
    )
    return Services(config=config, store=store, clock=clock, location=location, geocoder=geocoder)
