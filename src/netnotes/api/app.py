"""FastAPI application factory."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from netnotes import __version__
from netnotes.api.router import _get_services
from netnotes.api.router import router as netnotes_router
from netnotes.config import NetnotesConfig
from netnotes.services import Services, build_services

logger = logging.getLogger(__name__)


def create_app(
    services: Services | None = None,
    *,
    config: NetnotesConfig | None = None,
    cors_origins: list[str] | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Parameters
    ----------
    services:
        Pre-built services (tests pass an in-memory store here). When omitted,
        services are built from *config* on startup and closed on shutdown.
    config:
        Used only when *services* is None. Defaults to ``NetnotesConfig()``.
    cors_origins:
        Allowed CORS origins. Defaults to ["http://localhost:8081"] for the
        Expo dev server.
    """
    if cors_origins is None:
        cors_origins = ["http://localhost:8081"]

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        owned = services is None
        active = services or await build_services(config or NetnotesConfig())
        app.dependency_overrides[_get_services] = lambda: active
        logger.info("netnotes API ready")
        yield
        if owned:
            await active.aclose()

    app = FastAPI(title="netnotes API", version=__version__, lifespan=lifespan)
    app.router.redirect_slashes = False
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    if services is not None:
        app.dependency_overrides[_get_services] = lambda: services

    app.include_router(netnotes_router)

    @app.get("/api/health")
    async def health():
        return {"status": "ok"}

    return app
