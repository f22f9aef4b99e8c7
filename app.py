"""
FastAPI application factory.
create_app() is the single entry point for building the app.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

import sentry_sdk
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from config import AppSettings
from errors import StorageUnavailableError, register_error_handlers
from infrastructure.database import MongoConnection
from infrastructure.geoip import GeoIPService
from infrastructure.user_agent import UserAgentParser
from routes.file_routes import router as file_router
from routes.health_routes import router as health_router
from routes.link_routes import router as link_router
from shared.datetime_utils import utc_now
from shared.logging import get_logger, setup_logging

log = get_logger(__name__)


def create_app(settings: Optional[AppSettings] = None) -> FastAPI:
    """Create and return a fully configured FastAPI application."""
    if settings is None:
        settings = AppSettings()

    setup_logging(settings.logging, production=settings.is_production)

    # Initialise Sentry before anything else so it captures startup errors
    if settings.sentry.sentry_dsn:
        sentry_sdk.init(
            dsn=settings.sentry.sentry_dsn,
            send_default_pii=settings.sentry.sentry_send_pii,
            traces_sample_rate=settings.sentry.sentry_traces_sample_rate,
        )

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        # ── Startup ──────────────────────────────────────────────────────────
        mongo = MongoConnection(settings.db)
        geoip = GeoIPService(settings.geoip_city_db)
        app.state.settings = settings
        app.state.mongo = mongo
        app.state.geoip = geoip
        app.state.user_agent_parser = UserAgentParser()
        app.state.clock = utc_now

        # Storage is retried per request, so a cold start without MongoDB still boots
        try:
            await mongo.ensure_ready()
        except StorageUnavailableError:
            log.warning("mongodb_unavailable_at_startup")

        yield

        # ── Shutdown ─────────────────────────────────────────────────────────
        await mongo.close()
        geoip.close()

    app = FastAPI(
        title=settings.app_name,
        version="1.0.0",
        docs_url=settings.docs_url,
        redoc_url=None,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_error_handlers(app)
    app.include_router(health_router)
    app.include_router(link_router)
    app.include_router(file_router)

    return app
