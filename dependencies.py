"""
FastAPI dependency providers.

All injectable dependencies are defined here as plain functions used with
FastAPI's Depends() system. Services are built per request on top of the
database handle; the process-wide collaborators (connection, GeoIP reader,
UA parser, clock) live on app.state and are set up by create_app().
"""

from __future__ import annotations

import json
from typing import Optional

from fastapi import Depends, Request
from pymongo.asynchronous.database import AsyncDatabase

from config import AppSettings
from repositories.click_repository import ClickEventRepository
from repositories.file_repository import FileRepository
from repositories.link_repository import LinkRepository
from schemas.dto.requests.analytics import ClientAnalyticsPayload
from services.analytics import AnalyticsService
from services.click_log import ClickLog
from services.delivery import DeliveryGate
from services.enrichment import EnrichmentResolver
from services.registry import Registry
from services.tracking import TrackingService
from shared.logging import get_logger

log = get_logger(__name__)


def get_settings(request: Request) -> AppSettings:
    """Return the AppSettings instance stored on app.state."""
    return request.app.state.settings


async def get_db(request: Request) -> AsyncDatabase:
    """Return the MongoDB database, connecting first if needed (503 on failure)."""
    return await request.app.state.mongo.ensure_ready()


def get_clock(request: Request):
    return request.app.state.clock


async def get_client_payload(request: Request) -> Optional[ClientAnalyticsPayload]:
    """Read the analytics body whatever its content type.

    Beacon requests send JSON as ``text/plain``. A body that is not JSON is
    treated as absent so the event is still counted.
    """
    body = await request.body()
    if not body.strip():
        return None
    try:
        data = json.loads(body)
    except ValueError:
        log.warning("analytics_payload_unreadable", path=request.url.path)
        return None
    return ClientAnalyticsPayload.lenient(data)


def get_enrichment(request: Request) -> EnrichmentResolver:
    return EnrichmentResolver(
        parse_user_agent=request.app.state.user_agent_parser,
        geo_lookup=request.app.state.geoip.lookup,
    )


def get_click_log(
    db: AsyncDatabase = Depends(get_db), clock=Depends(get_clock)
) -> ClickLog:
    return ClickLog(ClickEventRepository(db), clock=clock)


def get_registry(
    db: AsyncDatabase = Depends(get_db),
    click_log: ClickLog = Depends(get_click_log),
    settings: AppSettings = Depends(get_settings),
    clock=Depends(get_clock),
) -> Registry:
    return Registry(
        LinkRepository(db),
        FileRepository(db),
        click_log,
        allowed_mime_types=settings.allowed_mime_types,
        max_upload_bytes=settings.max_upload_bytes,
        clock=clock,
    )


def get_analytics(
    db: AsyncDatabase = Depends(get_db), clock=Depends(get_clock)
) -> AnalyticsService:
    return AnalyticsService(LinkRepository(db), FileRepository(db), clock=clock)


def get_tracking(
    registry: Registry = Depends(get_registry),
    enrichment: EnrichmentResolver = Depends(get_enrichment),
    analytics: AnalyticsService = Depends(get_analytics),
    click_log: ClickLog = Depends(get_click_log),
) -> TrackingService:
    return TrackingService(registry, enrichment, analytics, click_log)


def get_delivery_gate(
    registry: Registry = Depends(get_registry),
    analytics: AnalyticsService = Depends(get_analytics),
) -> DeliveryGate:
    return DeliveryGate(registry, analytics)
