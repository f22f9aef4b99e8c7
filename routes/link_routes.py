"""
Short link endpoints.

POST   /api/shorten                  create a short link
GET    /api/url/{slug}               resolve to the original URL
DELETE /api/url/{slug}               delete a link and its click events
POST   /api/analytics/{slug}         track one click (client enrichment payload)
GET    /api/analytics/{slug}         aggregate counters, optionally latest events
GET    /api/analytics/{slug}/events  paginated, date-ranged click events
POST   /api/cleanup                  sweep expired links (and files on request)
GET    /api/urls                     list all links
"""

from __future__ import annotations

from typing import Annotated, Optional

from fastapi import APIRouter, Depends, Query, Request

from dependencies import (
    get_click_log,
    get_client_payload,
    get_registry,
    get_settings,
    get_tracking,
)
from config import AppSettings
from schemas.dto.requests.analytics import ClientAnalyticsPayload
from schemas.dto.requests.file import CleanupQuery
from schemas.dto.requests.link import AnalyticsQuery, EventsQuery, ShortenRequest
from schemas.dto.responses.common import (
    ErrorResponse,
    MessageResponse,
    PaginationMeta,
    SweepResponse,
)
from schemas.dto.responses.link import (
    EventsResponse,
    LinkAnalyticsResponse,
    LinkSummary,
    OriginalUrlResponse,
    ShortenResponse,
)
from schemas.models.click import ClickEventDoc
from services.click_log import ClickLog
from services.registry import Registry, link_short_url
from services.tracking import TrackingService
from shared.datetime_utils import to_iso

router = APIRouter(
    prefix="/api",
    tags=["links"],
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)


def serialize_event(event: ClickEventDoc) -> dict:
    return event.model_dump(by_alias=True, mode="json")


@router.post("/shorten", status_code=201, response_model=ShortenResponse)
async def shorten(
    body: ShortenRequest,
    registry: Registry = Depends(get_registry),
    settings: AppSettings = Depends(get_settings),
) -> ShortenResponse:
    link = await registry.create_link(body.url, body.slug, body.expires_in)
    return ShortenResponse(
        shortUrl=link_short_url(settings.base_url, link.slug),
        slug=link.slug,
        expiresAt=to_iso(link.expires_at),
    )


@router.get("/url/{slug}", response_model=OriginalUrlResponse)
async def get_original_url(
    slug: str, registry: Registry = Depends(get_registry)
) -> OriginalUrlResponse:
    link = await registry.resolve_link(slug)
    return OriginalUrlResponse(originalUrl=link.original_url)


@router.delete("/url/{slug}", response_model=MessageResponse)
async def delete_url(
    slug: str, registry: Registry = Depends(get_registry)
) -> MessageResponse:
    await registry.delete_link(slug)
    return MessageResponse(message="URL deleted successfully")


@router.post("/analytics/{slug}", response_model=MessageResponse)
async def track_click(
    slug: str,
    request: Request,
    payload: Optional[ClientAnalyticsPayload] = Depends(get_client_payload),
    tracking: TrackingService = Depends(get_tracking),
) -> MessageResponse:
    await tracking.track_link_click(
        slug,
        payload,
        request.headers,
        remote_addr=request.client.host if request.client else None,
        query=request.query_params,
    )
    return MessageResponse(message="Analytics tracked")


@router.get("/analytics/{slug}", response_model=LinkAnalyticsResponse)
async def get_analytics(
    slug: str,
    query: Annotated[AnalyticsQuery, Query()],
    registry: Registry = Depends(get_registry),
    click_log: ClickLog = Depends(get_click_log),
    settings: AppSettings = Depends(get_settings),
) -> LinkAnalyticsResponse:
    link = await registry.get_link(slug)
    analytics = link.analytics.model_dump(by_alias=True)
    analytics["uniqueVisitorCount"] = link.analytics.unique_visitor_count

    response = LinkAnalyticsResponse(
        slug=link.slug,
        originalUrl=link.original_url,
        shortUrl=link_short_url(settings.base_url, link.slug),
        createdAt=to_iso(link.created_at),
        expiresAt=to_iso(link.expires_at),
        clicks=link.clicks,
        analytics=analytics,
    )
    if query.include_events:
        events = await click_log.latest(slug, limit=query.limit)
        response.events = [serialize_event(e) for e in events]
        response.totalEvents = await click_log.count_by_slug(slug)
    return response


@router.get("/analytics/{slug}/events", response_model=EventsResponse)
async def get_events(
    slug: str,
    query: Annotated[EventsQuery, Query()],
    registry: Registry = Depends(get_registry),
    click_log: ClickLog = Depends(get_click_log),
) -> EventsResponse:
    await registry.get_link(slug)
    result = await click_log.query(
        slug,
        page=query.page,
        limit=query.limit,
        start=query.start_date,
        end=query.end_date,
    )
    return EventsResponse(
        events=[serialize_event(e) for e in result.events],
        pagination=PaginationMeta(
            page=result.page, limit=result.limit, total=result.total, pages=result.pages
        ),
    )


@router.post("/cleanup", response_model=SweepResponse)
async def cleanup(
    query: Annotated[CleanupQuery, Query()],
    registry: Registry = Depends(get_registry),
) -> SweepResponse:
    result = await registry.sweep_expired(include_files=query.include_files)
    return SweepResponse(
        deletedUrls=result.links,
        deletedEvents=result.events,
        deletedFiles=result.files,
    )


@router.get("/urls", response_model=list[LinkSummary])
async def list_urls(registry: Registry = Depends(get_registry)) -> list[LinkSummary]:
    links = await registry.list_links()
    return [LinkSummary.from_doc(link) for link in links]
