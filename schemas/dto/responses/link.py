"""
Response DTOs for short link endpoints.

Response shapes are the API contract consumed by the web client, so field
names are camelCase here (not snake_case + alias): these are response-only
models built explicitly in the route handlers.
"""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel

from schemas.dto.responses.common import PaginationMeta
from schemas.models.link import ShortLinkDoc
from shared.datetime_utils import to_iso


class ShortenResponse(BaseModel):
    """POST /api/shorten (201)."""

    shortUrl: str
    slug: str
    expiresAt: Optional[str] = None  # ISO 8601 or null


class OriginalUrlResponse(BaseModel):
    """GET /api/url/{slug}."""

    originalUrl: str


class LinkSummary(BaseModel):
    """One element of GET /api/urls."""

    slug: str
    originalUrl: str
    createdAt: str
    expiresAt: Optional[str] = None
    clicks: int

    @classmethod
    def from_doc(cls, link: ShortLinkDoc) -> "LinkSummary":
        return cls(
            slug=link.slug,
            originalUrl=link.original_url,
            createdAt=to_iso(link.created_at),
            expiresAt=to_iso(link.expires_at),
            clicks=link.clicks,
        )


class LinkAnalyticsResponse(BaseModel):
    """GET /api/analytics/{slug}.

    ``analytics`` carries every counter map and scalar of the aggregate plus
    ``uniqueVisitorCount`` (distinct visitor ids). ``events`` and
    ``totalEvents`` are present only with ``includeEvents=true``.
    """

    slug: str
    originalUrl: str
    shortUrl: str
    createdAt: str
    expiresAt: Optional[str] = None
    clicks: int
    analytics: dict[str, Any]
    events: Optional[list[dict[str, Any]]] = None
    totalEvents: Optional[int] = None


class EventsResponse(BaseModel):
    """GET /api/analytics/{slug}/events."""

    events: list[dict[str, Any]]
    pagination: PaginationMeta
