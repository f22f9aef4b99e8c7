"""
Request DTOs for short link endpoints.

ShortenRequest — POST /api/shorten
EventsQuery    — GET /api/analytics/{slug}/events   (query parameters)
AnalyticsQuery — GET /api/analytics/{slug}          (query parameters)
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from shared.datetime_utils import parse_datetime


class ShortenRequest(BaseModel):
    """Body for creating a short link.

    ``slug`` is an optional custom path; ``expiresIn`` one of
    ``1h``, ``1d``, ``7d`` or ``30d``. Any other value, or none, makes a link
    that never expires.
    """

    model_config = ConfigDict(populate_by_name=True)

    url: Optional[str] = None
    slug: Optional[str] = None
    expires_in: Optional[str] = Field(default=None, alias="expiresIn")

    @field_validator("slug", mode="before")
    @classmethod
    def _blank_is_none(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("expires_in", mode="before")
    @classmethod
    def _unknown_expiry_is_none(cls, v):
        # Non-string values fall through to "never expires"
        if not isinstance(v, str) or not v.strip():
            return None
        return v.strip()


class EventsQuery(BaseModel):
    """Pagination and date range for the detail event listing.

    ``startDate`` / ``endDate`` accept ISO 8601 dates or datetimes and are
    inclusive bounds.
    """

    model_config = ConfigDict(populate_by_name=True)

    page: int = Field(default=1, ge=1)
    limit: int = Field(default=50, ge=1, le=500)
    start_date: Optional[datetime] = Field(default=None, alias="startDate")
    end_date: Optional[datetime] = Field(default=None, alias="endDate")

    @field_validator("start_date", "end_date", mode="before")
    @classmethod
    def _parse_date(cls, v):
        if v is None or v == "":
            return None
        parsed = parse_datetime(v)
        if parsed is None:
            raise ValueError("must be an ISO 8601 date or datetime")
        return parsed


class AnalyticsQuery(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    include_events: bool = Field(default=False, alias="includeEvents")
    limit: int = Field(default=100, ge=1, le=500)
