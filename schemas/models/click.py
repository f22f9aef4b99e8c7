"""
Click event document model.

Maps to the `clickevents` MongoDB collection: one immutable record per
tracked link click, written once and never updated. Indexed on `slug` and
on `(slug, timestamp desc)` for paginated, date-ranged queries.
"""

from __future__ import annotations

from typing import Optional

from pydantic import Field

from schemas.models.base import MongoBaseModel, UtcDatetime


class ClickEventDoc(MongoBaseModel):
    """Document model for the `clickevents` collection."""

    slug: str
    timestamp: UtcDatetime
    ip: Optional[str] = None
    user_agent: Optional[str] = Field(default=None, alias="userAgent")
    referer: Optional[str] = None

    # Parsed client
    browser: Optional[str] = None
    browser_version: Optional[str] = Field(default=None, alias="browserVersion")
    os: Optional[str] = None
    os_version: Optional[str] = Field(default=None, alias="osVersion")
    device: Optional[str] = None
    device_model: Optional[str] = Field(default=None, alias="deviceModel")

    # Location
    country: Optional[str] = None
    region: Optional[str] = None
    city: Optional[str] = None

    # Client-side signals
    screen_width: Optional[int] = Field(default=None, alias="screenWidth")
    screen_height: Optional[int] = Field(default=None, alias="screenHeight")
    language: Optional[str] = None
    timezone: Optional[str] = None

    # UTM parameters
    utm_source: Optional[str] = Field(default=None, alias="utmSource")
    utm_medium: Optional[str] = Field(default=None, alias="utmMedium")
    utm_campaign: Optional[str] = Field(default=None, alias="utmCampaign")
    utm_term: Optional[str] = Field(default=None, alias="utmTerm")
    utm_content: Optional[str] = Field(default=None, alias="utmContent")

    # Time buckets (server clock)
    hour_of_day: int = Field(alias="hourOfDay")
    day_of_week: int = Field(alias="dayOfWeek")

    is_mobile: bool = Field(default=False, alias="isMobile")
    is_tablet: bool = Field(default=False, alias="isTablet")
    is_desktop: bool = Field(default=True, alias="isDesktop")
