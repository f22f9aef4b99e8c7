"""
Short link document model.

Maps to the `urls` MongoDB collection. Each document embeds its aggregate:
named counter maps (dimension value → count) plus scalar counters. The
maps are only ever changed through atomic ``$inc`` updates on dotted paths
(see services.analytics), never rewritten whole.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from schemas.models.base import CounterMap, MongoBaseModel, UtcDatetime


def _device_type_defaults() -> dict[str, int]:
    return {"mobile": 0, "tablet": 0, "desktop": 0}


class LinkAnalytics(BaseModel):
    """Embedded aggregate of a short link."""

    model_config = ConfigDict(populate_by_name=True)

    referrers: CounterMap = Field(default_factory=dict)
    browsers: CounterMap = Field(default_factory=dict)
    browser_versions: CounterMap = Field(default_factory=dict, alias="browserVersions")
    devices: CounterMap = Field(default_factory=dict)
    device_models: CounterMap = Field(default_factory=dict, alias="deviceModels")
    os: CounterMap = Field(default_factory=dict)
    os_versions: CounterMap = Field(default_factory=dict, alias="osVersions")
    countries: CounterMap = Field(default_factory=dict)
    regions: CounterMap = Field(default_factory=dict)
    cities: CounterMap = Field(default_factory=dict)
    languages: CounterMap = Field(default_factory=dict)
    timezones: CounterMap = Field(default_factory=dict)
    clicks_by_date: CounterMap = Field(default_factory=dict, alias="clicksByDate")
    clicks_by_hour: CounterMap = Field(default_factory=dict, alias="clicksByHour")
    clicks_by_day_of_week: CounterMap = Field(
        default_factory=dict, alias="clicksByDayOfWeek"
    )
    screen_resolutions: CounterMap = Field(
        default_factory=dict, alias="screenResolutions"
    )
    utm_sources: CounterMap = Field(default_factory=dict, alias="utmSources")
    utm_mediums: CounterMap = Field(default_factory=dict, alias="utmMediums")
    utm_campaigns: CounterMap = Field(default_factory=dict, alias="utmCampaigns")
    device_types: CounterMap = Field(
        default_factory=_device_type_defaults, alias="deviceTypes"
    )
    platforms: CounterMap = Field(default_factory=dict)
    in_app_browsers: CounterMap = Field(default_factory=dict, alias="inAppBrowsers")
    connection_types: CounterMap = Field(default_factory=dict, alias="connectionTypes")
    bot_clicks: int = Field(default=0, alias="botClicks")
    human_clicks: int = Field(default=0, alias="humanClicks")
    # visitorId → hit count; the distinct visitor count is the map's size
    unique_visitors: CounterMap = Field(default_factory=dict, alias="uniqueVisitors")
    dark_mode_users: int = Field(default=0, alias="darkModeUsers")
    light_mode_users: int = Field(default=0, alias="lightModeUsers")

    @property
    def unique_visitor_count(self) -> int:
        return len(self.unique_visitors)


class ShortLinkDoc(MongoBaseModel):
    """Document model for the `urls` collection."""

    slug: str
    original_url: str = Field(alias="originalUrl")
    created_at: UtcDatetime = Field(alias="createdAt")
    expires_at: Optional[UtcDatetime] = Field(default=None, alias="expiresAt")
    clicks: int = 0
    analytics: LinkAnalytics = Field(default_factory=LinkAnalytics)
