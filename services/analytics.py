"""
Aggregate counter updates for links and files.

Every tracked event becomes ONE atomic ``$inc`` document on the aggregate:
no read-before-write, so concurrent events on the same slug never lose
increments and nested maps need no dirty-marking. The ``build_*`` functions
are pure; the service only sends what they return.

Time buckets come from the server clock at call time, in UTC:
date (``YYYY-MM-DD``), hour 0–23 and weekday 0 (Sunday)–6 (Saturday).
"""

from __future__ import annotations

from datetime import datetime
from typing import Callable, Optional

from repositories.file_repository import FileRepository
from repositories.link_repository import LinkRepository
from schemas.models.event import DIRECT, UNKNOWN, EnrichedEvent
from shared.datetime_utils import date_key, js_day_of_week, utc_now
from shared.logging import get_logger
from shared.mongo_keys import encode_key

log = get_logger(__name__)

Clock = Callable[[], datetime]


class _IncBuilder:
    """Collects ``{dotted.path: 1}`` entries under a common prefix."""

    def __init__(self, prefix: str = "analytics") -> None:
        self._prefix = prefix
        self.inc: dict[str, int] = {}

    def scalar(self, path: str) -> None:
        self.inc[path] = self.inc.get(path, 0) + 1

    def counter(self, dimension: str, key: Optional[object]) -> None:
        if key is None:
            return
        key = str(key)
        if not key:
            return
        self.scalar(f"{self._prefix}.{dimension}.{encode_key(key)}")

    def field(self, name: str) -> None:
        self.scalar(f"{self._prefix}.{name}")


def device_type_key(event: EnrichedEvent) -> str:
    """Exactly one of ``mobile`` / ``tablet`` / ``desktop``."""
    if event.is_tablet:
        return "tablet"
    if event.is_mobile:
        return "mobile"
    return "desktop"


def build_link_update(event: EnrichedEvent, now: datetime) -> dict[str, int]:
    """``$inc`` document for one tracked click on a short link."""
    b = _IncBuilder()
    b.scalar("clicks")

    b.counter("browsers", event.browser)
    b.counter("browserVersions", event.browser_key)
    b.counter("os", event.os)
    b.counter("osVersions", event.os_key)
    b.counter("devices", event.device_type)
    if event.device_model and event.device_model != UNKNOWN:
        b.counter("deviceModels", event.device_model)
    b.counter("deviceTypes", device_type_key(event))
    b.counter("referrers", event.referrer_host)

    b.counter("countries", event.country)
    b.counter("regions", event.region)
    b.counter("cities", event.city)

    b.counter("languages", event.language)
    b.counter("timezones", event.timezone)
    b.counter("screenResolutions", event.screen_resolution)
    b.counter("platforms", event.platform)
    b.counter("inAppBrowsers", event.in_app_browser)
    b.counter("connectionTypes", event.connection_type)

    if event.is_bot is not None:
        b.field("botClicks" if event.is_bot else "humanClicks")
    if event.prefers_dark_mode is not None:
        b.field("darkModeUsers" if event.prefers_dark_mode else "lightModeUsers")
    # Hit count per visitor, not a distinct count
    b.counter("uniqueVisitors", event.visitor_id)

    b.counter("utmSources", event.utm_source)
    b.counter("utmMediums", event.utm_medium)
    b.counter("utmCampaigns", event.utm_campaign)

    b.counter("clicksByDate", date_key(now))
    b.counter("clicksByHour", now.hour)
    b.counter("clicksByDayOfWeek", js_day_of_week(now))
    return b.inc


def build_file_update(event: EnrichedEvent, now: datetime) -> dict[str, int]:
    """``$inc`` document for one client-reported view of a file page."""
    b = _IncBuilder()
    b.counter("viewsByDate", date_key(now))
    b.counter("browsers", event.browser)
    b.counter("operatingSystems", event.os)
    b.counter("devices", event.device_type)
    b.counter("countries", event.country)
    b.counter("cities", event.city)
    if event.referrer_host != DIRECT:
        b.counter("referrers", event.referrer_host)
    b.counter("platforms", event.platform)
    b.counter("languages", event.language)
    b.counter("screenResolutions", event.screen_resolution)
    return b.inc


def build_download_update(now: datetime) -> dict[str, int]:
    b = _IncBuilder()
    b.scalar("downloads")
    b.counter("downloadsByDate", date_key(now))
    return b.inc


class AnalyticsService:
    def __init__(
        self,
        links: LinkRepository,
        files: FileRepository,
        clock: Clock = utc_now,
    ) -> None:
        self._links = links
        self._files = files
        self._clock = clock

    async def record_link_event(self, slug: str, event: EnrichedEvent) -> bool:
        """Fold one click into the link aggregate. False if the link is gone."""
        matched = await self._links.increment(slug, build_link_update(event, self._clock()))
        log.info(
            "link_event_recorded",
            slug=slug,
            browser=event.browser,
            os=event.os,
            device=event.device_type,
            referrer=event.referrer_host,
            country=event.country,
            matched=matched,
        )
        return matched

    async def record_file_event(self, slug: str, event: EnrichedEvent) -> bool:
        matched = await self._files.increment(slug, build_file_update(event, self._clock()))
        log.info("file_event_recorded", slug=slug, matched=matched)
        return matched

    async def record_file_download(self, slug: str) -> None:
        """Count one download. Runs after the response is sent; never raises."""
        try:
            await self._files.increment(slug, build_download_update(self._clock()))
        except Exception as e:
            log.error(
                "file_download_count_failed",
                slug=slug,
                error=str(e),
                error_type=type(e).__name__,
            )
