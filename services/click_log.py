"""
Detail event log: one immutable record per tracked link click.

Appends never fail the caller; a write error is logged and dropped, the
click is still reflected in the aggregate counters.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional

from errors import ValidationError
from repositories.click_repository import ClickEventRepository
from schemas.models.click import ClickEventDoc
from schemas.models.event import EnrichedEvent
from shared.datetime_utils import js_day_of_week, utc_now
from shared.logging import get_logger

log = get_logger(__name__)

MAX_PAGE_SIZE = 500


@dataclass
class EventPage:
    events: list[ClickEventDoc]
    page: int
    limit: int
    total: int

    @property
    def pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.limit else 0


def build_click_event(slug: str, event: EnrichedEvent, timestamp: datetime) -> ClickEventDoc:
    return ClickEventDoc(
        slug=slug,
        timestamp=timestamp,
        ip=event.ip,
        user_agent=event.user_agent,
        referer=event.referer,
        browser=event.browser,
        browser_version=event.browser_version,
        os=event.os,
        os_version=event.os_version,
        device=event.device_type,
        device_model=event.device_model,
        country=event.country,
        region=event.region,
        city=event.city,
        screen_width=event.screen_width,
        screen_height=event.screen_height,
        language=event.language,
        timezone=event.timezone,
        utm_source=event.utm_source,
        utm_medium=event.utm_medium,
        utm_campaign=event.utm_campaign,
        utm_term=event.utm_term,
        utm_content=event.utm_content,
        hour_of_day=timestamp.hour,
        day_of_week=js_day_of_week(timestamp),
        is_mobile=event.is_mobile,
        is_tablet=event.is_tablet,
        is_desktop=event.is_desktop,
    )


class ClickLog:
    def __init__(
        self,
        repository: ClickEventRepository,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._repo = repository
        self._clock = clock

    async def append(self, slug: str, event: EnrichedEvent) -> Optional[ClickEventDoc]:
        """Store one click. Returns None (and logs) when the write fails."""
        try:
            return await self._repo.insert(build_click_event(slug, event, self._clock()))
        except Exception as e:
            log.error(
                "click_event_write_failed",
                slug=slug,
                error=str(e),
                error_type=type(e).__name__,
            )
            return None

    async def query(
        self,
        slug: str,
        *,
        page: int = 1,
        limit: int = 50,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> EventPage:
        """Newest-first page of events for *slug*, optionally date-bounded."""
        if page < 1:
            raise ValidationError("page must be at least 1", field="page")
        if limit < 1 or limit > MAX_PAGE_SIZE:
            raise ValidationError(
                f"limit must be between 1 and {MAX_PAGE_SIZE}", field="limit"
            )
        if start is not None and end is not None and start > end:
            raise ValidationError("startDate must not be after endDate", field="startDate")

        events = await self._repo.find(
            slug, start=start, end=end, skip=(page - 1) * limit, limit=limit
        )
        total = await self._repo.count(slug, start=start, end=end)
        return EventPage(events=events, page=page, limit=limit, total=total)

    async def latest(self, slug: str, limit: int = 100) -> list[ClickEventDoc]:
        return await self._repo.find(slug, limit=max(1, min(limit, MAX_PAGE_SIZE)))

    async def count_by_slug(self, slug: str) -> int:
        return await self._repo.count(slug)

    async def delete_for(self, slugs: list[str]) -> int:
        return await self._repo.delete_by_slugs(slugs)
