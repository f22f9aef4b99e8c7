"""
Event tracking entry points used by the analytics routes.

A link click runs: resolve (404/410) → enrich → {counter update, detail-log
append}. The two writes run concurrently and fail independently: a failure
in one is logged and does not roll back or block the other, and neither
reaches the caller.
"""

from __future__ import annotations

import asyncio
from typing import Mapping, Optional

from schemas.dto.requests.analytics import ClientAnalyticsPayload
from schemas.models.event import EnrichedEvent
from services.analytics import AnalyticsService
from services.click_log import ClickLog
from services.enrichment import EnrichmentResolver
from services.registry import Registry
from shared.logging import get_logger

log = get_logger(__name__)


class TrackingService:
    def __init__(
        self,
        registry: Registry,
        enrichment: EnrichmentResolver,
        analytics: AnalyticsService,
        click_log: ClickLog,
    ) -> None:
        self._registry = registry
        self._enrichment = enrichment
        self._analytics = analytics
        self._click_log = click_log

    async def track_link_click(
        self,
        slug: str,
        payload: Optional[ClientAnalyticsPayload],
        headers: Mapping[str, str],
        remote_addr: Optional[str] = None,
        query: Optional[Mapping[str, str]] = None,
    ) -> EnrichedEvent:
        await self._registry.resolve_link(slug)
        event = await self._enrichment.resolve(payload, headers, remote_addr, query)

        await asyncio.gather(
            self._record_link_counters(slug, event),
            self._click_log.append(slug, event),
        )
        return event

    async def _record_link_counters(self, slug: str, event: EnrichedEvent) -> None:
        try:
            await self._analytics.record_link_event(slug, event)
        except Exception as e:
            log.error(
                "link_counter_update_failed",
                slug=slug,
                error=str(e),
                error_type=type(e).__name__,
            )

    async def track_file_view(
        self,
        slug: str,
        payload: Optional[ClientAnalyticsPayload],
        headers: Mapping[str, str],
        remote_addr: Optional[str] = None,
    ) -> EnrichedEvent:
        await self._registry.get_file(slug)
        event = await self._enrichment.resolve(payload, headers, remote_addr)
        try:
            await self._analytics.record_file_event(slug, event)
        except Exception as e:
            log.error(
                "file_counter_update_failed",
                slug=slug,
                error=str(e),
                error_type=type(e).__name__,
            )
        return event
