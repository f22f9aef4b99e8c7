"""
Canonical event fields produced by the enrichment resolver.

One EnrichedEvent is built per inbound click or file access, after client
telemetry has been reconciled with server-derived signals. Aggregation and
the detail log both consume this shape; neither looks at the raw payload.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict

UNKNOWN = "Unknown"
DIRECT = "direct"


class EnrichedEvent(BaseModel):
    model_config = ConfigDict(frozen=True)

    # Raw request context
    ip: Optional[str] = None
    user_agent: str = ""
    referer: str = DIRECT
    referrer_host: str = DIRECT

    # Browser / OS / device group
    browser: str = UNKNOWN
    browser_version: str = UNKNOWN
    os: str = UNKNOWN
    os_version: str = UNKNOWN
    device_type: str = "desktop"
    device_model: str = UNKNOWN
    is_mobile: bool = False
    is_tablet: bool = False
    is_desktop: bool = True

    # Location group
    country: Optional[str] = None
    region: Optional[str] = None
    city: Optional[str] = None

    # Client-only signals
    language: Optional[str] = None
    timezone: Optional[str] = None
    screen_width: Optional[int] = None
    screen_height: Optional[int] = None
    platform: Optional[str] = None
    in_app_browser: Optional[str] = None
    connection_type: Optional[str] = None
    is_bot: Optional[bool] = None
    prefers_dark_mode: Optional[bool] = None
    visitor_id: Optional[str] = None

    # Campaign tracking
    utm_source: Optional[str] = None
    utm_medium: Optional[str] = None
    utm_campaign: Optional[str] = None
    utm_term: Optional[str] = None
    utm_content: Optional[str] = None

    @property
    def screen_resolution(self) -> Optional[str]:
        if self.screen_width and self.screen_height:
            return f"{self.screen_width}x{self.screen_height}"
        return None

    @property
    def browser_key(self) -> str:
        return f"{self.browser} {self.browser_version}"

    @property
    def os_key(self) -> str:
        return f"{self.os} {self.os_version}"
