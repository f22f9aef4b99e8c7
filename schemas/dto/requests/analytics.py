"""
Request DTOs for client-side analytics submissions.

ClientAnalyticsPayload — POST /api/analytics/{slug}
                         POST /api/file/{slug}/analytics

Every field is optional; what is absent is derived server-side by the
enrichment resolver. A field the client got wrong is dropped rather than
failing the tracked event (see ``ClientAnalyticsPayload.lenient``). Keys are camelCase, matching what the browser script
sends.
"""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator


class ClientAnalyticsPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    user_agent: Optional[str] = Field(default=None, alias="userAgent")
    referer: Optional[str] = None
    client_ip: Optional[str] = Field(default=None, alias="clientIp")

    browser: Optional[str] = None
    browser_version: Optional[str] = Field(default=None, alias="browserVersion")
    os: Optional[str] = None
    os_version: Optional[str] = Field(default=None, alias="osVersion")
    device_type: Optional[str] = Field(default=None, alias="deviceType")
    device_model: Optional[str] = Field(default=None, alias="deviceModel")
    is_mobile: Optional[bool] = Field(default=None, alias="isMobile")
    is_tablet: Optional[bool] = Field(default=None, alias="isTablet")
    is_desktop: Optional[bool] = Field(default=None, alias="isDesktop")

    country: Optional[str] = None
    region_name: Optional[str] = Field(default=None, alias="regionName")
    region: Optional[str] = None
    city: Optional[str] = None

    language: Optional[str] = None
    timezone: Optional[str] = None
    screen_width: Optional[int] = Field(default=None, alias="screenWidth")
    screen_height: Optional[int] = Field(default=None, alias="screenHeight")
    platform: Optional[str] = None
    is_in_app_browser: Optional[bool] = Field(default=None, alias="isInAppBrowser")
    app_name: Optional[str] = Field(default=None, alias="appName")
    connection_type: Optional[str] = Field(default=None, alias="connectionType")
    is_bot: Optional[bool] = Field(default=None, alias="isBot")
    visitor_id: Optional[str] = Field(default=None, alias="visitorId")
    prefers_dark_mode: Optional[bool] = Field(default=None, alias="prefersDarkMode")

    utm_source: Optional[str] = Field(default=None, alias="utmSource")
    utm_medium: Optional[str] = Field(default=None, alias="utmMedium")
    utm_campaign: Optional[str] = Field(default=None, alias="utmCampaign")
    utm_term: Optional[str] = Field(default=None, alias="utmTerm")
    utm_content: Optional[str] = Field(default=None, alias="utmContent")

    @field_validator("screen_width", "screen_height", mode="before")
    @classmethod
    def _round_dimension(cls, v):
        # Some browsers report fractional CSS pixels
        if isinstance(v, float):
            return round(v)
        return v

    @classmethod
    def lenient(cls, data: Any) -> "ClientAnalyticsPayload":
        """Validate ``data``, dropping each top-level field that fails.

        Anything other than a JSON object yields an empty payload.
        """
        if not isinstance(data, dict):
            return cls()
        data = dict(data)
        while True:
            try:
                return cls.model_validate(data)
            except ValidationError as exc:
                bad = {err["loc"][0] for err in exc.errors() if err["loc"]}
                bad &= set(data)
                if not bad:
                    return cls()
                for key in bad:
                    del data[key]
