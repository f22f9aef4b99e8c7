"""
Enrichment resolver: reconciles client telemetry with server-side signals.

Resolution policy, per field group:

- Browser / OS / device: a client payload naming a browser (anything but
  ``"Unknown"``) is trusted as a whole group. Otherwise the ``User-Agent``
  header is parsed and the whole group comes from the parser.
- Location: a client-supplied country brings its region and city along.
  Otherwise the client IP, when there is one, goes through the GeoIP
  lookup; fields the lookup cannot fill stay ``None``.
- Everything else (screen, timezone, platform, in-app browser, connection,
  bot flag, dark mode, visitor id) is client-only. UTM values fall back to
  the ``utm_*`` query-string parameters.

Lookup and URL-parsing failures degrade to the defaults and are logged;
``resolve`` never raises because of them.
"""

from __future__ import annotations

from typing import Awaitable, Callable, Mapping, Optional
from urllib.parse import urlsplit

from infrastructure.geoip import GeoLocation
from infrastructure.user_agent import ParsedUserAgent
from schemas.dto.requests.analytics import ClientAnalyticsPayload
from schemas.models.event import DIRECT, UNKNOWN, EnrichedEvent
from shared.ip_utils import first_forwarded_ip, resolve_client_ip
from shared.logging import get_logger, hash_ip

log = get_logger(__name__)

UserAgentParseFn = Callable[[str], ParsedUserAgent]
GeoLookupFn = Callable[[str], Awaitable[GeoLocation]]

UTM_FIELDS = ("source", "medium", "campaign", "term", "content")


def primary_language(value: Optional[str]) -> Optional[str]:
    """``"en-US,en;q=0.9"`` → ``"en"``."""
    if not value:
        return None
    language = value.split(",")[0].split(";")[0].split("-")[0].strip()
    return language or None


def referrer_host(referer: Optional[str]) -> str:
    """Hostname of a referrer URL, ``"direct"`` when absent or unparseable."""
    if not referer or referer == DIRECT:
        return DIRECT
    try:
        host = urlsplit(referer).hostname
    except ValueError as e:
        log.debug("referrer_parse_failed", error=str(e))
        return DIRECT
    return host or DIRECT


class EnrichmentResolver:
    def __init__(self, parse_user_agent: UserAgentParseFn, geo_lookup: GeoLookupFn) -> None:
        self._parse_user_agent = parse_user_agent
        self._geo_lookup = geo_lookup

    async def resolve(
        self,
        payload: Optional[ClientAnalyticsPayload],
        headers: Mapping[str, str],
        remote_addr: Optional[str] = None,
        query: Optional[Mapping[str, str]] = None,
    ) -> EnrichedEvent:
        client = payload or ClientAnalyticsPayload()
        query = query or {}

        user_agent = client.user_agent or headers.get("user-agent") or ""
        referer = client.referer or headers.get("referer") or DIRECT
        ip = first_forwarded_ip(client.client_ip) or resolve_client_ip(headers, remote_addr)

        fields: dict = {
            "ip": ip,
            "user_agent": user_agent,
            "referer": referer,
            "referrer_host": referrer_host(referer),
        }
        fields.update(self._device_fields(client, user_agent))
        fields.update(await self._location_fields(client, ip))
        fields["language"] = primary_language(
            client.language or headers.get("accept-language")
        )

        fields.update(
            timezone=client.timezone or None,
            screen_width=client.screen_width,
            screen_height=client.screen_height,
            platform=client.platform or None,
            in_app_browser=(client.app_name or None) if client.is_in_app_browser else None,
            connection_type=client.connection_type or None,
            is_bot=client.is_bot,
            prefers_dark_mode=client.prefers_dark_mode,
            visitor_id=client.visitor_id or None,
        )
        for name in UTM_FIELDS:
            fields[f"utm_{name}"] = getattr(client, f"utm_{name}") or query.get(f"utm_{name}") or None

        return EnrichedEvent(**fields)

    def _device_fields(self, client: ClientAnalyticsPayload, user_agent: str) -> dict:
        if client.browser and client.browser != UNKNOWN:
            return {
                "browser": client.browser,
                "browser_version": client.browser_version or UNKNOWN,
                "os": client.os or UNKNOWN,
                "os_version": client.os_version or UNKNOWN,
                "device_type": client.device_type or "desktop",
                "device_model": client.device_model or UNKNOWN,
                "is_mobile": bool(client.is_mobile),
                "is_tablet": bool(client.is_tablet),
                "is_desktop": True if client.is_desktop is None else client.is_desktop,
            }

        parsed = ParsedUserAgent()
        if user_agent:
            try:
                parsed = self._parse_user_agent(user_agent)
            except Exception as e:
                log.warning(
                    "user_agent_parse_failed",
                    error=str(e),
                    error_type=type(e).__name__,
                )
        return {
            "browser": parsed.browser,
            "browser_version": parsed.browser_version,
            "os": parsed.os,
            "os_version": parsed.os_version,
            "device_type": parsed.device_type,
            "device_model": parsed.device_model,
            "is_mobile": parsed.is_mobile,
            "is_tablet": parsed.is_tablet,
            "is_desktop": parsed.is_desktop,
        }

    async def _location_fields(self, client: ClientAnalyticsPayload, ip: Optional[str]) -> dict:
        if client.country:
            return {
                "country": client.country,
                "region": client.region_name or client.region or None,
                "city": client.city or None,
            }

        location = GeoLocation()
        if ip:
            try:
                location = await self._geo_lookup(ip)
            except Exception as e:
                log.warning(
                    "geo_lookup_failed",
                    ip=hash_ip(ip),
                    error=str(e),
                    error_type=type(e).__name__,
                )
        return {
            "country": location.country,
            "region": location.region,
            "city": location.city,
        }
