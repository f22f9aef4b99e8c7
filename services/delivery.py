"""
Delivery gate for file downloads.

Gate order for GET /api/file/{slug}/download:

    resolve → not found (404) → expired (410) → wrong password (401)
            → payload missing (404) → If-None-Match hit (304, no body)
            → 200 with caching headers and the stored bytes

Expiry is checked before the password, so an expired file answers 410
whatever credential is supplied. The download counter is not touched here:
the route schedules ``record_download`` to run after the response is sent.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional
from urllib.parse import quote

from errors import AuthorizationError, NotFoundError
from services.analytics import AnalyticsService
from services.registry import Registry
from shared.crypto import passwords_match
from shared.datetime_utils import http_date
from shared.logging import get_logger

log = get_logger(__name__)

CACHE_CONTROL = "public, max-age=31536000, immutable"

# Characters JavaScript's encodeURIComponent leaves as-is
URI_COMPONENT_SAFE = "!~*'()"


@dataclass
class Delivery:
    slug: str
    status_code: int
    headers: dict[str, str] = field(default_factory=dict)
    body: bytes = b""

    @property
    def not_modified(self) -> bool:
        return self.status_code == 304


def quote_etag(etag: str) -> str:
    return f'"{etag}"'


def etag_matches(if_none_match: Optional[str], etag: Optional[str]) -> bool:
    """True when the ``If-None-Match`` header names the file's ETag."""
    if not if_none_match or not etag:
        return False
    quoted = quote_etag(etag)
    candidates = [tag.strip() for tag in if_none_match.split(",")]
    return any(tag == quoted or tag == f"W/{quoted}" for tag in candidates)


def content_disposition(filename: str) -> str:
    encoded = quote(filename, safe=URI_COMPONENT_SAFE)
    return f'inline; filename="{encoded}"'


class DeliveryGate:
    def __init__(self, registry: Registry, analytics: AnalyticsService) -> None:
        self._registry = registry
        self._analytics = analytics

    async def open(
        self,
        slug: str,
        *,
        password: Optional[str] = None,
        if_none_match: Optional[str] = None,
    ) -> Delivery:
        file = await self._registry.resolve_file(slug, include_data=True)

        if file.password and not passwords_match(file.password, password):
            log.info("file_download_denied", slug=slug, reason="invalid_password")
            raise AuthorizationError("Invalid password", field="password")

        if file.data is None:
            raise NotFoundError("File data not found")

        cache_headers = {
            "Cache-Control": CACHE_CONTROL,
            "Last-Modified": http_date(file.created_at),
        }
        if file.etag:
            cache_headers["ETag"] = quote_etag(file.etag)

        if etag_matches(if_none_match, file.etag):
            return Delivery(slug=slug, status_code=304, headers=cache_headers)

        headers = {
            "Content-Type": file.mime_type,
            "Content-Length": str(len(file.data)),
            "Content-Disposition": content_disposition(file.original_name),
            **cache_headers,
        }
        return Delivery(slug=slug, status_code=200, headers=headers, body=file.data)

    async def record_download(self, slug: str) -> None:
        """Fire-and-forget download count; failures are logged only."""
        await self._analytics.record_file_download(slug)
