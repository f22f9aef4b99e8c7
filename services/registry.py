"""
Link and file registry: slug lifecycle for short links and uploaded files.

Links and files share one slug namespace; a slug is free only when neither
collection holds it. Expiry is checked lazily on every resolve (an expired
entity is reported as expired, not deleted) and enforced physically only by
``sweep_expired`` or an explicit delete.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional, Sequence

from pymongo.errors import DuplicateKeyError

from errors import ConflictError, ExpiredError, NotFoundError, ValidationError
from repositories.file_repository import FileRepository
from repositories.link_repository import LinkRepository
from schemas.models.file import UploadedFileDoc
from schemas.models.link import ShortLinkDoc
from services.click_log import ClickLog
from shared.crypto import compute_etag
from shared.datetime_utils import (
    expires_at_from_hours,
    expires_at_from_token,
    is_expired,
    truncate_to_millis,
    utc_now,
)
from shared.generators import FILE_SLUG_LENGTH, LINK_SLUG_LENGTH, generate_slug
from shared.logging import get_logger
from shared.validators import is_image_mime, normalize_url, validate_slug

log = get_logger(__name__)

SLUG_TAKEN_MESSAGE = "This custom path is already taken"
GENERATE_ATTEMPTS = 5


@dataclass
class SweepResult:
    links: int = 0
    events: int = 0
    files: int = 0


def link_short_url(base_url: str, slug: str) -> str:
    return f"{base_url}/{slug}"


def file_short_url(base_url: str, file: UploadedFileDoc) -> str:
    prefix = "i" if file.type == "image" else "f"
    return f"{base_url}/{prefix}/{file.slug}"


class Registry:
    def __init__(
        self,
        links: LinkRepository,
        files: FileRepository,
        click_log: ClickLog,
        *,
        allowed_mime_types: Sequence[str] = (),
        max_upload_bytes: Optional[int] = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._links = links
        self._files = files
        self._click_log = click_log
        self._allowed_mime_types = frozenset(allowed_mime_types)
        self._max_upload_bytes = max_upload_bytes
        self._clock = clock

    def _now(self) -> datetime:
        return truncate_to_millis(self._clock())

    async def slug_taken(self, slug: str) -> bool:
        return await self._links.exists(slug) or await self._files.exists(slug)

    async def _claim_slug(self, custom: Optional[str], length: int) -> str:
        if custom:
            if not validate_slug(custom):
                raise ValidationError(
                    "Custom path can only contain letters, numbers, hyphens and underscores",
                    field="slug",
                )
            if await self.slug_taken(custom):
                raise ConflictError(SLUG_TAKEN_MESSAGE, field="slug")
            return custom

        for _ in range(GENERATE_ATTEMPTS):
            slug = generate_slug(length)
            if not await self.slug_taken(slug):
                return slug
        raise ConflictError("Could not allocate a free path, please retry")

    # ── Links ────────────────────────────────────────────────────────────────

    async def create_link(
        self,
        url: Optional[str],
        slug: Optional[str] = None,
        expires_in: Optional[str] = None,
    ) -> ShortLinkDoc:
        if not url or not url.strip():
            raise ValidationError("URL is required", field="url")

        claimed = await self._claim_slug(slug, LINK_SLUG_LENGTH)
        now = self._now()
        link = ShortLinkDoc(
            slug=claimed,
            original_url=normalize_url(url),
            created_at=now,
            expires_at=expires_at_from_token(expires_in, now),
        )
        try:
            link = await self._links.insert(link)
        except DuplicateKeyError as e:
            raise ConflictError(SLUG_TAKEN_MESSAGE, field="slug") from e

        log.info(
            "link_created",
            slug=link.slug,
            custom_slug=bool(slug),
            expires_at=link.expires_at.isoformat() if link.expires_at else None,
        )
        return link

    async def resolve_link(self, slug: str) -> ShortLinkDoc:
        link = await self._links.get_by_slug(slug)
        if link is None:
            raise NotFoundError("URL not found")
        if is_expired(link.expires_at, self._clock()):
            raise ExpiredError("This link has expired")
        return link

    async def get_link(self, slug: str) -> ShortLinkDoc:
        """Look up a link regardless of expiry (owner-facing analytics)."""
        link = await self._links.get_by_slug(slug)
        if link is None:
            raise NotFoundError("URL not found")
        return link

    async def delete_link(self, slug: str) -> None:
        if not await self._links.delete_by_slug(slug):
            raise NotFoundError("URL not found")
        events = await self._click_log.delete_for([slug])
        log.info("link_deleted", slug=slug, events_deleted=events)

    async def list_links(self) -> list[ShortLinkDoc]:
        return await self._links.list_summaries()

    async def sweep_expired(self, *, include_files: bool = False) -> SweepResult:
        """Delete every entity whose expiry is in the past.

        Detail events of swept links go with them. Files are only swept when
        *include_files* is set.
        """
        now = self._clock()
        result = SweepResult()
        slugs = await self._links.find_expired_slugs(now)
        result.links = await self._links.delete_by_slugs(slugs)
        result.events = await self._click_log.delete_for(slugs)
        if include_files:
            result.files = await self._files.delete_expired(now)
        log.info(
            "expired_sweep_completed",
            links=result.links,
            events=result.events,
            files=result.files,
        )
        return result

    # ── Files ────────────────────────────────────────────────────────────────

    async def create_file(
        self,
        *,
        data: bytes,
        original_name: str,
        mime_type: str,
        custom_slug: Optional[str] = None,
        password: Optional[str] = None,
        expires_in: Optional[str] = None,
        max_downloads: Optional[str] = None,
    ) -> UploadedFileDoc:
        if self._allowed_mime_types and mime_type not in self._allowed_mime_types:
            raise ValidationError("File type not allowed", field="file")
        if self._max_upload_bytes is not None and len(data) > self._max_upload_bytes:
            raise ValidationError(
                "File is too large",
                field="file",
                details={"max_bytes": self._max_upload_bytes},
            )

        cap: Optional[int] = None
        if max_downloads not in (None, ""):
            try:
                cap = int(max_downloads)
            except (TypeError, ValueError):
                cap = 0
            if cap <= 0:
                raise ValidationError(
                    "maxDownloads must be a positive integer", field="maxDownloads"
                )

        custom = custom_slug.strip() if custom_slug else None
        slug = await self._claim_slug(custom, FILE_SLUG_LENGTH)
        now = self._now()
        file = UploadedFileDoc(
            slug=slug,
            original_name=original_name,
            mime_type=mime_type,
            size=len(data),
            type="image" if is_image_mime(mime_type) else "file",
            data=data,
            etag=compute_etag(data),
            created_at=now,
            expires_at=expires_at_from_hours(expires_in, now),
            password=password or None,
            max_downloads=cap,
        )
        try:
            file = await self._files.insert(file)
        except DuplicateKeyError as e:
            raise ConflictError(SLUG_TAKEN_MESSAGE, field="customSlug") from e

        log.info(
            "file_uploaded",
            slug=file.slug,
            size_kb=round(file.size / 1024, 1),
            mime_type=file.mime_type,
            has_password=file.has_password,
        )
        return file

    async def resolve_file(self, slug: str, *, include_data: bool = False) -> UploadedFileDoc:
        file = await self._files.get_by_slug(slug, include_data=include_data)
        if file is None:
            raise NotFoundError("File not found")
        if is_expired(file.expires_at, self._clock()):
            raise ExpiredError("This file has expired")
        return file

    async def get_file(self, slug: str) -> UploadedFileDoc:
        """Look up a file regardless of expiry (owner-facing stats)."""
        file = await self._files.get_by_slug(slug)
        if file is None:
            raise NotFoundError("File not found")
        return file

    async def open_file_info(self, slug: str) -> UploadedFileDoc:
        """Resolve a file for its info page and count the view."""
        await self.resolve_file(slug)
        file = await self._files.increment_and_get(slug, {"views": 1})
        if file is None:
            raise NotFoundError("File not found")
        return file

    async def delete_file(self, slug: str) -> None:
        if not await self._files.delete_by_slug(slug):
            raise NotFoundError("File not found")
        log.info("file_deleted", slug=slug)

    async def list_files(
        self, *, page: int = 1, limit: int = 20, search: str = ""
    ) -> tuple[list[UploadedFileDoc], int]:
        if page < 1:
            raise ValidationError("page must be at least 1", field="page")
        if limit < 1 or limit > 100:
            raise ValidationError("limit must be between 1 and 100", field="limit")
        return await self._files.list_page(page=page, limit=limit, search=search)

    def is_expired(self, expires_at: Optional[datetime]) -> bool:
        return is_expired(expires_at, self._clock())
