"""Unit tests for services.registry (links and files)."""

from datetime import timedelta

import pytest

from errors import ConflictError, ExpiredError, NotFoundError, ValidationError
from repositories.click_repository import ClickEventRepository
from repositories.file_repository import FileRepository
from repositories.link_repository import LinkRepository
from schemas.models.event import EnrichedEvent
from services.click_log import ClickLog
from services.registry import Registry, file_short_url, link_short_url
from shared.generators import FILE_SLUG_LENGTH, LINK_SLUG_LENGTH


@pytest.fixture
def registry(db, clock) -> Registry:
    return Registry(
        LinkRepository(db),
        FileRepository(db),
        ClickLog(ClickEventRepository(db), clock=clock),
        allowed_mime_types=["text/plain", "image/png"],
        max_upload_bytes=1024,
        clock=clock,
    )


async def _upload(registry, **overrides):
    kwargs = dict(data=b"0123456789", original_name="notes.txt", mime_type="text/plain")
    kwargs.update(overrides)
    return await registry.create_file(**kwargs)


class TestShortUrls:
    def test_link(self):
        assert link_short_url("https://h4a.us", "abc") == "https://h4a.us/abc"

    async def test_file_prefixes(self, registry):
        image = await _upload(registry, original_name="a.png", mime_type="image/png")
        doc = await _upload(registry)
        assert file_short_url("https://h4a.us", image) == f"https://h4a.us/i/{image.slug}"
        assert file_short_url("https://h4a.us", doc) == f"https://h4a.us/f/{doc.slug}"


class TestCreateLink:
    async def test_generated_slug(self, registry):
        link = await registry.create_link("example.com")
        assert len(link.slug) == LINK_SLUG_LENGTH
        assert link.original_url == "https://example.com"
        assert link.expires_at is None
        assert link.clicks == 0

    async def test_custom_slug(self, registry):
        link = await registry.create_link("https://example.com", slug="my-link")
        assert link.slug == "my-link"

    async def test_http_scheme_kept(self, registry):
        link = await registry.create_link("http://example.com")
        assert link.original_url == "http://example.com"

    @pytest.mark.parametrize("url", [None, "", "   "])
    async def test_missing_url(self, registry, url):
        with pytest.raises(ValidationError):
            await registry.create_link(url)

    async def test_bad_custom_slug(self, registry):
        with pytest.raises(ValidationError) as exc:
            await registry.create_link("example.com", slug="no spaces!")
        assert exc.value.field == "slug"

    async def test_unknown_expiry_never_expires(self, registry):
        link = await registry.create_link("example.com", expires_in="2w")
        assert link.expires_at is None

    async def test_slug_conflict(self, registry):
        await registry.create_link("example.com", slug="taken")
        with pytest.raises(ConflictError):
            await registry.create_link("other.com", slug="taken")

    async def test_slug_shared_with_files(self, registry):
        await _upload(registry, custom_slug="shared")
        with pytest.raises(ConflictError):
            await registry.create_link("example.com", slug="shared")

    async def test_one_hour_expiry_is_exact(self, registry, clock):
        link = await registry.create_link("example.com", expires_in="1h")
        delta = link.expires_at - link.created_at
        assert delta / timedelta(milliseconds=1) == 3_600_000
        assert link.created_at == clock()


class TestResolveLink:
    async def test_resolve(self, registry):
        link = await registry.create_link("example.com", slug="abc")
        assert (await registry.resolve_link("abc")).original_url == link.original_url

    async def test_not_found(self, registry):
        with pytest.raises(NotFoundError):
            await registry.resolve_link("nope")

    async def test_expired_after_deadline(self, registry, clock):
        await registry.create_link("example.com", slug="abc", expires_in="1h")
        clock.advance(hours=1)
        await registry.resolve_link("abc")  # exactly at the deadline: still valid
        clock.advance(milliseconds=1)
        with pytest.raises(ExpiredError):
            await registry.resolve_link("abc")

    async def test_expired_is_idempotent(self, registry, clock):
        await registry.create_link("example.com", slug="abc", expires_in="1h")
        clock.advance(hours=2)
        for _ in range(3):
            with pytest.raises(ExpiredError):
                await registry.resolve_link("abc")
        # lazily checked only: the record is still there
        assert (await registry.get_link("abc")).slug == "abc"


class TestDeleteAndSweep:
    async def test_delete_link_cascades_events(self, registry, db, clock):
        await registry.create_link("example.com", slug="abc")
        click_log = ClickLog(ClickEventRepository(db), clock=clock)
        await click_log.append("abc", EnrichedEvent())
        await registry.delete_link("abc")
        assert await click_log.count_by_slug("abc") == 0
        with pytest.raises(NotFoundError):
            await registry.get_link("abc")

    async def test_delete_missing_link(self, registry):
        with pytest.raises(NotFoundError):
            await registry.delete_link("nope")

    async def test_sweep_links_only_by_default(self, registry, db, clock):
        await registry.create_link("a.com", slug="old", expires_in="1h")
        await registry.create_link("b.com", slug="forever")
        await _upload(registry, custom_slug="oldfile", expires_in="1")
        click_log = ClickLog(ClickEventRepository(db), clock=clock)
        await click_log.append("old", EnrichedEvent())
        clock.advance(hours=2)

        result = await registry.sweep_expired()

        assert (result.links, result.events, result.files) == (1, 1, 0)
        assert await registry.slug_taken("forever")
        assert not await registry.slug_taken("old")
        assert await registry.slug_taken("oldfile")

    async def test_sweep_with_files(self, registry, clock):
        await _upload(registry, custom_slug="oldfile", expires_in="1")
        await _upload(registry, custom_slug="newfile")
        clock.advance(hours=2)
        result = await registry.sweep_expired(include_files=True)
        assert result.files == 1
        assert await registry.slug_taken("newfile")

    async def test_list_links(self, registry, clock):
        await registry.create_link("a.com", slug="first")
        clock.advance(minutes=1)
        await registry.create_link("b.com", slug="second")
        links = await registry.list_links()
        assert [link.slug for link in links] == ["second", "first"]


class TestCreateFile:
    async def test_text_file(self, registry):
        file = await _upload(registry)
        assert len(file.slug) == FILE_SLUG_LENGTH
        assert file.size == 10
        assert file.type == "file"
        assert file.has_password is False
        assert file.etag and len(file.etag) == 32

    async def test_image_type(self, registry):
        file = await _upload(registry, original_name="a.png", mime_type="image/png")
        assert file.type == "image"

    async def test_mime_not_allowed(self, registry):
        with pytest.raises(ValidationError):
            await _upload(registry, mime_type="application/x-msdownload")

    async def test_too_large(self, registry):
        with pytest.raises(ValidationError):
            await _upload(registry, data=b"x" * 1025)

    async def test_hours_expiry(self, registry, clock):
        file = await _upload(registry, expires_in="24")
        assert file.expires_at == clock() + timedelta(hours=24)

    async def test_token_expiry(self, registry, clock):
        file = await _upload(registry, expires_in="7d")
        assert file.expires_at == clock() + timedelta(days=7)

    async def test_max_downloads(self, registry):
        file = await _upload(registry, max_downloads="3")
        assert file.max_downloads == 3

    @pytest.mark.parametrize("value", ["0", "-1", "many"])
    async def test_bad_max_downloads(self, registry, value):
        with pytest.raises(ValidationError):
            await _upload(registry, max_downloads=value)

    async def test_custom_slug_conflict(self, registry):
        await _upload(registry, custom_slug="mine")
        with pytest.raises(ConflictError):
            await _upload(registry, custom_slug="mine")


class TestFileLookups:
    async def test_resolve_excludes_data_by_default(self, registry):
        file = await _upload(registry)
        assert (await registry.resolve_file(file.slug)).data is None
        assert (await registry.resolve_file(file.slug, include_data=True)).data == b"0123456789"

    async def test_resolve_expired(self, registry, clock):
        file = await _upload(registry, expires_in="1")
        clock.advance(hours=1, milliseconds=1)
        with pytest.raises(ExpiredError):
            await registry.resolve_file(file.slug)

    async def test_open_file_info_counts_views(self, registry):
        file = await _upload(registry)
        assert (await registry.open_file_info(file.slug)).views == 1
        assert (await registry.open_file_info(file.slug)).views == 2

    async def test_open_file_info_expired_not_counted(self, registry, clock):
        file = await _upload(registry, expires_in="1")
        clock.advance(hours=2)
        with pytest.raises(ExpiredError):
            await registry.open_file_info(file.slug)
        assert (await registry.get_file(file.slug)).views == 0

    async def test_delete_file(self, registry):
        file = await _upload(registry)
        await registry.delete_file(file.slug)
        with pytest.raises(NotFoundError):
            await registry.get_file(file.slug)
        with pytest.raises(NotFoundError):
            await registry.delete_file(file.slug)

    async def test_list_files_search(self, registry, clock):
        await _upload(registry, custom_slug="report", original_name="Q1.txt")
        clock.advance(minutes=1)
        await _upload(registry, custom_slug="photo", original_name="Holiday.png", mime_type="image/png")
        clock.advance(minutes=1)
        await _upload(registry, custom_slug="misc", original_name="holiday-notes.txt")

        files, total = await registry.list_files(search="HOLIDAY")
        assert total == 2
        assert [f.slug for f in files] == ["misc", "photo"]
        assert all(f.data is None for f in files)

    async def test_list_files_search_is_literal(self, registry):
        await _upload(registry, custom_slug="abc")
        files, total = await registry.list_files(search=".*")
        assert total == 0

    async def test_list_files_pagination(self, registry, clock):
        for _ in range(5):
            await _upload(registry)
            clock.advance(seconds=1)
        files, total = await registry.list_files(page=2, limit=2)
        assert total == 5
        assert len(files) == 2

    async def test_list_files_bad_limit(self, registry):
        with pytest.raises(ValidationError):
            await registry.list_files(limit=0)
