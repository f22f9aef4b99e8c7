"""Unit tests for MongoDB document models."""

from datetime import datetime, timezone

import pytest
from bson import ObjectId

from schemas.models.base import MongoBaseModel, PyObjectId
from schemas.models.click import ClickEventDoc
from schemas.models.event import EnrichedEvent
from schemas.models.file import UploadedFileDoc
from schemas.models.link import LinkAnalytics, ShortLinkDoc
from shared.mongo_keys import encode_key


# ── Helpers ───────────────────────────────────────────────────────────────────

def now():
    return datetime(2024, 5, 1, 13, 30, tzinfo=timezone.utc)


# ── PyObjectId ────────────────────────────────────────────────────────────────

class TestPyObjectId:
    def test_accepts_objectid_instance(self):
        o = ObjectId()
        assert PyObjectId._validate(o) == o

    def test_accepts_valid_string(self):
        s = str(ObjectId())
        assert str(PyObjectId._validate(s)) == s

    def test_rejects_invalid_string(self):
        with pytest.raises(ValueError):
            PyObjectId._validate("not-an-id")


# ── MongoBaseModel ────────────────────────────────────────────────────────────

class TestMongoBaseModel:
    def test_from_mongo_none(self):
        assert ShortLinkDoc.from_mongo(None) is None

    def test_to_mongo_drops_missing_id(self):
        link = ShortLinkDoc(slug="abc", original_url="https://x.io", created_at=now())
        assert "_id" not in link.to_mongo()

    def test_to_mongo_keeps_id(self):
        o = ObjectId()
        link = ShortLinkDoc(_id=o, slug="abc", original_url="https://x.io", created_at=now())
        assert link.to_mongo()["_id"] == o

    def test_is_base(self):
        assert issubclass(ShortLinkDoc, MongoBaseModel)


# ── ShortLinkDoc ──────────────────────────────────────────────────────────────

class TestShortLinkDoc:
    def test_camelcase_storage_keys(self):
        doc = ShortLinkDoc(slug="abc", original_url="https://x.io", created_at=now()).to_mongo()
        assert doc["originalUrl"] == "https://x.io"
        assert doc["createdAt"] == now()
        assert doc["expiresAt"] is None
        assert doc["clicks"] == 0

    def test_device_types_seeded(self):
        analytics = LinkAnalytics()
        assert analytics.device_types == {"mobile": 0, "tablet": 0, "desktop": 0}

    def test_naive_datetimes_become_utc(self):
        link = ShortLinkDoc.from_mongo(
            {"slug": "abc", "originalUrl": "https://x.io", "createdAt": datetime(2024, 5, 1)}
        )
        assert link.created_at.tzinfo is not None
        assert link.created_at == datetime(2024, 5, 1, tzinfo=timezone.utc)

    def test_encoded_keys_decoded_on_read(self):
        link = ShortLinkDoc.from_mongo(
            {
                "slug": "abc",
                "originalUrl": "https://x.io",
                "createdAt": now(),
                "analytics": {"referrers": {encode_key("t.co"): 2}},
            }
        )
        assert link.analytics.referrers == {"t.co": 2}

    def test_unique_visitor_count(self):
        analytics = LinkAnalytics(uniqueVisitors={"v1": 3, "v2": 1})
        assert analytics.unique_visitor_count == 2

    def test_missing_analytics_defaults(self):
        link = ShortLinkDoc.from_mongo(
            {"slug": "abc", "originalUrl": "https://x.io", "createdAt": now()}
        )
        assert link.analytics.bot_clicks == 0
        assert link.analytics.browsers == {}


# ── UploadedFileDoc ───────────────────────────────────────────────────────────

class TestUploadedFileDoc:
    def _doc(self, **overrides):
        base = dict(
            slug="f1le5lug",
            original_name="a.txt",
            mime_type="text/plain",
            size=3,
            type="file",
            data=b"abc",
            created_at=now(),
        )
        base.update(overrides)
        return UploadedFileDoc(**base)

    def test_has_password(self):
        assert self._doc().has_password is False
        assert self._doc(password="pw").has_password is True

    def test_storage_keys(self):
        doc = self._doc().to_mongo()
        assert doc["originalName"] == "a.txt"
        assert doc["mimeType"] == "text/plain"
        assert doc["data"] == b"abc"
        assert doc["downloads"] == 0
        assert doc["views"] == 0
        assert "viewsByDate" in doc["analytics"]

    def test_rejects_unknown_type(self):
        with pytest.raises(ValueError):
            self._doc(type="video")


# ── ClickEventDoc ─────────────────────────────────────────────────────────────

class TestClickEventDoc:
    def test_storage_keys(self):
        doc = ClickEventDoc(
            slug="abc",
            timestamp=now(),
            user_agent="ua",
            hour_of_day=13,
            day_of_week=3,
        ).to_mongo()
        assert doc["userAgent"] == "ua"
        assert doc["hourOfDay"] == 13
        assert doc["dayOfWeek"] == 3
        assert doc["isDesktop"] is True


# ── EnrichedEvent ─────────────────────────────────────────────────────────────

class TestEnrichedEvent:
    def test_defaults(self):
        e = EnrichedEvent()
        assert e.browser == "Unknown"
        assert e.referrer_host == "direct"
        assert e.is_desktop is True

    def test_screen_resolution(self):
        assert EnrichedEvent(screen_width=1920, screen_height=1080).screen_resolution == "1920x1080"
        assert EnrichedEvent(screen_width=1920).screen_resolution is None

    def test_version_keys(self):
        e = EnrichedEvent(browser="Chrome", browser_version="120", os="Windows", os_version="10")
        assert e.browser_key == "Chrome 120"
        assert e.os_key == "Windows 10"

    def test_frozen(self):
        with pytest.raises(ValueError):
            EnrichedEvent().browser = "Firefox"
