"""
Shared test fixtures.

- Patches dotenv so pydantic-settings never reads the project's real .env
  file. Tests control config exclusively through monkeypatch.setenv() or
  explicit constructor arguments.
- Provides an in-memory MongoDB: mongomock behind a thin adapter exposing
  the awaitable surface of pymongo's async API that the repositories use.
- Provides a controllable clock.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any

import mongomock
import pytest

from config import DatabaseSettings
from infrastructure.database import MongoConnection


@pytest.fixture(autouse=True)
def disable_dotenv_loading(monkeypatch):
    """Prevent pydantic-settings from loading .env files in all tests."""
    import pydantic_settings.sources.providers.dotenv as ps_dotenv

    monkeypatch.setattr(ps_dotenv, "dotenv_values", lambda *a, **kw: {})


# ── In-memory MongoDB ─────────────────────────────────────────────────────────


def _to_bson_time(value: Any) -> Any:
    """Aware datetimes → naive UTC, the form mongomock stores and compares."""
    if isinstance(value, datetime) and value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    if isinstance(value, dict):
        return {k: _to_bson_time(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_to_bson_time(v) for v in value]
    return value


class AsyncMockCursor:
    def __init__(self, cursor) -> None:
        self._cursor = cursor

    def sort(self, *args, **kwargs) -> "AsyncMockCursor":
        self._cursor = self._cursor.sort(*args, **kwargs)
        return self

    def skip(self, n: int) -> "AsyncMockCursor":
        self._cursor = self._cursor.skip(n)
        return self

    def limit(self, n: int) -> "AsyncMockCursor":
        self._cursor = self._cursor.limit(n)
        return self

    async def to_list(self, length=None) -> list[dict]:
        docs = list(self._cursor)
        return docs if length is None else docs[:length]


class AsyncMockCollection:
    """Awaitable wrapper over a mongomock collection."""

    def __init__(self, collection) -> None:
        self.sync = collection

    def find(self, filter=None, *args, **kwargs) -> AsyncMockCursor:
        return AsyncMockCursor(self.sync.find(_to_bson_time(filter), *args, **kwargs))

    def __getattr__(self, name: str):
        method = getattr(self.sync, name)

        async def call(*args, **kwargs):
            return method(*_to_bson_time(list(args)), **kwargs)

        return call


class AsyncMockDatabase:
    def __init__(self, db) -> None:
        self._db = db
        self._collections: dict[str, AsyncMockCollection] = {}

    def __getitem__(self, name: str) -> AsyncMockCollection:
        if name not in self._collections:
            self._collections[name] = AsyncMockCollection(self._db[name])
        return self._collections[name]


class _AsyncAdmin:
    def __init__(self, client: "AsyncMockClient") -> None:
        self._client = client

    async def command(self, name: str, *args, **kwargs) -> dict:
        if not self._client.available:
            raise ConnectionError("connection refused")
        return {"ok": 1}


class AsyncMockClient:
    """Stands in for AsyncMongoClient; flip ``available`` to simulate an outage."""

    def __init__(self) -> None:
        self._client = mongomock.MongoClient()
        self._databases: dict[str, AsyncMockDatabase] = {}
        self.admin = _AsyncAdmin(self)
        self.available = True
        self.closed = False

    def __getitem__(self, name: str) -> AsyncMockDatabase:
        if name not in self._databases:
            self._databases[name] = AsyncMockDatabase(self._client[name])
        return self._databases[name]

    async def close(self) -> None:
        self.closed = True


@pytest.fixture
def mongo_client() -> AsyncMockClient:
    return AsyncMockClient()


@pytest.fixture
def db(mongo_client):
    return mongo_client["urlshortener_test"]


@pytest.fixture
def mongo_connection(mongo_client) -> MongoConnection:
    settings = DatabaseSettings(db_name="urlshortener_test")
    return MongoConnection(settings, client_factory=lambda _settings: mongo_client)


# ── Clock ─────────────────────────────────────────────────────────────────────


class FakeClock:
    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


@pytest.fixture
def clock() -> FakeClock:
    # A Wednesday
    return FakeClock(datetime(2024, 5, 1, 13, 30, 0, tzinfo=timezone.utc))
