"""Process-scoped MongoDB connection with lazy, de-duplicated connect.

The first request that needs storage triggers the connect; concurrent
requests arriving while it is in flight await the same task instead of
opening their own. A failed connect leaves the state at FAILED and the
next ``ensure_ready()`` call tries again.
"""

from __future__ import annotations

import asyncio
import enum
from typing import Any, Callable, Optional

from pymongo import ASCENDING, DESCENDING
from pymongo.asynchronous.database import AsyncDatabase
from pymongo.asynchronous.mongo_client import AsyncMongoClient

from config import DatabaseSettings
from errors import StorageUnavailableError
from shared.logging import get_logger

log = get_logger(__name__)

LINKS_COLLECTION = "urls"
FILES_COLLECTION = "files"
CLICK_EVENTS_COLLECTION = "clickevents"


class ConnectionState(str, enum.Enum):
    UNINITIALIZED = "uninitialized"
    CONNECTING = "connecting"
    READY = "ready"
    FAILED = "failed"


async def ensure_indexes(db: AsyncDatabase) -> None:
    """Create the indexes lookups depend on. Idempotent."""
    links = db[LINKS_COLLECTION]
    await links.create_index([("slug", ASCENDING)], unique=True)
    await links.create_index([("expiresAt", ASCENDING)])

    files = db[FILES_COLLECTION]
    await files.create_index([("slug", ASCENDING)], unique=True)
    await files.create_index([("createdAt", DESCENDING)])

    events = db[CLICK_EVENTS_COLLECTION]
    await events.create_index([("slug", ASCENDING)])
    await events.create_index([("slug", ASCENDING), ("timestamp", DESCENDING)])


def _default_client_factory(settings: DatabaseSettings) -> AsyncMongoClient:
    return AsyncMongoClient(
        settings.mongodb_uri,
        tz_aware=True,
        serverSelectionTimeoutMS=settings.server_selection_timeout_ms,
        socketTimeoutMS=settings.socket_timeout_ms,
        maxPoolSize=settings.max_pool_size,
        minPoolSize=settings.min_pool_size,
        maxIdleTimeMS=settings.max_idle_time_ms,
    )


class MongoConnection:
    def __init__(
        self,
        settings: DatabaseSettings,
        client_factory: Callable[[DatabaseSettings], Any] = _default_client_factory,
    ) -> None:
        self._settings = settings
        self._client_factory = client_factory
        self._client: Optional[Any] = None
        self._db: Optional[AsyncDatabase] = None
        self._pending: Optional[asyncio.Task] = None
        self.state = ConnectionState.UNINITIALIZED

    @property
    def is_ready(self) -> bool:
        return self.state is ConnectionState.READY

    async def _connect(self) -> AsyncDatabase:
        if self._client is None:
            self._client = self._client_factory(self._settings)
        db = self._client[self._settings.db_name]
        await self._client.admin.command("ping")
        await ensure_indexes(db)
        return db

    async def ensure_ready(self) -> AsyncDatabase:
        """Return the database handle, connecting first if needed.

        Raises:
            StorageUnavailableError: the connect or ping failed.
        """
        if self.state is ConnectionState.READY and self._db is not None:
            return self._db

        if self._pending is None:
            self.state = ConnectionState.CONNECTING
            self._pending = asyncio.ensure_future(self._connect())

        pending = self._pending
        try:
            db = await asyncio.shield(pending)
        except Exception as e:
            if self._pending is pending:
                self._pending = None
                self.state = ConnectionState.FAILED
                log.error(
                    "mongodb_connection_failed",
                    error=str(e),
                    error_type=type(e).__name__,
                )
            raise StorageUnavailableError(
                "Database connection failed. Please try again."
            ) from e

        if self._pending is pending:
            self._pending = None
            self._db = db
            self.state = ConnectionState.READY
            log.info("mongodb_connected", db_name=self._settings.db_name)
        return db

    async def ping(self) -> bool:
        if self._client is None:
            return False
        try:
            await self._client.admin.command("ping")
            return True
        except Exception as e:
            log.warning("mongodb_ping_failed", error=str(e))
            self.state = ConnectionState.FAILED
            self._db = None
            return False

    async def close(self) -> None:
        if self._client is not None:
            await self._client.close()
        self._client = None
        self._db = None
        self._pending = None
        self.state = ConnectionState.UNINITIALIZED
