"""
Data access for the `urls` collection (short links).
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pymongo.asynchronous.database import AsyncDatabase

from infrastructure.database import LINKS_COLLECTION
from schemas.models.link import ShortLinkDoc

SUMMARY_PROJECTION = {
    "slug": 1,
    "originalUrl": 1,
    "createdAt": 1,
    "expiresAt": 1,
    "clicks": 1,
}


class LinkRepository:
    def __init__(self, db: AsyncDatabase) -> None:
        self._col = db[LINKS_COLLECTION]

    async def get_by_slug(self, slug: str) -> Optional[ShortLinkDoc]:
        doc = await self._col.find_one({"slug": slug})
        return ShortLinkDoc.from_mongo(doc)

    async def exists(self, slug: str) -> bool:
        doc = await self._col.find_one({"slug": slug}, {"_id": 1})
        return doc is not None

    async def insert(self, link: ShortLinkDoc) -> ShortLinkDoc:
        result = await self._col.insert_one(link.to_mongo())
        return link.model_copy(update={"id": result.inserted_id})

    async def increment(self, slug: str, inc: dict[str, int]) -> bool:
        """Apply one atomic ``$inc`` document. Returns False if no link matched."""
        result = await self._col.update_one({"slug": slug}, {"$inc": inc})
        return result.matched_count > 0

    async def delete_by_slug(self, slug: str) -> bool:
        result = await self._col.delete_one({"slug": slug})
        return result.deleted_count > 0

    async def find_expired_slugs(self, now: datetime) -> list[str]:
        cursor = self._col.find({"expiresAt": {"$lt": now}}, {"slug": 1})
        return [doc["slug"] for doc in await cursor.to_list(length=None)]

    async def delete_by_slugs(self, slugs: list[str]) -> int:
        if not slugs:
            return 0
        result = await self._col.delete_many({"slug": {"$in": slugs}})
        return result.deleted_count

    async def list_summaries(self) -> list[ShortLinkDoc]:
        cursor = self._col.find({}, SUMMARY_PROJECTION).sort("createdAt", -1)
        return [ShortLinkDoc.from_mongo(doc) for doc in await cursor.to_list(length=None)]
