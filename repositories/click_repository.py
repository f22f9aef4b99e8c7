"""
Data access for the `clickevents` collection (detail event log).
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pymongo.asynchronous.database import AsyncDatabase

from infrastructure.database import CLICK_EVENTS_COLLECTION
from schemas.models.click import ClickEventDoc


def build_range_query(
    slug: str, start: Optional[datetime] = None, end: Optional[datetime] = None
) -> dict:
    """Filter on slug, optionally bounded by an inclusive timestamp range."""
    query: dict = {"slug": slug}
    if start is not None or end is not None:
        query["timestamp"] = {}
        if start is not None:
            query["timestamp"]["$gte"] = start
        if end is not None:
            query["timestamp"]["$lte"] = end
    return query


class ClickEventRepository:
    def __init__(self, db: AsyncDatabase) -> None:
        self._col = db[CLICK_EVENTS_COLLECTION]

    async def insert(self, event: ClickEventDoc) -> ClickEventDoc:
        result = await self._col.insert_one(event.to_mongo())
        return event.model_copy(update={"id": result.inserted_id})

    async def find(
        self,
        slug: str,
        *,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        skip: int = 0,
        limit: int = 50,
    ) -> list[ClickEventDoc]:
        cursor = (
            self._col.find(build_range_query(slug, start, end))
            .sort("timestamp", -1)
            .skip(skip)
            .limit(limit)
        )
        return [ClickEventDoc.from_mongo(doc) for doc in await cursor.to_list(length=None)]

    async def count(
        self,
        slug: str,
        *,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> int:
        return await self._col.count_documents(build_range_query(slug, start, end))

    async def delete_by_slugs(self, slugs: list[str]) -> int:
        if not slugs:
            return 0
        result = await self._col.delete_many({"slug": {"$in": slugs}})
        return result.deleted_count
