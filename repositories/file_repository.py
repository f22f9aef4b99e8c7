"""
Data access for the `files` collection (uploaded files with inline data).
"""

from __future__ import annotations

import re
from datetime import datetime
from typing import Optional

from pymongo import ReturnDocument
from pymongo.asynchronous.database import AsyncDatabase

from infrastructure.database import FILES_COLLECTION
from schemas.models.file import UploadedFileDoc

WITHOUT_DATA = {"data": 0}
LISTING_PROJECTION = {"data": 0, "analytics": 0}


class FileRepository:
    def __init__(self, db: AsyncDatabase) -> None:
        self._col = db[FILES_COLLECTION]

    async def get_by_slug(
        self, slug: str, *, include_data: bool = False
    ) -> Optional[UploadedFileDoc]:
        projection = None if include_data else WITHOUT_DATA
        doc = await self._col.find_one({"slug": slug}, projection)
        return UploadedFileDoc.from_mongo(doc)

    async def exists(self, slug: str) -> bool:
        doc = await self._col.find_one({"slug": slug}, {"_id": 1})
        return doc is not None

    async def insert(self, file: UploadedFileDoc) -> UploadedFileDoc:
        result = await self._col.insert_one(file.to_mongo())
        return file.model_copy(update={"id": result.inserted_id})

    async def increment(self, slug: str, inc: dict[str, int]) -> bool:
        result = await self._col.update_one({"slug": slug}, {"$inc": inc})
        return result.matched_count > 0

    async def increment_and_get(
        self, slug: str, inc: dict[str, int]
    ) -> Optional[UploadedFileDoc]:
        """Apply ``$inc`` and return the updated document (without data)."""
        doc = await self._col.find_one_and_update(
            {"slug": slug},
            {"$inc": inc},
            projection=WITHOUT_DATA,
            return_document=ReturnDocument.AFTER,
        )
        return UploadedFileDoc.from_mongo(doc)

    async def delete_by_slug(self, slug: str) -> bool:
        result = await self._col.delete_one({"slug": slug})
        return result.deleted_count > 0

    async def delete_expired(self, now: datetime) -> int:
        result = await self._col.delete_many({"expiresAt": {"$lt": now}})
        return result.deleted_count

    async def list_page(
        self, *, page: int, limit: int, search: str = ""
    ) -> tuple[list[UploadedFileDoc], int]:
        """Newest-first page of files without data or analytics, plus the total."""
        query: dict = {}
        if search:
            pattern = {"$regex": re.escape(search), "$options": "i"}
            query = {"$or": [{"slug": pattern}, {"originalName": pattern}]}

        cursor = (
            self._col.find(query, LISTING_PROJECTION)
            .sort("createdAt", -1)
            .skip((page - 1) * limit)
            .limit(limit)
        )
        docs = await cursor.to_list(length=None)
        total = await self._col.count_documents(query)
        return [UploadedFileDoc.from_mongo(doc) for doc in docs], total
