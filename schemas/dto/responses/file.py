"""
Response DTOs for file endpoints (camelCase, response-only).
"""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel

from schemas.dto.responses.common import PaginationMeta


class UploadResponse(BaseModel):
    """POST /api/upload (201)."""

    slug: str
    shortUrl: str
    originalName: str
    size: int
    type: str
    expiresAt: Optional[str] = None


class FileInfoResponse(BaseModel):
    """GET /api/file/{slug}."""

    slug: str
    originalName: str
    mimeType: str
    size: int
    type: str
    createdAt: str
    expiresAt: Optional[str] = None
    downloads: int
    views: int
    hasPassword: bool
    maxDownloads: Optional[int] = None


class FileStatsResponse(BaseModel):
    """GET /api/file/{slug}/stats."""

    slug: str
    originalName: str
    mimeType: str
    size: int
    type: str
    shortUrl: str
    createdAt: str
    expiresAt: Optional[str] = None
    downloads: int
    views: int
    analytics: dict[str, Any]


class FileListItem(BaseModel):
    slug: str
    originalName: str
    mimeType: str
    size: int
    type: str
    createdAt: str
    expiresAt: Optional[str] = None
    downloads: int
    views: int
    hasPassword: bool
    maxDownloads: Optional[int] = None
    shortUrl: str
    isExpired: bool


class FileListResponse(BaseModel):
    """GET /api/files."""

    files: list[FileListItem]
    pagination: PaginationMeta
