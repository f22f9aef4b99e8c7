"""
Uploaded file document model.

Maps to the `files` MongoDB collection. The binary payload lives in the
document itself (`data`), so listings and stats must project it away.

`password` is stored in plaintext and `maxDownloads` is advisory only; both
mirror the stored shape existing clients rely on (see DESIGN.md).
"""

from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from schemas.models.base import CounterMap, MongoBaseModel, UtcDatetime


class FileAnalytics(BaseModel):
    """Embedded aggregate of an uploaded file."""

    model_config = ConfigDict(populate_by_name=True)

    downloads_by_date: CounterMap = Field(default_factory=dict, alias="downloadsByDate")
    views_by_date: CounterMap = Field(default_factory=dict, alias="viewsByDate")
    countries: CounterMap = Field(default_factory=dict)
    cities: CounterMap = Field(default_factory=dict)
    browsers: CounterMap = Field(default_factory=dict)
    operating_systems: CounterMap = Field(default_factory=dict, alias="operatingSystems")
    devices: CounterMap = Field(default_factory=dict)
    referrers: CounterMap = Field(default_factory=dict)
    platforms: CounterMap = Field(default_factory=dict)
    languages: CounterMap = Field(default_factory=dict)
    screen_resolutions: CounterMap = Field(
        default_factory=dict, alias="screenResolutions"
    )


class UploadedFileDoc(MongoBaseModel):
    """Document model for the `files` collection."""

    slug: str
    original_name: str = Field(alias="originalName")
    mime_type: str = Field(alias="mimeType")
    size: int
    type: Literal["image", "file"]
    data: Optional[bytes] = None
    etag: Optional[str] = None
    created_at: UtcDatetime = Field(alias="createdAt")
    expires_at: Optional[UtcDatetime] = Field(default=None, alias="expiresAt")
    password: Optional[str] = None
    max_downloads: Optional[int] = Field(default=None, alias="maxDownloads")
    downloads: int = 0
    views: int = 0
    analytics: FileAnalytics = Field(default_factory=FileAnalytics)

    @property
    def has_password(self) -> bool:
        return bool(self.password)
