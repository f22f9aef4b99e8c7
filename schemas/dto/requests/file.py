"""
Request DTOs for file endpoints.

The upload itself (POST /api/upload) is multipart form data and is declared
with Form/File parameters on the route.

FileListQuery — GET /api/files       (query parameters)
CleanupQuery  — POST /api/cleanup    (query parameters)
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class FileListQuery(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    page: int = Field(default=1, ge=1)
    limit: int = Field(default=20, ge=1, le=100)
    search: str = ""


class CleanupQuery(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    include_files: bool = Field(default=False, alias="includeFiles")
