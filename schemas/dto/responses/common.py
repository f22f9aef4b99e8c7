"""
Common response DTOs shared across multiple endpoints.

ErrorResponse    — standard error shape from AppError.to_dict()
HealthResponse   — GET /api/health
MessageResponse  — generic {success, message} shape used by many endpoints
PaginationMeta   — {page, limit, total, pages} block of list responses
SweepResponse    — POST /api/cleanup
"""

from __future__ import annotations

import math
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict


class ErrorResponse(BaseModel):
    """Standard error JSON body produced by the AppError exception handler."""

    model_config = ConfigDict(populate_by_name=True)

    error: str
    code: str
    field: Optional[str] = None
    details: Optional[Any] = None


class HealthResponse(BaseModel):
    """Response body for GET /api/health."""

    status: str
    mongodb: str
    timestamp: str


class MessageResponse(BaseModel):
    """Generic success/message response returned by several endpoints."""

    success: bool = True
    message: Optional[str] = None


class PaginationMeta(BaseModel):
    page: int
    limit: int
    total: int
    pages: int

    @classmethod
    def build(cls, *, page: int, limit: int, total: int) -> "PaginationMeta":
        return cls(page=page, limit=limit, total=total, pages=math.ceil(total / limit))


class SweepResponse(BaseModel):
    """POST /api/cleanup."""

    success: bool = True
    deletedUrls: int
    deletedEvents: int
    deletedFiles: int
