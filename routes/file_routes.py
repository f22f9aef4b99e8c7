"""
File sharing endpoints.

POST   /api/upload                   multipart upload
GET    /api/file/{slug}              file info page data (counts a view)
POST   /api/file/{slug}/analytics    track one page view (client enrichment payload)
GET    /api/file/{slug}/stats        aggregate counters
GET    /api/file/{slug}/download     serve the stored bytes (ETag / 304 aware)
GET    /api/files                    paginated, searchable listing
DELETE /api/file/{slug}              delete a file
"""

from __future__ import annotations

from typing import Annotated, Optional

from fastapi import (
    APIRouter,
    BackgroundTasks,
    Depends,
    File,
    Form,
    Header,
    Query,
    Request,
    UploadFile,
)
from fastapi.responses import Response

from config import AppSettings
from dependencies import (
    get_client_payload,
    get_delivery_gate,
    get_registry,
    get_settings,
    get_tracking,
)
from errors import ValidationError
from schemas.dto.requests.analytics import ClientAnalyticsPayload
from schemas.dto.requests.file import FileListQuery
from schemas.dto.responses.common import ErrorResponse, MessageResponse, PaginationMeta
from schemas.dto.responses.file import (
    FileInfoResponse,
    FileListItem,
    FileListResponse,
    FileStatsResponse,
    UploadResponse,
)
from schemas.models.file import UploadedFileDoc
from services.delivery import DeliveryGate
from services.registry import Registry, file_short_url
from services.tracking import TrackingService
from shared.datetime_utils import to_iso
from shared.logging import get_logger

log = get_logger(__name__)

router = APIRouter(
    prefix="/api",
    tags=["files"],
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)

DEFAULT_FILENAME = "file"
DEFAULT_MIME_TYPE = "application/octet-stream"


def _info(file: UploadedFileDoc) -> FileInfoResponse:
    return FileInfoResponse(
        slug=file.slug,
        originalName=file.original_name,
        mimeType=file.mime_type,
        size=file.size,
        type=file.type,
        createdAt=to_iso(file.created_at),
        expiresAt=to_iso(file.expires_at),
        downloads=file.downloads,
        views=file.views,
        hasPassword=file.has_password,
        maxDownloads=file.max_downloads,
    )


@router.post("/upload", status_code=201, response_model=UploadResponse)
async def upload_file(
    file: Optional[UploadFile] = File(default=None),
    custom_slug: Optional[str] = Form(default=None, alias="customSlug"),
    password: Optional[str] = Form(default=None),
    expires_in: Optional[str] = Form(default=None, alias="expiresIn"),
    max_downloads: Optional[str] = Form(default=None, alias="maxDownloads"),
    registry: Registry = Depends(get_registry),
    settings: AppSettings = Depends(get_settings),
) -> UploadResponse:
    if file is None:
        raise ValidationError("No file uploaded", field="file")

    data = await file.read()
    stored = await registry.create_file(
        data=data,
        original_name=file.filename or DEFAULT_FILENAME,
        mime_type=file.content_type or DEFAULT_MIME_TYPE,
        custom_slug=custom_slug,
        password=password,
        expires_in=expires_in,
        max_downloads=max_downloads,
    )
    return UploadResponse(
        slug=stored.slug,
        shortUrl=file_short_url(settings.base_url, stored),
        originalName=stored.original_name,
        size=stored.size,
        type=stored.type,
        expiresAt=to_iso(stored.expires_at),
    )


@router.get("/file/{slug}", response_model=FileInfoResponse)
async def get_file_info(
    slug: str, registry: Registry = Depends(get_registry)
) -> FileInfoResponse:
    return _info(await registry.open_file_info(slug))


@router.post("/file/{slug}/analytics", response_model=MessageResponse)
async def track_file_view(
    slug: str,
    request: Request,
    payload: Optional[ClientAnalyticsPayload] = Depends(get_client_payload),
    tracking: TrackingService = Depends(get_tracking),
) -> MessageResponse:
    await tracking.track_file_view(
        slug,
        payload,
        request.headers,
        remote_addr=request.client.host if request.client else None,
    )
    return MessageResponse(message="File analytics tracked")


@router.get("/file/{slug}/stats", response_model=FileStatsResponse)
async def get_file_stats(
    slug: str,
    registry: Registry = Depends(get_registry),
    settings: AppSettings = Depends(get_settings),
) -> FileStatsResponse:
    file = await registry.get_file(slug)
    return FileStatsResponse(
        slug=file.slug,
        originalName=file.original_name,
        mimeType=file.mime_type,
        size=file.size,
        type=file.type,
        shortUrl=file_short_url(settings.base_url, file),
        createdAt=to_iso(file.created_at),
        expiresAt=to_iso(file.expires_at),
        downloads=file.downloads,
        views=file.views,
        analytics=file.analytics.model_dump(by_alias=True),
    )


@router.get("/file/{slug}/download")
async def download_file(
    slug: str,
    background_tasks: BackgroundTasks,
    password: Optional[str] = Query(default=None),
    if_none_match: Optional[str] = Header(default=None),
    gate: DeliveryGate = Depends(get_delivery_gate),
) -> Response:
    delivery = await gate.open(slug, password=password, if_none_match=if_none_match)
    if delivery.not_modified:
        return Response(status_code=304, headers=delivery.headers)

    background_tasks.add_task(gate.record_download, slug)
    log.info("file_served", slug=slug, size=len(delivery.body))
    return Response(
        content=delivery.body,
        status_code=delivery.status_code,
        headers=delivery.headers,
    )


@router.get("/files", response_model=FileListResponse)
async def list_files(
    query: Annotated[FileListQuery, Query()],
    registry: Registry = Depends(get_registry),
    settings: AppSettings = Depends(get_settings),
) -> FileListResponse:
    files, total = await registry.list_files(
        page=query.page, limit=query.limit, search=query.search
    )
    items = [
        FileListItem(
            **_info(file).model_dump(),
            shortUrl=file_short_url(settings.base_url, file),
            isExpired=registry.is_expired(file.expires_at),
        )
        for file in files
    ]
    return FileListResponse(
        files=items,
        pagination=PaginationMeta.build(page=query.page, limit=query.limit, total=total),
    )


@router.delete("/file/{slug}", response_model=MessageResponse)
async def delete_file(
    slug: str, registry: Registry = Depends(get_registry)
) -> MessageResponse:
    await registry.delete_file(slug)
    return MessageResponse(message="File deleted successfully")
