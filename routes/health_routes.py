"""
Health check endpoint.

GET /api/health checks MongoDB connectivity.
MongoDB unreachable → 503: the app cannot serve anything without it.
"""

from __future__ import annotations

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from errors import StorageUnavailableError
from schemas.dto.responses.common import HealthResponse
from shared.datetime_utils import to_iso

router = APIRouter(prefix="/api", tags=["health"])


@router.get("/health", response_model=HealthResponse)
async def health_check(request: Request) -> JSONResponse:
    mongo = request.app.state.mongo
    connected = False
    try:
        await mongo.ensure_ready()
        connected = await mongo.ping()
    except StorageUnavailableError:
        connected = False

    body = HealthResponse(
        status="ok" if connected else "error",
        mongodb="connected" if connected else "disconnected",
        timestamp=to_iso(request.app.state.clock()),
    )
    return JSONResponse(
        status_code=200 if connected else 503,
        content=body.model_dump(),
    )
