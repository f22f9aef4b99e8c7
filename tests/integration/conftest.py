"""
Integration test fixtures: a FastAPI app wired to the in-memory MongoDB.

Mirrors create_app() but injects collaborators through the lifespan so no
network connection, GeoIP database or real clock is involved.
"""

from contextlib import asynccontextmanager
from unittest.mock import MagicMock, AsyncMock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from config import AppSettings
from errors import register_error_handlers
from infrastructure.geoip import GeoLocation
from infrastructure.user_agent import UserAgentParser
from routes.file_routes import router as file_router
from routes.health_routes import router as health_router
from routes.link_routes import router as link_router

BASE_URL = "https://h4a.us"


@pytest.fixture
def geoip():
    service = MagicMock()
    service.lookup = AsyncMock(return_value=GeoLocation(country="US", region="CA", city="San Jose"))
    return service


@pytest.fixture
def app(mongo_connection, geoip, clock) -> FastAPI:
    settings = AppSettings(base_url=BASE_URL, max_upload_bytes=1024)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        app.state.settings = settings
        app.state.mongo = mongo_connection
        app.state.geoip = geoip
        app.state.user_agent_parser = UserAgentParser()
        app.state.clock = clock
        yield

    app = FastAPI(lifespan=lifespan)
    register_error_handlers(app)
    app.include_router(health_router)
    app.include_router(link_router)
    app.include_router(file_router)
    return app


@pytest.fixture
def client(app):
    with TestClient(app) as client:
        yield client
