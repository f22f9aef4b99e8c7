"""Unit tests for the AppError hierarchy and the FastAPI error handlers."""

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from pydantic import BaseModel
from pymongo.errors import ServerSelectionTimeoutError

from errors import (
    AppError,
    AuthorizationError,
    ConflictError,
    ExpiredError,
    NotFoundError,
    StorageUnavailableError,
    ValidationError,
    register_error_handlers,
)


class TestAppErrorSubclasses:
    @pytest.mark.parametrize(
        "cls, status, code",
        [
            (ValidationError, 400, "validation_error"),
            (AuthorizationError, 401, "invalid_password"),
            (NotFoundError, 404, "not_found"),
            (ConflictError, 409, "conflict"),
            (ExpiredError, 410, "expired"),
            (StorageUnavailableError, 503, "storage_unavailable"),
        ],
    )
    def test_status_and_code(self, cls, status, code):
        e = cls("boom")
        assert isinstance(e, AppError)
        assert e.status_code == status
        assert e.error_code == code
        assert e.message == "boom"


class TestAppErrorToDict:
    def test_basic(self):
        e = NotFoundError("URL not found")
        assert e.to_dict() == {"error": "URL not found", "code": "not_found"}

    @pytest.mark.parametrize(
        "kwargs, key, value",
        [
            ({"field": "slug"}, "field", "slug"),
            ({"details": {"max_bytes": 10}}, "details", {"max_bytes": 10}),
        ],
        ids=["with_field", "with_details"],
    )
    def test_optional_key_present(self, kwargs, key, value):
        e = ValidationError("invalid", **kwargs)
        assert e.to_dict()[key] == value

    def test_no_optional_keys_when_absent(self):
        d = NotFoundError("missing").to_dict()
        assert "field" not in d
        assert "details" not in d


class _Body(BaseModel):
    count: int


def _build_app() -> FastAPI:
    app = FastAPI()
    register_error_handlers(app)

    @app.get("/expired")
    async def expired():
        raise ExpiredError("This link has expired")

    @app.post("/body")
    async def body(payload: _Body):
        return {"count": payload.count}

    @app.get("/mongo-down")
    async def mongo_down():
        raise ServerSelectionTimeoutError("no servers")

    @app.get("/crash")
    async def crash():
        raise RuntimeError("kaboom")

    return app


class TestErrorHandlers:
    def test_app_error_rendered_as_json(self):
        with TestClient(_build_app()) as client:
            resp = client.get("/expired")
        assert resp.status_code == 410
        assert resp.json() == {"error": "This link has expired", "code": "expired"}

    def test_request_validation_is_400(self):
        with TestClient(_build_app()) as client:
            resp = client.post("/body", json={"count": "many"})
        assert resp.status_code == 400
        assert resp.json()["code"] == "validation_error"
        assert resp.json()["field"] == "count"

    def test_connection_failure_is_503(self):
        with TestClient(_build_app()) as client:
            resp = client.get("/mongo-down")
        assert resp.status_code == 503
        assert resp.json()["code"] == "storage_unavailable"

    def test_unhandled_exception_is_500(self):
        with TestClient(_build_app(), raise_server_exceptions=False) as client:
            resp = client.get("/crash")
        assert resp.status_code == 500
        assert resp.json()["code"] == "internal_error"
