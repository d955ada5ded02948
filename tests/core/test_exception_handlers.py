"""Tests for shopcore/core/exception_handlers.py - error envelopes."""

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from pydantic import BaseModel

from shopcore.core.exception_handlers import register_exception_handlers
from shopcore.core.exceptions import (
    BadRequestError,
    ConflictError,
    InternalError,
    NotFoundError,
)


class Item(BaseModel):
    name: str
    quantity: int


def _app() -> FastAPI:
    app = FastAPI()
    register_exception_handlers(app)

    @app.get("/bad-request")
    async def bad_request():
        raise BadRequestError(
            "Invalid filter", errors=[{"field": "role", "message": "unknown"}]
        )

    @app.get("/not-found")
    async def not_found():
        raise NotFoundError()

    @app.get("/conflict")
    async def conflict():
        raise ConflictError("Email already registered")

    @app.get("/internal")
    async def internal():
        raise InternalError("Unable to send email")

    @app.get("/crash")
    async def crash():
        raise RuntimeError("secret internals")

    @app.post("/items")
    async def create_item(item: Item):
        return item

    return app


@pytest.fixture
def app_client() -> TestClient:
    return TestClient(_app(), raise_server_exceptions=False)


def test_bad_request_includes_errors(app_client):
    response = app_client.get("/bad-request")

    assert response.status_code == 400
    assert response.json() == {
        "success": False,
        "message": "Invalid filter",
        "errors": [{"field": "role", "message": "unknown"}],
    }


@pytest.mark.parametrize(
    "path, status, message",
    [
        ("/not-found", 404, "Resource not found"),
        ("/conflict", 409, "Email already registered"),
        ("/internal", 500, "Unable to send email"),
    ],
)
def test_app_exceptions_map_to_status(app_client, path, status, message):
    response = app_client.get(path)

    assert response.status_code == status
    assert response.json() == {"success": False, "message": message}


def test_validation_errors_become_400(app_client):
    response = app_client.post("/items", json={"quantity": "many"})

    assert response.status_code == 400
    body = response.json()
    assert body["message"] == "Validation failed"
    fields = {error["field"] for error in body["errors"]}
    assert fields == {"name", "quantity"}


def test_unknown_route_uses_envelope(app_client):
    response = app_client.get("/missing")

    assert response.status_code == 404
    assert response.json()["success"] is False


def test_unhandled_exception_hides_details(app_client):
    response = app_client.get("/crash")

    assert response.status_code == 500
    assert response.json() == {
        "success": False,
        "message": "An unexpected error occurred",
    }
