"""Tests for shopcore/main.py - application wiring."""

from unittest.mock import AsyncMock, patch

from fastapi.testclient import TestClient

from shopcore.main import app


def test_lifespan_initializes_and_cleans_up():
    with (
        patch("shopcore.main.init_db") as init_db,
        patch("shopcore.main.close_email_client", new=AsyncMock()) as close_client,
    ):
        with TestClient(app):
            init_db.assert_called_once()
            close_client.assert_not_awaited()

        close_client.assert_awaited_once()


def test_routes_are_registered():
    paths = {route.path for route in app.routes}

    assert {
        "/health",
        "/auth/login",
        "/auth/csrf-token",
        "/auth/verify-email/{token}",
        "/users",
        "/users/me",
        "/users/check-email",
        "/users/{user_id}",
    } <= paths


def test_check_email_route_precedes_user_id_route():
    paths = [route.path for route in app.routes]

    assert paths.index("/users/check-email") < paths.index("/users/{user_id}")


def test_rate_limiter_is_attached():
    assert app.state.limiter is not None


def test_cors_allows_csrf_header(client):
    response = client.options(
        "/auth/logout",
        headers={
            "Origin": "http://localhost:3000",
            "Access-Control-Request-Method": "POST",
            "Access-Control-Request-Headers": "X-CSRF-Token",
        },
    )

    assert response.status_code == 200
    assert "x-csrf-token" in response.headers["access-control-allow-headers"].lower()


def test_admin_ui_is_mounted(client):
    response = client.get("/admin/", follow_redirects=False)

    assert response.status_code in (302, 303, 307)
    assert "/admin/login" in response.headers["location"]
