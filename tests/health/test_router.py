"""Tests for the /health route."""

from unittest.mock import MagicMock

from sqlalchemy.exc import OperationalError

from shopcore.db.engine import get_session


def test_health_ok(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok", "database": "ok"}


def test_health_database_down(client):
    broken = MagicMock()
    broken.exec.side_effect = OperationalError("SELECT 1", {}, Exception("down"))
    client.app.dependency_overrides[get_session] = lambda: broken

    response = client.get("/health")

    assert response.status_code == 503
    assert response.json() == {"status": "unhealthy", "database": "error"}
