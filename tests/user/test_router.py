"""Tests for the /users routes."""

import uuid

from fastapi.testclient import TestClient
from sqlmodel import select

from shopcore.auth.passwords import verify_password
from shopcore.main import app
from shopcore.session.models import SessionRecord
from shopcore.user.models import User


def _sessions_for(session, user_id) -> list[SessionRecord]:
    return list(
        session.exec(select(SessionRecord).where(SessionRecord.user_id == user_id))
    )


# --- email availability ---


def test_check_email_is_public(client, test_user):
    response = client.get("/users/check-email", params={"email": "TEST@example.com"})

    assert response.status_code == 200
    assert response.json()["data"] == {"email": "test@example.com", "available": False}


def test_check_email_available(client):
    response = client.get("/users/check-email", params={"email": "free@example.com"})

    assert response.status_code == 200
    assert response.json()["data"]["available"] is True


def test_check_email_requires_email(client):
    response = client.get("/users/check-email")

    assert response.status_code == 400
    assert response.json()["errors"][0]["field"] == "email"


# --- self service ---


def test_me_requires_auth(client):
    response = client.get("/users/me")

    assert response.status_code == 401


def test_get_me(client, login, test_user):
    login(client, "test@example.com")

    response = client.get("/users/me")

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["id"] == str(test_user.id)
    assert data["created_at"].endswith("Z")
    assert "password_hash" not in data
    assert "password_reset_token_hash" not in data


def test_update_me_changes_name_only(client, login, csrf_headers, test_user):
    login(client, "test@example.com")

    response = client.patch(
        "/users/me",
        json={"name": "  Renamed  ", "role": "admin"},
        headers=csrf_headers(client),
    )

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["name"] == "Renamed"
    assert data["role"] == "customer"


def test_update_me_requires_csrf(client, login, test_user):
    login(client, "test@example.com")

    response = client.patch("/users/me", json={"name": "Renamed"})

    assert response.status_code == 403


# --- listing ---


def test_list_users_as_staff(client, login, staff_user, test_user):
    login(client, "staff@example.com")

    response = client.get("/users", params={"limit": 1})

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["total"] == 2
    assert data["total_pages"] == 2
    assert len(data["items"]) == 1


def test_list_users_forbidden_for_customer(client, login, test_user):
    login(client, "test@example.com")

    response = client.get("/users")

    assert response.status_code == 403
    assert response.json()["message"] == "Insufficient role for this action"


def test_list_users_rejects_bad_limit(client, login, admin_user):
    login(client, "admin@example.com")

    response = client.get("/users", params={"limit": 500})

    assert response.status_code == 400
    assert response.json()["errors"][0]["field"] == "limit"


# --- get by id ---


def test_get_own_user(client, login, test_user):
    login(client, "test@example.com")

    assert client.get(f"/users/{test_user.id}").status_code == 200


def test_get_other_user_forbidden(client, login, test_user, staff_user):
    login(client, "test@example.com")

    response = client.get(f"/users/{staff_user.id}")

    assert response.status_code == 403


def test_staff_gets_any_user(client, login, staff_user, test_user):
    login(client, "staff@example.com")

    response = client.get(f"/users/{test_user.id}")

    assert response.status_code == 200
    assert response.json()["data"]["email"] == "test@example.com"


def test_admin_gets_any_user(client, login, admin_user, test_user):
    login(client, "admin@example.com")

    response = client.get(f"/users/{test_user.id}")

    assert response.status_code == 200
    assert response.json()["data"]["email"] == "test@example.com"


def test_admin_get_missing_user(client, login, admin_user):
    login(client, "admin@example.com")

    response = client.get(f"/users/{uuid.uuid4()}")

    assert response.status_code == 404
    assert response.json()["message"] == "User not found"


# --- admin mutations ---


def test_admin_creates_user_with_any_role(
    client, login, csrf_headers, session, admin_user
):
    login(client, "admin@example.com")

    response = client.post(
        "/users",
        json={
            "name": "Second Admin",
            "email": "Second.Admin@Example.com",
            "password": "Secret123",
            "role": "admin",
        },
        headers=csrf_headers(client),
    )

    assert response.status_code == 201
    data = response.json()["data"]
    assert data["email"] == "second.admin@example.com"
    assert data["role"] == "admin"
    assert data["status"] == "active"
    assert "password_hash" not in data
    created = session.get(User, uuid.UUID(data["id"]))
    assert created.password_hash.startswith("$2b$")
    assert verify_password("Secret123", created.password_hash)


def test_created_user_can_log_in(client, login, csrf_headers, admin_user):
    login(client, "admin@example.com")
    client.post(
        "/users",
        json={"name": "New Buyer", "email": "new@example.com", "password": "Secret123"},
        headers=csrf_headers(client),
    )
    client.post("/auth/logout", headers=csrf_headers(client))

    body = login(client, "new@example.com")

    assert body["data"]["role"] == "customer"


def test_create_user_duplicate_email(
    client, login, csrf_headers, admin_user, test_user
):
    login(client, "admin@example.com")

    response = client.post(
        "/users",
        json={"name": "Dup", "email": "TEST@example.com", "password": "Secret123"},
        headers=csrf_headers(client),
    )

    assert response.status_code == 409


def test_create_user_enforces_password_policy(
    client, login, csrf_headers, admin_user
):
    login(client, "admin@example.com")

    response = client.post(
        "/users",
        json={"name": "Weak", "email": "weak@example.com", "password": "password"},
        headers=csrf_headers(client),
    )

    assert response.status_code == 400
    assert response.json()["errors"][0]["field"] == "password"


def test_create_user_requires_admin(client, login, csrf_headers, staff_user):
    login(client, "staff@example.com")

    response = client.post(
        "/users",
        json={"name": "Sneaky", "email": "x@example.com", "password": "Secret123"},
        headers=csrf_headers(client),
    )

    assert response.status_code == 403


def test_create_user_requires_csrf(client, login, admin_user):
    login(client, "admin@example.com")

    response = client.post(
        "/users",
        json={"name": "NoCsrf", "email": "x@example.com", "password": "Secret123"},
    )

    assert response.status_code == 403


def test_admin_updates_user(client, login, csrf_headers, admin_user, test_user):
    login(client, "admin@example.com")

    response = client.patch(
        f"/users/{test_user.id}",
        json={"name": "Updated", "email": "NEW@example.com"},
        headers=csrf_headers(client),
    )

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["name"] == "Updated"
    assert data["email"] == "new@example.com"


def test_admin_update_email_conflict(
    client, login, csrf_headers, admin_user, test_user, staff_user
):
    login(client, "admin@example.com")

    response = client.patch(
        f"/users/{test_user.id}",
        json={"email": "staff@example.com"},
        headers=csrf_headers(client),
    )

    assert response.status_code == 409


def test_non_admin_cannot_update_others(
    client, login, csrf_headers, staff_user, test_user
):
    login(client, "staff@example.com")

    response = client.patch(
        f"/users/{test_user.id}", json={"name": "Hacked"}, headers=csrf_headers(client)
    )

    assert response.status_code == 403


def test_admin_cannot_demote_self(client, login, csrf_headers, admin_user):
    login(client, "admin@example.com")

    response = client.patch(
        f"/users/{admin_user.id}",
        json={"role": "customer"},
        headers=csrf_headers(client),
    )

    assert response.status_code == 400


def test_deactivation_revokes_sessions(
    client, login, csrf_headers, session, admin_user, test_user
):
    other = TestClient(app)
    login(other, "test@example.com")
    assert len(_sessions_for(session, test_user.id)) == 1

    login(client, "admin@example.com")
    response = client.patch(
        f"/users/{test_user.id}/status",
        json={"status": "inactive"},
        headers=csrf_headers(client),
    )

    assert response.status_code == 200
    assert response.json()["data"]["status"] == "inactive"
    assert _sessions_for(session, test_user.id) == []
    assert other.get("/auth/session").status_code == 401


def test_admin_changes_role(client, login, csrf_headers, admin_user, test_user):
    login(client, "admin@example.com")

    response = client.patch(
        f"/users/{test_user.id}/role",
        json={"role": "staff"},
        headers=csrf_headers(client),
    )

    assert response.status_code == 200
    assert response.json()["data"]["role"] == "staff"


def test_admin_cannot_change_own_status(client, login, csrf_headers, admin_user):
    login(client, "admin@example.com")

    response = client.patch(
        f"/users/{admin_user.id}/status",
        json={"status": "inactive"},
        headers=csrf_headers(client),
    )

    assert response.status_code == 400


def test_admin_deletes_user(
    client, login, csrf_headers, session, admin_user, test_user
):
    user_id = test_user.id
    login(client, "admin@example.com")

    response = client.delete(f"/users/{user_id}", headers=csrf_headers(client))

    assert response.status_code == 200
    assert response.json() == {
        "success": True,
        "message": "User deleted",
        "data": None,
    }
    session.expire_all()
    assert session.get(User, user_id) is None


def test_admin_cannot_delete_self(client, login, csrf_headers, admin_user):
    login(client, "admin@example.com")

    response = client.delete(f"/users/{admin_user.id}", headers=csrf_headers(client))

    assert response.status_code == 400
    assert client.get("/auth/session").status_code == 200


def test_status_update_rejects_unknown_value(client, login, csrf_headers, admin_user):
    login(client, "admin@example.com")

    response = client.patch(
        f"/users/{uuid.uuid4()}/status",
        json={"status": "banned"},
        headers=csrf_headers(client),
    )

    assert response.status_code == 400
    assert response.json()["errors"][0]["field"] == "status"
