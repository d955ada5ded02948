"""Tests for shopcore/auth/dependencies.py - authorization guards."""

import uuid

import pytest
from fastapi import Depends, FastAPI
from fastapi.testclient import TestClient

from shopcore.auth.dependencies import (
    CurrentPrincipalDep,
    authenticate,
    authorize,
    authorize_action,
    authorize_any_permission,
    authorize_permission,
    check_ownership_or_admin,
    check_ownership_or_role,
    get_admin_principal,
    require_minimum_role,
)
from shopcore.auth.exceptions import (
    InsufficientRoleError,
    NotAuthenticatedError,
    OwnershipRequiredError,
    PermissionDeniedError,
)
from shopcore.auth.rbac import Permission, build_role_registry
from shopcore.core.exception_handlers import register_exception_handlers
from shopcore.session.dependencies import RequestContext, get_request_context
from shopcore.session.store import Principal
from shopcore.user.models import UserRole


def make_principal(role: UserRole = UserRole.customer) -> Principal:
    return Principal(
        id=uuid.uuid4(), name="Ana", email="ana@example.com", role=role
    )


@pytest.fixture
def registry():
    return build_role_registry()


# --- authenticate ---


def test_authenticate_returns_principal():
    principal = make_principal()
    context = RequestContext(session_id="sid-1", principal=principal)

    assert authenticate(context) is principal


def test_authenticate_without_session():
    with pytest.raises(NotAuthenticatedError) as exc_info:
        authenticate(RequestContext())

    assert exc_info.value.status_code == 401


# --- authorize ---


@pytest.mark.parametrize("role", [UserRole.admin, UserRole.staff])
def test_authorize_accepts_listed_roles(role):
    principal = make_principal(role)
    guard = authorize(UserRole.admin, UserRole.staff)

    assert guard(principal) is principal


def test_authorize_rejects_other_roles():
    guard = authorize(UserRole.admin, UserRole.staff)

    with pytest.raises(InsufficientRoleError) as exc_info:
        guard(make_principal(UserRole.customer))

    assert exc_info.value.status_code == 403


# --- permissions ---


def test_authorize_permission_requires_all(registry):
    guard = authorize_permission(Permission.PRODUCT_VIEW, Permission.PRODUCT_CREATE)
    staff = make_principal(UserRole.staff)

    assert guard(staff, registry) is staff
    with pytest.raises(PermissionDeniedError):
        guard(make_principal(UserRole.customer), registry)


def test_authorize_permission_rejects_partial_match(registry):
    guard = authorize_permission(Permission.PRODUCT_VIEW, Permission.PRODUCT_DELETE)

    with pytest.raises(PermissionDeniedError):
        guard(make_principal(UserRole.staff), registry)


def test_authorize_any_permission(registry):
    guard = authorize_any_permission(Permission.USER_DELETE, Permission.REVIEW_VIEW)

    customer = make_principal(UserRole.customer)
    assert guard(customer, registry) is customer
    with pytest.raises(PermissionDeniedError):
        authorize_any_permission(Permission.USER_DELETE)(customer, registry)


def test_authorize_action(registry):
    guard = authorize_action("publish", "article")

    staff = make_principal(UserRole.staff)
    assert guard(staff, registry) is staff
    with pytest.raises(PermissionDeniedError) as exc_info:
        guard(make_principal(UserRole.customer), registry)
    assert "publish article" in exc_info.value.message


# --- hierarchy ---


def test_require_minimum_role(registry):
    guard = require_minimum_role(UserRole.staff)

    for role in (UserRole.staff, UserRole.admin):
        principal = make_principal(role)
        assert guard(principal, registry) is principal
    with pytest.raises(InsufficientRoleError):
        guard(make_principal(UserRole.customer), registry)


def test_get_admin_principal():
    admin = make_principal(UserRole.admin)

    assert get_admin_principal(admin) is admin
    with pytest.raises(InsufficientRoleError):
        get_admin_principal(make_principal(UserRole.staff))


# --- ownership ---


def test_owner_may_access_own_resource(registry):
    principal = make_principal()

    assert check_ownership_or_admin(principal.id, principal, registry) is principal


def test_admin_may_access_any_resource(registry):
    admin = make_principal(UserRole.admin)

    assert check_ownership_or_admin(uuid.uuid4(), admin, registry) is admin


def test_non_owner_is_rejected(registry):
    with pytest.raises(OwnershipRequiredError) as exc_info:
        check_ownership_or_admin(uuid.uuid4(), make_principal(UserRole.staff), registry)

    assert exc_info.value.status_code == 403


def test_ownership_or_role_admits_owner_and_higher_roles(registry):
    guard = check_ownership_or_role(UserRole.staff)
    owner = make_principal()

    assert guard(owner.id, owner, registry) is owner
    for role in (UserRole.staff, UserRole.admin):
        principal = make_principal(role)
        assert guard(uuid.uuid4(), principal, registry) is principal


def test_ownership_or_role_rejects_other_customers(registry):
    guard = check_ownership_or_role(UserRole.staff)

    with pytest.raises(OwnershipRequiredError):
        guard(uuid.uuid4(), make_principal(UserRole.customer), registry)


# --- wired into a route ---


def _app_with_context(context: RequestContext) -> FastAPI:
    app = FastAPI()
    register_exception_handlers(app)

    @app.get("/staff-only", dependencies=[Depends(authorize(UserRole.staff))])
    async def staff_only(principal: CurrentPrincipalDep):
        return {"id": str(principal.id)}

    app.dependency_overrides[get_request_context] = lambda: context
    return app


def test_guard_in_route_unauthenticated_returns_401():
    client = TestClient(_app_with_context(RequestContext()))

    response = client.get("/staff-only")

    assert response.status_code == 401
    assert response.json() == {"success": False, "message": "Authentication required"}


def test_guard_in_route_wrong_role_returns_403():
    context = RequestContext(session_id="s", principal=make_principal())
    client = TestClient(_app_with_context(context))

    response = client.get("/staff-only")

    assert response.status_code == 403
    assert response.json()["success"] is False


def test_guard_in_route_allowed_role_returns_200():
    principal = make_principal(UserRole.staff)
    client = TestClient(_app_with_context(RequestContext("s", principal)))

    response = client.get("/staff-only")

    assert response.status_code == 200
    assert response.json() == {"id": str(principal.id)}
