"""Auth domain dependencies.

Authentication and authorization guards for FastAPI routes. Each guard
works on the `Principal` resolved once per request by
`shopcore.session.dependencies.get_request_context`; role and permission
lookups go through the injected `RoleRegistry`.
"""

import uuid
from collections.abc import Callable
from typing import Annotated

from fastapi import Depends

from shopcore.auth.exceptions import (
    InsufficientRoleError,
    NotAuthenticatedError,
    OwnershipRequiredError,
    PermissionDeniedError,
)
from shopcore.auth.rbac import Permission, RoleRegistryDep
from shopcore.session.dependencies import RequestContextDep
from shopcore.session.store import Principal
from shopcore.user.models import UserRole


def authenticate(context: RequestContextDep) -> Principal:
    """Return the session principal.

    Raises:
        NotAuthenticatedError: If the request carries no live session
    """
    if context.principal is None:
        raise NotAuthenticatedError()
    return context.principal


# Type alias for dependency injection
CurrentPrincipalDep = Annotated[Principal, Depends(authenticate)]


def require_auth(_principal: CurrentPrincipalDep) -> None:
    """Require authentication without injecting the principal.

    Use as a router-level dependency when all routes require auth:
        router = APIRouter(dependencies=[Depends(require_auth)])
    """


def authorize(*roles: UserRole) -> Callable[..., Principal]:
    """Allow only the listed roles.

        @router.get("/", dependencies=[Depends(authorize(UserRole.admin))])
    """
    allowed = frozenset(roles)

    def dependency(principal: CurrentPrincipalDep) -> Principal:
        if principal.role not in allowed:
            raise InsufficientRoleError()
        return principal

    return dependency


def authorize_permission(*permissions: Permission) -> Callable[..., Principal]:
    """Require every listed permission (AND semantics)."""

    def dependency(
        principal: CurrentPrincipalDep, registry: RoleRegistryDep
    ) -> Principal:
        if not registry.has_all(principal.role, permissions):
            raise PermissionDeniedError()
        return principal

    return dependency


def authorize_any_permission(*permissions: Permission) -> Callable[..., Principal]:
    """Require at least one of the listed permissions (OR semantics)."""

    def dependency(
        principal: CurrentPrincipalDep, registry: RoleRegistryDep
    ) -> Principal:
        if not registry.has_any(principal.role, permissions):
            raise PermissionDeniedError()
        return principal

    return dependency


def authorize_action(action: str, resource: str) -> Callable[..., Principal]:
    def dependency(
        principal: CurrentPrincipalDep, registry: RoleRegistryDep
    ) -> Principal:
        if not registry.can_perform(principal.role, action, resource):
            raise PermissionDeniedError(f"You cannot {action} {resource}")
        return principal

    return dependency


def require_minimum_role(role: UserRole) -> Callable[..., Principal]:
    """Allow ``role`` and every role above it in the hierarchy."""

    def dependency(
        principal: CurrentPrincipalDep, registry: RoleRegistryDep
    ) -> Principal:
        if not registry.is_at_least(principal.role, role):
            raise InsufficientRoleError()
        return principal

    return dependency


def check_ownership_or_admin(
    user_id: uuid.UUID, principal: CurrentPrincipalDep, registry: RoleRegistryDep
) -> Principal:
    """Allow access to ``user_id`` for its owner or the top role.

    Reads ``user_id`` from the path of the route it guards.
    """
    if principal.id != user_id and principal.role != registry.top_role:
        raise OwnershipRequiredError()
    return principal


def check_ownership_or_role(role: UserRole) -> Callable[..., Principal]:
    """Allow the owner of ``user_id``, or ``role`` and every role above it."""

    def dependency(
        user_id: uuid.UUID, principal: CurrentPrincipalDep, registry: RoleRegistryDep
    ) -> Principal:
        if principal.id != user_id and not registry.is_at_least(principal.role, role):
            raise OwnershipRequiredError()
        return principal

    return dependency


def get_admin_principal(principal: CurrentPrincipalDep) -> Principal:
    if principal.role != UserRole.admin:
        raise InsufficientRoleError("Admin privileges required")
    return principal


AdminPrincipalDep = Annotated[Principal, Depends(get_admin_principal)]
