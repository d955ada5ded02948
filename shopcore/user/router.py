"""User domain router.

Self-service profile routes and admin user management.
"""

import logging
import uuid
from typing import Annotated

from fastapi import APIRouter, Depends, Query, status
from starlette.concurrency import run_in_threadpool

from shopcore.auth.csrf import require_csrf
from shopcore.auth.dependencies import (
    AdminPrincipalDep,
    CurrentPrincipalDep,
    authorize,
    check_ownership_or_role,
    require_auth,
)
from shopcore.auth.passwords import hash_password
from shopcore.core.constants import CommonResponses, Routes
from shopcore.core.deps import SettingsDep
from shopcore.models.response import ApiResponse
from shopcore.session.store import SessionStoreDep
from shopcore.user.exceptions import (
    EmailExistsError,
    SelfModificationError,
    UserNotFoundError,
)
from shopcore.user.models import User, UserRole, UserStatus
from shopcore.user.repository import UserRepository, UserRepositoryDep, normalize_email
from shopcore.user.schemas import (
    EmailAvailability,
    UserCreate,
    UserList,
    UserPublicRead,
    UserRoleUpdate,
    UserStatusUpdate,
    UserUpdate,
    UserUpdateMe,
)

logger = logging.getLogger(__name__)

# Routes callable without a session.
public_router = APIRouter(prefix=Routes.USER.prefix, tags=[Routes.USER.tag])

router = APIRouter(
    prefix=Routes.USER.prefix,
    tags=[Routes.USER.tag],
    dependencies=[Depends(require_auth)],
    responses={
        **CommonResponses.UNAUTHORIZED,
        **CommonResponses.FORBIDDEN,
    },
)


def _get_user_or_404(users: UserRepository, user_id: uuid.UUID) -> User:
    user = users.find_by_id(user_id)
    if user is None:
        raise UserNotFoundError()
    return user


def _read(user: User) -> UserPublicRead:
    return UserPublicRead.model_validate(user)


@public_router.get(
    "/check-email",
    response_model=ApiResponse[EmailAvailability],
    responses={**CommonResponses.BAD_REQUEST},
)
async def check_email_availability(
    email: Annotated[str, Query(min_length=1, max_length=254)],
    users: UserRepositoryDep,
):
    """Report whether an email is free to register."""
    available = users.find_by_email(email) is None
    return ApiResponse[EmailAvailability](
        message="Email availability checked",
        data=EmailAvailability(email=normalize_email(email), available=available),
    )


@router.get("/me", response_model=ApiResponse[UserPublicRead])
async def get_me(principal: CurrentPrincipalDep, users: UserRepositoryDep):
    """Get the current authenticated user."""
    user = _get_user_or_404(users, principal.id)
    return ApiResponse[UserPublicRead](message="User retrieved", data=_read(user))


@router.patch(
    "/me",
    response_model=ApiResponse[UserPublicRead],
    dependencies=[Depends(require_csrf)],
)
async def update_me(
    user_update: UserUpdateMe,
    principal: CurrentPrincipalDep,
    users: UserRepositoryDep,
):
    """Update the current user's profile.

    Only the display name can change here; email, role and status cannot.
    """
    user = _get_user_or_404(users, principal.id)
    update_data = user_update.model_dump(exclude_unset=True, exclude_none=True)
    for key, value in update_data.items():
        setattr(user, key, value.strip() if isinstance(value, str) else value)
    user = users.save(user)
    return ApiResponse[UserPublicRead](message="Profile updated", data=_read(user))


@router.get(
    "",
    response_model=ApiResponse[UserList],
    dependencies=[Depends(authorize(UserRole.admin, UserRole.staff))],
)
async def list_users(
    users: UserRepositoryDep,
    role: UserRole | None = None,
    status: UserStatus | None = None,
    search: Annotated[str | None, Query(max_length=100)] = None,
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int, Query(ge=1, le=100)] = 10,
):
    """List users with optional filters. Admin or staff only."""
    result = users.list(
        role=role, status=status, search=search, page=page, limit=limit
    )
    return ApiResponse[UserList](
        message="Users retrieved",
        data=UserList(
            items=[_read(u) for u in result.items],
            total=result.total,
            page=result.page,
            limit=result.limit,
            total_pages=result.total_pages,
        ),
    )


@router.post(
    "",
    response_model=ApiResponse[UserPublicRead],
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_csrf)],
    responses={**CommonResponses.BAD_REQUEST, **CommonResponses.CONFLICT},
)
async def create_user(
    payload: UserCreate,
    admin: AdminPrincipalDep,
    users: UserRepositoryDep,
    settings: SettingsDep,
):
    """Create an account with any role and status. Admin only.

    No session is started and no verification email is sent.
    """
    if users.find_by_email(payload.email) is not None:
        raise EmailExistsError()
    password_hash = await run_in_threadpool(
        hash_password, payload.password, settings.bcrypt_rounds
    )
    user = users.create(
        name=payload.name,
        email=payload.email,
        password_hash=password_hash,
        role=payload.role,
        status=payload.status,
        email_verified=False,
    )
    logger.info(
        "User created by admin",
        extra={"user_id": str(user.id), "admin_id": str(admin.id)},
    )
    return ApiResponse[UserPublicRead](message="User created", data=_read(user))


@router.get(
    "/{user_id}",
    response_model=ApiResponse[UserPublicRead],
    dependencies=[Depends(check_ownership_or_role(UserRole.staff))],
    responses={**CommonResponses.NOT_FOUND},
)
async def get_user(user_id: uuid.UUID, users: UserRepositoryDep):
    """Get a user by ID. The owner, staff or admin."""
    user = _get_user_or_404(users, user_id)
    return ApiResponse[UserPublicRead](message="User retrieved", data=_read(user))


@router.patch(
    "/{user_id}",
    response_model=ApiResponse[UserPublicRead],
    dependencies=[Depends(require_csrf)],
    responses={**CommonResponses.NOT_FOUND, **CommonResponses.CONFLICT},
)
async def update_user(
    user_id: uuid.UUID,
    user_update: UserUpdate,
    admin: AdminPrincipalDep,
    users: UserRepositoryDep,
    sessions: SessionStoreDep,
):
    """Update a user by ID. Admin only.

    Admins cannot change their own role or deactivate themselves.
    """
    user = _get_user_or_404(users, user_id)
    update_data = user_update.model_dump(exclude_unset=True, exclude_none=True)

    if user.id == admin.id and (
        update_data.get("role", user.role) != user.role
        or update_data.get("status", user.status) != user.status
    ):
        raise SelfModificationError()

    if "email" in update_data:
        update_data["email"] = normalize_email(update_data["email"])
        if update_data["email"] != user.email:
            existing = users.find_by_email(update_data["email"])
            if existing is not None and existing.id != user.id:
                raise EmailExistsError("Email already in use")

    deactivated = (
        update_data.get("status") == UserStatus.inactive and user.is_active
    )
    for key, value in update_data.items():
        setattr(user, key, value)
    user = users.save(user)

    if deactivated:
        sessions.destroy_for_user(user.id)
    return ApiResponse[UserPublicRead](message="User updated", data=_read(user))


@router.patch(
    "/{user_id}/status",
    response_model=ApiResponse[UserPublicRead],
    dependencies=[Depends(require_csrf)],
    responses={**CommonResponses.NOT_FOUND},
)
async def update_user_status(
    user_id: uuid.UUID,
    payload: UserStatusUpdate,
    admin: AdminPrincipalDep,
    users: UserRepositoryDep,
    sessions: SessionStoreDep,
):
    """Activate or deactivate a user. Admin only.

    Deactivation revokes every session of the user.
    """
    if user_id == admin.id:
        raise SelfModificationError("You cannot change your own status")
    user = _get_user_or_404(users, user_id)
    user.status = payload.status
    user = users.save(user)
    if payload.status == UserStatus.inactive:
        sessions.destroy_for_user(user.id)
    return ApiResponse[UserPublicRead](
        message="User status updated", data=_read(user)
    )


@router.patch(
    "/{user_id}/role",
    response_model=ApiResponse[UserPublicRead],
    dependencies=[Depends(require_csrf)],
    responses={**CommonResponses.NOT_FOUND},
)
async def update_user_role(
    user_id: uuid.UUID,
    payload: UserRoleUpdate,
    admin: AdminPrincipalDep,
    users: UserRepositoryDep,
):
    """Change a user's role. Admin only.

    Existing sessions keep their role snapshot until the next
    refresh-session or login.
    """
    if user_id == admin.id:
        raise SelfModificationError("You cannot change your own role")
    user = _get_user_or_404(users, user_id)
    user.role = payload.role
    user = users.save(user)
    return ApiResponse[UserPublicRead](message="User role updated", data=_read(user))


@router.delete(
    "/{user_id}",
    response_model=ApiResponse[None],
    dependencies=[Depends(require_csrf)],
    responses={**CommonResponses.NOT_FOUND},
)
async def delete_user(
    user_id: uuid.UUID,
    admin: AdminPrincipalDep,
    users: UserRepositoryDep,
    sessions: SessionStoreDep,
):
    """Delete a user and every session bound to it. Admin only."""
    if user_id == admin.id:
        raise SelfModificationError("You cannot delete your own account")
    user = _get_user_or_404(users, user_id)
    sessions.destroy_for_user(user.id)
    users.delete(user)
    return ApiResponse[None](message="User deleted")
