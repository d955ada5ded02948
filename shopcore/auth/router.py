"""Auth domain router.

Authentication routes for registration, login, logout, session handling,
password management and email verification. Handlers are thin HTTP
adapters: they translate cookies and bodies and delegate to
`AuthService`.
"""

from fastapi import APIRouter, Depends, Request, Response, status

from shopcore.auth.csrf import CsrfGuardDep, require_csrf
from shopcore.auth.dependencies import CurrentPrincipalDep
from shopcore.auth.rate_limit import auth_limit, limiter, password_reset_limit
from shopcore.auth.schemas import (
    ChangePasswordRequest,
    CsrfTokenRead,
    ForgotPasswordRequest,
    LoginRequest,
    PrincipalRead,
    RegisterRequest,
    ResetPasswordRequest,
    SessionRefreshed,
    SessionStatus,
)
from shopcore.auth.service import AuthServiceDep, ClientInfo
from shopcore.core.constants import CommonResponses, Routes
from shopcore.core.deps import SettingsDep
from shopcore.core.settings import Settings
from shopcore.models.response import ApiResponse
from shopcore.session.dependencies import RequestContextDep
from shopcore.session.models import SessionRecord
from shopcore.session.store import Principal
from shopcore.user.schemas import UserPublicRead

router = APIRouter(
    prefix=Routes.AUTH.prefix,
    tags=[Routes.AUTH.tag],
    responses={**CommonResponses.BAD_REQUEST},
)

FORGOT_PASSWORD_MESSAGE = "If that email exists, a password reset link has been sent"


def _client_info(request: Request) -> ClientInfo:
    return ClientInfo(
        ip_address=request.client.host if request.client else None,
        user_agent=request.headers.get("user-agent"),
    )


def set_session_cookie(
    response: Response, settings: Settings, record: SessionRecord
) -> None:
    response.set_cookie(
        key=settings.session_cookie_name,
        value=record.id,
        max_age=int(settings.session_ttl.total_seconds()),
        httponly=True,
        secure=settings.is_secure_cookie,
        samesite="strict",
        path="/",
    )


def clear_session_cookie(response: Response, settings: Settings) -> None:
    response.delete_cookie(
        key=settings.session_cookie_name,
        httponly=True,
        secure=settings.is_secure_cookie,
        samesite="strict",
        path="/",
    )


def _principal_read(principal: Principal) -> PrincipalRead:
    return PrincipalRead(
        id=principal.id,
        name=principal.name,
        email=principal.email,
        role=principal.role,
    )


@router.get("/csrf-token", response_model=ApiResponse[CsrfTokenRead])
async def get_csrf_token(request: Request, response: Response, guard: CsrfGuardDep):
    """Issue an anti-forgery token for the X-CSRF-Token header.

    Sets the httpOnly secret cookie on first use.
    """
    token = guard.issue(request, response)
    return ApiResponse[CsrfTokenRead](
        message="CSRF token generated", data=CsrfTokenRead(csrf_token=token)
    )


@router.post(
    "/register",
    response_model=ApiResponse[UserPublicRead],
    status_code=status.HTTP_201_CREATED,
    responses={**CommonResponses.CONFLICT, **CommonResponses.TOO_MANY_REQUESTS},
)
@limiter.limit(auth_limit)
async def register(
    request: Request,
    payload: RegisterRequest,
    response: Response,
    auth_service: AuthServiceDep,
    settings: SettingsDep,
):
    """Register a new account and sign it in.

    Email format and the password policy are validated before this runs.
    A verification email is sent on a best-effort basis.
    """
    result = await auth_service.register(payload, _client_info(request))
    set_session_cookie(response, settings, result.session)
    return ApiResponse[UserPublicRead](
        message="Registration successful",
        data=UserPublicRead.model_validate(result.user),
    )


@router.post(
    "/login",
    response_model=ApiResponse[UserPublicRead],
    responses={
        **CommonResponses.UNAUTHORIZED,
        **CommonResponses.FORBIDDEN,
        **CommonResponses.TOO_MANY_REQUESTS,
    },
)
@limiter.limit(auth_limit)
async def login(
    request: Request,
    payload: LoginRequest,
    response: Response,
    auth_service: AuthServiceDep,
    settings: SettingsDep,
):
    """Login with email and password and set the session cookie."""
    result = await auth_service.login(
        payload.email, payload.password, _client_info(request)
    )
    set_session_cookie(response, settings, result.session)
    return ApiResponse[UserPublicRead](
        message="Login successful",
        data=UserPublicRead.model_validate(result.user),
    )


@router.post(
    "/logout",
    response_model=ApiResponse[None],
    dependencies=[Depends(require_csrf)],
    responses={**CommonResponses.FORBIDDEN},
)
async def logout(
    response: Response,
    context: RequestContextDep,
    auth_service: AuthServiceDep,
    settings: SettingsDep,
):
    """Destroy the session and clear the cookie.

    Succeeds even when the session is already gone.
    """
    auth_service.logout(context.session_id)
    clear_session_cookie(response, settings)
    return ApiResponse[None](message="Logout successful")


@router.get(
    "/session",
    response_model=ApiResponse[SessionStatus],
    responses={**CommonResponses.UNAUTHORIZED},
)
async def check_session(principal: CurrentPrincipalDep):
    """Return the principal snapshot bound to the session."""
    return ApiResponse[SessionStatus](
        message="Session is active",
        data=SessionStatus(authenticated=True, user=_principal_read(principal)),
    )


@router.post(
    "/refresh-session",
    response_model=ApiResponse[SessionRefreshed],
    dependencies=[Depends(require_csrf)],
    responses={**CommonResponses.UNAUTHORIZED, **CommonResponses.FORBIDDEN},
)
async def refresh_session(
    response: Response,
    _principal: CurrentPrincipalDep,
    context: RequestContextDep,
    auth_service: AuthServiceDep,
    settings: SettingsDep,
):
    """Re-read the user, rotate the session id and rewrite the principal."""
    result = auth_service.refresh_session(context.session_id)
    set_session_cookie(response, settings, result.session)
    principal = Principal.from_record(result.session)
    return ApiResponse[SessionRefreshed](
        message="Session refreshed successfully",
        data=SessionRefreshed(user=_principal_read(principal)),
    )


@router.get(
    "/profile",
    response_model=ApiResponse[UserPublicRead],
    responses={**CommonResponses.UNAUTHORIZED, **CommonResponses.NOT_FOUND},
)
async def get_profile(principal: CurrentPrincipalDep, auth_service: AuthServiceDep):
    """Get the current user's full public profile."""
    user = auth_service.get_profile(principal.id)
    return ApiResponse[UserPublicRead](
        message="Profile retrieved successfully",
        data=UserPublicRead.model_validate(user),
    )


@router.post(
    "/change-password",
    response_model=ApiResponse[None],
    dependencies=[Depends(require_csrf)],
    responses={
        **CommonResponses.UNAUTHORIZED,
        **CommonResponses.FORBIDDEN,
        **CommonResponses.NOT_FOUND,
    },
)
async def change_password(
    payload: ChangePasswordRequest,
    principal: CurrentPrincipalDep,
    context: RequestContextDep,
    auth_service: AuthServiceDep,
):
    """Change the current user's password.

    Requires the current password; other sessions of the user are revoked.
    """
    await auth_service.change_password(
        principal.id,
        payload.current_password,
        payload.new_password,
        current_session_id=context.session_id,
    )
    return ApiResponse[None](message="Password changed successfully")


@router.post(
    "/forgot-password",
    response_model=ApiResponse[None],
    responses={**CommonResponses.TOO_MANY_REQUESTS},
)
@limiter.limit(password_reset_limit)
async def forgot_password(
    request: Request,
    payload: ForgotPasswordRequest,
    auth_service: AuthServiceDep,
):
    """Request a password reset email.

    Returns the same response whether or not the email is registered.
    """
    await auth_service.forgot_password(payload.email)
    return ApiResponse[None](message=FORGOT_PASSWORD_MESSAGE)


@router.post(
    "/reset-password",
    response_model=ApiResponse[None],
    dependencies=[Depends(require_csrf)],
    responses={**CommonResponses.FORBIDDEN, **CommonResponses.TOO_MANY_REQUESTS},
)
@limiter.limit(password_reset_limit)
async def reset_password(
    request: Request,
    payload: ResetPasswordRequest,
    auth_service: AuthServiceDep,
):
    """Set a new password using the token from the reset email."""
    await auth_service.reset_password(payload.token, payload.new_password)
    return ApiResponse[None](message="Password has been reset successfully")


@router.get("/verify-email/{token}", response_model=ApiResponse[UserPublicRead])
async def verify_email(token: str, auth_service: AuthServiceDep):
    """Confirm the email address using the token from the verification email."""
    user = await auth_service.verify_email(token)
    return ApiResponse[UserPublicRead](
        message="Email verified successfully",
        data=UserPublicRead.model_validate(user),
    )


@router.post(
    "/resend-verification",
    response_model=ApiResponse[None],
    dependencies=[Depends(require_csrf)],
    responses={**CommonResponses.UNAUTHORIZED, **CommonResponses.FORBIDDEN},
)
async def resend_verification(
    principal: CurrentPrincipalDep, auth_service: AuthServiceDep
):
    """Send a fresh verification email to the current user."""
    sent = await auth_service.resend_verification(principal.id)
    if not sent:
        return ApiResponse[None](message="Email is already verified")
    return ApiResponse[None](message="Verification email sent successfully")
