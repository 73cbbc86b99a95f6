"""Authentication endpoints - login, token rotation, logout and password flows."""

from uuid import UUID

from fastapi import APIRouter, Body, Response, status
from starlette.requests import Request

from src.portal.api.cookies import REFRESH_TOKEN_COOKIE, clear_auth_cookies, set_auth_cookies
from src.portal.api.dependencies import AuthServiceDep, CurrentSessionId, CurrentUser
from src.portal.api.dependencies.auth import get_token_claims
from src.portal.core.audit_context import get_request_ip
from src.portal.core.exceptions import AuthenticationError, SessionNotFound
from src.portal.core.logging import get_logger
from src.portal.core.rate_limit import limiter, login_rate_limit, password_reset_rate_limit
from src.portal.schemas import (
    ChangePasswordRequest,
    ChangePasswordResponse,
    ForgotPasswordRequest,
    LoginRequest,
    LoginResponse,
    MessageResponse,
    RefreshRequest,
    ResetPasswordRequest,
    UserRead,
)
from src.portal.services import AuthResult

logger = get_logger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])

FORGOT_PASSWORD_MESSAGE = "If that email is registered, a password reset link has been sent"


def _login_response(response: Response, result: AuthResult) -> LoginResponse:
    set_auth_cookies(response, result.access_token, result.refresh_token)
    return LoginResponse(
        access_token=result.access_token,
        refresh_token=result.refresh_token,
        user=UserRead.model_validate(result.user),
    )


def _refresh_token_from(request: Request, body: RefreshRequest | None) -> str | None:
    """Refresh token from the request body, else the ``refreshToken`` cookie."""
    if body is not None and body.refresh_token:
        return body.refresh_token
    return request.cookies.get(REFRESH_TOKEN_COOKIE)


@router.post(
    "/login",
    response_model=LoginResponse,
    responses={
        400: {"description": "Missing or malformed email or password"},
        401: {"description": "Invalid credentials or account locked"},
        429: {"description": "Too many login attempts"},
    },
)
@limiter.limit(login_rate_limit)
async def login(
    request: Request,
    response: Response,
    login_data: LoginRequest,
    service: AuthServiceDep,
) -> LoginResponse:
    """Authenticate with email and password.

    Sets ``accessToken`` (15 minutes) and ``refreshToken`` (7 days) httpOnly
    cookies and returns the same tokens in the body for non-browser clients.
    """
    result = await service.login(
        login_data.email,
        login_data.password,
        ip=get_request_ip(request),
        user_agent=request.headers.get("user-agent"),
    )
    return _login_response(response, result)


@router.post(
    "/refresh",
    response_model=LoginResponse,
    responses={401: {"description": "Refresh token missing, invalid, revoked or expired"}},
)
async def refresh(
    request: Request,
    response: Response,
    service: AuthServiceDep,
    refresh_data: RefreshRequest | None = Body(default=None),
) -> LoginResponse:
    """Rotate the refresh token.

    The presented token is revoked and a new token pair and session issued.
    Presenting an already rotated token again is reported as token reuse.
    """
    result = await service.refresh(
        _refresh_token_from(request, refresh_data),
        ip=get_request_ip(request),
        user_agent=request.headers.get("user-agent"),
    )
    return _login_response(response, result)


@router.post("/revoke", response_model=MessageResponse)
async def revoke(
    request: Request,
    response: Response,
    service: AuthServiceDep,
    refresh_data: RefreshRequest | None = Body(default=None),
) -> MessageResponse:
    """Revoke the presented refresh token and end its session."""
    await service.logout(
        ip=get_request_ip(request),
        refresh_token=_refresh_token_from(request, refresh_data),
    )
    clear_auth_cookies(response)
    return MessageResponse(message="Token revoked successfully")


@router.get("/logout", response_model=MessageResponse)
async def logout(request: Request, response: Response, service: AuthServiceDep) -> MessageResponse:
    """Log out of the current session, if there is one, and clear cookies.

    Always succeeds: a missing or already revoked session is not an error here.
    """
    refresh_token = request.cookies.get(REFRESH_TOKEN_COOKIE)
    try:
        if refresh_token:
            await service.logout(ip=get_request_ip(request), refresh_token=refresh_token)
        else:
            claims = await get_token_claims(request)
            if claims.get("sid"):
                await service.logout(
                    ip=get_request_ip(request),
                    session_id=UUID(claims["sid"]),
                    user_id=UUID(claims["sub"]),
                )
    except (AuthenticationError, SessionNotFound) as e:
        logger.debug("Logout without an active session", code=e.code)
    except ValueError:
        logger.debug("Logout with malformed token claims")

    clear_auth_cookies(response)
    return MessageResponse(message="Logged out successfully")


@router.get("/me", response_model=UserRead)
async def me(current_user: CurrentUser) -> UserRead:
    """Get the current user."""
    return UserRead.model_validate(current_user)


@router.post("/forgotpassword", response_model=MessageResponse)
@limiter.limit(password_reset_rate_limit)
async def forgot_password(
    request: Request,
    response: Response,
    data: ForgotPasswordRequest,
    service: AuthServiceDep,
) -> MessageResponse:
    """Request a password reset link.

    The response is identical whether or not the email is registered.
    """
    await service.forgot_password(data.email)
    return MessageResponse(message=FORGOT_PASSWORD_MESSAGE)


@router.put(
    "/resetpassword/{reset_token}",
    response_model=LoginResponse,
    responses={400: {"description": "Reset token invalid or expired, or weak password"}},
)
@limiter.limit(password_reset_rate_limit)
async def reset_password(
    request: Request,
    response: Response,
    reset_token: str,
    data: ResetPasswordRequest,
    service: AuthServiceDep,
) -> LoginResponse:
    """Set a new password with a reset token.

    Every existing session is revoked and the user is logged in on this device.
    """
    result = await service.reset_password(
        reset_token,
        data.password,
        ip=get_request_ip(request),
        user_agent=request.headers.get("user-agent"),
    )
    return _login_response(response, result)


@router.put(
    "/changepassword",
    response_model=ChangePasswordResponse,
    status_code=status.HTTP_200_OK,
)
async def change_password(
    request: Request,
    data: ChangePasswordRequest,
    current_user: CurrentUser,
    session_id: CurrentSessionId,
    service: AuthServiceDep,
) -> ChangePasswordResponse:
    """Change password. Every other session is signed out."""
    revoked = await service.change_password(
        current_user,
        data.current_password,
        data.new_password,
        ip=get_request_ip(request),
        current_refresh_token=request.cookies.get(REFRESH_TOKEN_COOKIE),
        current_session_id=session_id,
    )
    return ChangePasswordResponse(
        message="Password changed successfully",
        sessions_revoked=revoked,
    )
