"""Typed application errors and the handlers that render them with request_id."""

from datetime import datetime
from typing import Any

from asgi_correlation_id import correlation_id
from fastapi import FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from src.portal.core.logging import get_logger

logger = get_logger(__name__)


class AppError(Exception):
    """Base class for failures surfaced to clients with a stable code."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    code: str = "INTERNAL_ERROR"
    detail: str = "Internal server error"

    def __init__(self, detail: str | None = None, **extra: Any):
        self.detail = detail or self.detail
        self.extra = extra
        super().__init__(self.detail)

    def to_content(self) -> dict[str, Any]:
        content: dict[str, Any] = {"detail": self.detail, "code": self.code}
        for key, value in self.extra.items():
            content[key] = value.isoformat() if isinstance(value, datetime) else value
        return content


# --- 400 ---


class InputError(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "VALIDATION_ERROR"
    detail = "Invalid request"


class InvalidResetToken(InputError):
    code = "INVALID_RESET_TOKEN"
    detail = "Password reset token is invalid or has expired"


# --- 401 ---


class AuthenticationError(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    code = "AUTH_ERROR"
    detail = "Not authorized to access this route"


class NoToken(AuthenticationError):
    code = "NO_TOKEN"
    detail = "Not authorized, no token provided"


class AccessTokenExpired(AuthenticationError):
    code = "TOKEN_EXPIRED"
    detail = "Access token expired"


class InvalidToken(AuthenticationError):
    code = "INVALID_TOKEN"
    detail = "Invalid token"


class InvalidTokenType(AuthenticationError):
    code = "INVALID_TOKEN_TYPE"
    detail = "Invalid token type"


class UserNotFound(AuthenticationError):
    code = "USER_NOT_FOUND"
    detail = "User no longer exists"


class InvalidCredentials(AuthenticationError):
    code = "INVALID_CREDENTIALS"
    detail = "Invalid credentials"


class AccountLocked(AuthenticationError):
    code = "ACCOUNT_LOCKED"
    detail = "Account is temporarily locked due to too many failed login attempts"


class NoRefreshToken(AuthenticationError):
    code = "NO_REFRESH_TOKEN"
    detail = "Refresh token not provided"


class TokenRevoked(AuthenticationError):
    code = "TOKEN_REVOKED"
    detail = "Refresh token has been revoked"


class RefreshTokenExpired(AuthenticationError):
    code = "REFRESH_TOKEN_EXPIRED"
    detail = "Refresh token expired"


# --- 403 / 404 ---


class Forbidden(AppError):
    status_code = status.HTTP_403_FORBIDDEN
    code = "FORBIDDEN"
    detail = "Not authorized to access this route"


class SessionNotFound(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "SESSION_NOT_FOUND"
    detail = "Session not found"


def _error_response(status_code: int, content: dict[str, Any]) -> JSONResponse:
    content["request_id"] = correlation_id.get()
    return JSONResponse(status_code=status_code, content=content)


def setup_exception_handlers(app: FastAPI) -> None:
    """Configure exception handlers that include request_id in responses."""

    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error("Application error", code=exc.code, path=request.url.path)
        return _error_response(exc.status_code, exc.to_content())

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        errors = [
            {
                "field": ".".join(str(part) for part in err["loc"] if part != "body"),
                "message": err["msg"],
            }
            for err in exc.errors()
        ]
        return _error_response(
            status.HTTP_400_BAD_REQUEST,
            {"detail": "Invalid request", "code": InputError.code, "errors": errors},
        )

    @app.exception_handler(StarletteHTTPException)
    async def starlette_exception_handler(
        request: Request, exc: StarletteHTTPException
    ) -> JSONResponse:
        return _error_response(exc.status_code, {"detail": exc.detail})

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
        return _error_response(exc.status_code, {"detail": exc.detail})

    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        request_id = correlation_id.get()
        logger.exception(
            "Unhandled exception",
            exc_info=exc,
            request_id=request_id,
            path=request.url.path,
        )
        return JSONResponse(
            status_code=500,
            content={
                "detail": "Internal server error",
                "request_id": request_id,
            },
        )
