"""Auth cookie helpers shared by the auth endpoints."""

import secrets

from fastapi import Response

from src.portal.core.config import get_settings

ACCESS_TOKEN_COOKIE = "accessToken"
REFRESH_TOKEN_COOKIE = "refreshToken"
XSRF_TOKEN_COOKIE = "XSRF-TOKEN"


def set_auth_cookies(response: Response, access_token: str, refresh_token: str) -> None:
    """Set httpOnly access and refresh cookies plus a script-readable XSRF token."""
    settings = get_settings()
    refresh_max_age = settings.refresh_token_expire_days * 24 * 60 * 60

    response.set_cookie(
        ACCESS_TOKEN_COOKIE,
        access_token,
        max_age=settings.access_token_expire_minutes * 60,
        httponly=True,
        secure=settings.secure_cookies,
        samesite=settings.cookie_samesite,  # type: ignore[arg-type]
        path="/",
    )
    response.set_cookie(
        REFRESH_TOKEN_COOKIE,
        refresh_token,
        max_age=refresh_max_age,
        httponly=True,
        secure=settings.secure_cookies,
        samesite=settings.cookie_samesite,  # type: ignore[arg-type]
        path="/",
    )
    # Readable by the frontend, which echoes it back in X-XSRF-TOKEN
    response.set_cookie(
        XSRF_TOKEN_COOKIE,
        secrets.token_hex(32),
        max_age=refresh_max_age,
        httponly=False,
        secure=settings.secure_cookies,
        samesite=settings.cookie_samesite,  # type: ignore[arg-type]
        path="/",
    )


def clear_auth_cookies(response: Response) -> None:
    settings = get_settings()
    for name in (ACCESS_TOKEN_COOKIE, REFRESH_TOKEN_COOKIE, XSRF_TOKEN_COOKIE):
        response.delete_cookie(
            name,
            path="/",
            secure=settings.secure_cookies,
            httponly=name != XSRF_TOKEN_COOKIE,
            samesite=settings.cookie_samesite,  # type: ignore[arg-type]
        )
