"""Authentication and authorization dependencies."""

from collections.abc import Awaitable, Callable
from typing import Annotated, Any
from uuid import UUID

from fastapi import Depends, Request
from sqlalchemy.exc import SQLAlchemyError

from src.portal.api.cookies import ACCESS_TOKEN_COOKIE
from src.portal.api.dependencies.repositories import UserRepo
from src.portal.core.exceptions import (
    AccessTokenExpired,
    AuthenticationError,
    Forbidden,
    InvalidToken,
    InvalidTokenType,
    NoToken,
    UserNotFound,
)
from src.portal.core.logging import bind_user_context, get_logger
from src.portal.core.permissions import describe_identity, is_authorized
from src.portal.core.security import TokenDecodeError, TokenType, decode_token
from src.portal.models import User, UserRole

logger = get_logger(__name__)


def _extract_access_token(request: Request) -> str | None:
    """Access token from the ``accessToken`` cookie, else the Bearer header."""
    token = request.cookies.get(ACCESS_TOKEN_COOKIE)
    if not token:
        authorization = request.headers.get("authorization", "")
        if authorization.startswith("Bearer "):
            token = authorization[7:].strip()
    # Some clients serialise a missing token as the string "none"
    if not token or token == "none":
        return None
    return token


async def get_token_claims(request: Request) -> dict[str, Any]:
    """Decode and validate the access token of the current request."""
    token = _extract_access_token(request)
    if token is None:
        raise NoToken()

    try:
        payload = decode_token(token)
    except TokenDecodeError as e:
        if e.expired:
            raise AccessTokenExpired() from e
        raise InvalidToken() from e

    if payload.get("type") != TokenType.ACCESS:
        raise InvalidTokenType()

    return payload


TokenClaims = Annotated[dict[str, Any], Depends(get_token_claims)]


async def get_current_user(request: Request, claims: TokenClaims, user_repo: UserRepo) -> User:
    """Resolve the user named by the access token.

    The identity is attached to ``request.state`` and bound to the log context.
    """
    try:
        user_id = UUID(str(claims.get("sub")))
    except ValueError as e:
        raise InvalidToken() from e

    try:
        user = await user_repo.get_by_id(user_id)
    except SQLAlchemyError as e:
        logger.error("User lookup failed during authentication", error=str(e))
        raise AuthenticationError() from e

    if user is None:
        raise UserNotFound()

    request.state.user = user
    request.state.permissions = claims.get("perms") or []
    request.state.session_id = claims.get("sid")
    bind_user_context(user.id, user.role, user.email)

    return user


CurrentUser = Annotated[User, Depends(get_current_user)]


def get_current_session_id(claims: TokenClaims) -> UUID | None:
    """Session id carried by the access token, if any."""
    sid = claims.get("sid")
    if not sid:
        return None
    try:
        return UUID(sid)
    except ValueError:
        return None


CurrentSessionId = Annotated[UUID | None, Depends(get_current_session_id)]


def require_roles(*allowed: str) -> Callable[..., Awaitable[User]]:
    """Build a dependency that admits users whose permissions intersect ``allowed``.

    Roles and staff sub-roles share one namespace, so
    ``require_roles("consultancy_admin", "manager")`` admits both admins and
    managing staff.
    """
    allowed_set = frozenset(allowed)

    async def _require_roles(user: CurrentUser, claims: TokenClaims) -> User:
        if not is_authorized(claims.get("perms") or [], allowed_set):
            raise Forbidden(
                f"User role {describe_identity(user.role, user.sub_role)} "
                "is not authorized to access this route"
            )
        return user

    return _require_roles


AdminUser = Annotated[
    User,
    Depends(require_roles(UserRole.SUPER_ADMIN.value, UserRole.CONSULTANCY_ADMIN.value)),
]
SuperAdmin = Annotated[User, Depends(require_roles(UserRole.SUPER_ADMIN.value))]
