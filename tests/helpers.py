"""Test helper functions for common data creation patterns."""

from typing import Any, TypeVar

from httpx import AsyncClient, Response
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from src.portal.core.security import hash_token
from src.portal.models import AuditAction, AuditLog, RefreshToken, User, UserSession
from tests.factories import (
    DEFAULT_TEST_PASSWORD,
    RefreshTokenFactory,
    UserFactory,
    UserSessionFactory,
)

T = TypeVar("T")


async def create_user(session: AsyncSession, user: User | None = None, **user_kwargs) -> User:
    """Persist a user (built by UserFactory unless given) and commit."""
    user = user or UserFactory.build(**user_kwargs)
    session.add(user)
    await session.commit()
    return user


async def create_token_with_session(
    session: AsyncSession,
    user: User,
    plaintext: str | None = None,
    token_kwargs: dict | None = None,
    session_kwargs: dict | None = None,
) -> tuple[RefreshToken, UserSession]:
    """Persist a refresh token and the session bound to it.

    Args:
        session: Database session
        user: Owner of the token and session
        plaintext: Optional token plaintext; its hash is stored
        token_kwargs: Extra args passed to RefreshTokenFactory
        session_kwargs: Extra args passed to UserSessionFactory

    Returns:
        Tuple of (token, session)
    """
    token_kwargs = dict(token_kwargs or {})
    if plaintext is not None:
        token_kwargs["token_hash"] = hash_token(plaintext)
    token = RefreshTokenFactory.build(user_id=user.id, **token_kwargs)
    session.add(token)
    await session.flush()

    user_session = UserSessionFactory.build(
        user_id=user.id,
        refresh_token_id=token.id,
        **(session_kwargs or {}),
    )
    session.add(user_session)
    await session.commit()
    return token, user_session


async def login(
    client: AsyncClient,
    email: str,
    password: str = DEFAULT_TEST_PASSWORD,
    user_agent: str | None = None,
) -> Response:
    """Log in through the API and drop the cookies from the client jar.

    Tests then authenticate explicitly with :func:`bearer` so several users can
    share one client.
    """
    headers = {"User-Agent": user_agent} if user_agent else None
    response = await client.post(
        "/api/v1/auth/login",
        json={"email": email, "password": password},
        headers=headers,
    )
    client.cookies.clear()
    return response


def bearer(access_token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {access_token}"}


async def fetch(session: AsyncSession, model: type[T], *criteria: Any) -> list[T]:
    """Query rows, overwriting any stale copies already in the identity map.

    Repository bulk updates skip session synchronisation, so objects loaded
    before them keep their old attribute values until re-queried this way.
    """
    result = await session.execute(
        select(model).where(*criteria).execution_options(populate_existing=True)
    )
    return list(result.scalars().all())


async def audit_entries(session: AsyncSession, action: AuditAction) -> list[AuditLog]:
    return await fetch(session, AuditLog, AuditLog.action == action.value)
