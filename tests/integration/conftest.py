"""Integration test fixtures for database and HTTP client operations.

Runs against a throwaway SQLite database per test; the application's engine
singleton is pointed at it so services, background audit writes and
activities all share the same database.
"""

from collections.abc import AsyncGenerator
from pathlib import Path

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine
from sqlmodel import SQLModel

import src.portal.core.db.engine as db_engine
import src.portal.models  # noqa: F401 - registers tables on SQLModel.metadata
from src.portal.core.db import get_session
from src.portal.main import create_app
from src.portal.models import User
from src.portal.repositories import (
    RefreshTokenRepository,
    SessionRepository,
    UserRepository,
)
from src.portal.services import AuditService, AuthService, SessionService
from tests.factories import UserFactory
from tests.helpers import create_user


@pytest.fixture
async def engine(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> AsyncGenerator[AsyncEngine]:
    """Create a fresh database with all tables and install it as the app engine."""
    test_engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'portal.db'}")
    async with test_engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)

    monkeypatch.setattr(db_engine, "_engine", test_engine)
    yield test_engine
    await test_engine.dispose()


@pytest.fixture
async def db_session(engine: AsyncEngine) -> AsyncGenerator[AsyncSession]:
    """Provide an async session for database operations.

    The session does not auto-commit; tests call ``commit()`` to persist.
    """
    async with get_session(engine) as session:
        yield session


@pytest.fixture
async def client(engine: AsyncEngine) -> AsyncGenerator[AsyncClient]:
    """HTTP client bound to a fresh application instance."""
    app = create_app()
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
def audit_service() -> AuditService:
    """Audit service writing immediately through its own sessions."""
    return AuditService()


@pytest.fixture
def auth_service(db_session: AsyncSession, audit_service: AuditService) -> AuthService:
    return AuthService(
        UserRepository(db_session),
        RefreshTokenRepository(db_session),
        SessionRepository(db_session),
        db_session,
        audit_service,
    )


@pytest.fixture
def session_service(db_session: AsyncSession) -> SessionService:
    return SessionService(
        SessionRepository(db_session),
        RefreshTokenRepository(db_session),
        db_session,
    )


@pytest.fixture
async def test_user(db_session: AsyncSession) -> User:
    """A student with the default test password."""
    return await create_user(db_session, UserFactory.build(email="student@example.com"))
