"""Tests for retention cleanup against a real database."""

from datetime import timedelta

import pytest
from sqlalchemy.ext.asyncio import AsyncSession
from temporalio.testing import ActivityEnvironment

from src.portal.models import AuditLog, RefreshToken, RevokeReason, User, UserSession
from src.portal.models.base import utc_now
from src.portal.repositories import RefreshTokenRepository, SessionRepository
from src.portal.services import SessionService
from src.portal.temporal.activities import (
    cleanup_audit_logs,
    cleanup_refresh_tokens,
    cleanup_sessions,
)
from tests.factories import AuditLogFactory, RefreshTokenFactory
from tests.helpers import create_token_with_session, fetch

pytestmark = [pytest.mark.integration, pytest.mark.asyncio]


async def _old_ended_session(db_session: AsyncSession, user: User, days_ago: int) -> UserSession:
    _, user_session = await create_token_with_session(
        db_session,
        user,
        token_kwargs={"expires_at": utc_now() - timedelta(days=days_ago)},
        session_kwargs={
            "is_active": False,
            "ended_at": utc_now() - timedelta(days=days_ago),
            "expires_at": utc_now() - timedelta(days=days_ago),
        },
    )
    return user_session


class TestSessionRepositoryCleanup:
    async def test_only_old_inactive_sessions_are_deleted(
        self, db_session: AsyncSession, test_user: User
    ) -> None:
        old = await _old_ended_session(db_session, test_user, days_ago=45)
        recent = await _old_ended_session(db_session, test_user, days_ago=3)
        _, active = await create_token_with_session(db_session, test_user)

        deleted = await SessionRepository(db_session).cleanup_inactive(retention_days=30)

        assert deleted == 1
        remaining = {s.id for s in await fetch(db_session, UserSession)}
        assert remaining == {recent.id, active.id}
        assert old.id not in remaining

    async def test_cleanup_is_idempotent(
        self, db_session: AsyncSession, test_user: User
    ) -> None:
        await _old_ended_session(db_session, test_user, days_ago=45)
        repo = SessionRepository(db_session)

        assert await repo.cleanup_inactive(retention_days=30) == 1
        assert await repo.cleanup_inactive(retention_days=30) == 0


class TestTokenRepositoryCleanup:
    async def test_referenced_tokens_are_kept(
        self, db_session: AsyncSession, test_user: User
    ) -> None:
        await _old_ended_session(db_session, test_user, days_ago=45)
        orphan = RefreshTokenFactory.expired(days_ago=45, user_id=test_user.id)
        db_session.add(orphan)
        await db_session.commit()

        deleted = await RefreshTokenRepository(db_session).cleanup_expired(retention_days=30)

        assert deleted == 1
        assert len(await fetch(db_session, RefreshToken)) == 1

    async def test_service_cleanup_removes_sessions_then_tokens(
        self, db_session: AsyncSession, session_service: SessionService, test_user: User
    ) -> None:
        await _old_ended_session(db_session, test_user, days_ago=45)

        sessions_deleted, tokens_deleted = await session_service.cleanup(retention_days=30)

        assert (sessions_deleted, tokens_deleted) == (1, 1)

    async def test_service_cleanup_deletes_every_expired_token(
        self, db_session: AsyncSession, session_service: SessionService, test_user: User
    ) -> None:
        """The days window bounds sessions only; tokens go as soon as they expire."""
        db_session.add(RefreshTokenFactory.expired(days_ago=1, user_id=test_user.id))
        live = RefreshTokenFactory.build(user_id=test_user.id)
        db_session.add(live)
        await db_session.commit()

        sessions_deleted, tokens_deleted = await session_service.cleanup(retention_days=30)

        assert (sessions_deleted, tokens_deleted) == (0, 1)
        remaining = await fetch(db_session, RefreshToken)
        assert [t.id for t in remaining] == [live.id]


class TestRevokeIfActive:
    async def test_only_first_revoke_wins(
        self, db_session: AsyncSession, test_user: User
    ) -> None:
        token, _ = await create_token_with_session(db_session, test_user)
        repo = RefreshTokenRepository(db_session)

        assert await repo.revoke_if_active(token.id, RevokeReason.ROTATED) is True
        assert await repo.revoke_if_active(token.id, RevokeReason.ROTATED) is False


class TestRetentionActivities:
    async def test_activities_delete_past_retention(
        self, db_session: AsyncSession, test_user: User
    ) -> None:
        await _old_ended_session(db_session, test_user, days_ago=45)
        db_session.add_all(
            [
                AuditLogFactory.build(timestamp=utc_now() - timedelta(days=100)),
                AuditLogFactory.build(),
            ]
        )
        await db_session.commit()
        env = ActivityEnvironment()

        assert await env.run(cleanup_sessions, 30) == 1
        assert await env.run(cleanup_refresh_tokens, 30) == 1
        assert await env.run(cleanup_audit_logs, 90) == 1

        assert await fetch(db_session, UserSession) == []
        assert len(await fetch(db_session, AuditLog)) == 1
