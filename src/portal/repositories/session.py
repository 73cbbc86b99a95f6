"""Repository for UserSession entity (session registry)."""

from collections.abc import Sequence
from datetime import datetime, timedelta
from typing import Any, cast
from uuid import UUID

from sqlalchemy import and_, delete, func, or_, update
from sqlalchemy.engine import CursorResult
from sqlmodel import select

from src.portal.models import SessionEndReason, User, UserSession
from src.portal.models.base import utc_now
from src.portal.repositories.base import BaseRepository


class SessionRepository(BaseRepository[UserSession]):
    """Repository for device sessions."""

    model = UserSession

    async def get_active_for_user(self, user_id: UUID) -> list[UserSession]:
        """Active, unexpired sessions of a user, most recently used first."""
        result = await self.session.execute(
            select(UserSession)
            .where(
                UserSession.user_id == user_id,
                UserSession.is_active == True,  # noqa: E712
                UserSession.expires_at > utc_now(),  # type: ignore[operator]
            )
            .order_by(UserSession.last_activity.desc())  # type: ignore[attr-defined]
        )
        return list(result.scalars().all())

    async def get_for_user(self, user_id: UUID, session_id: UUID) -> UserSession | None:
        """Get a session only if it belongs to ``user_id``."""
        result = await self.session.execute(
            select(UserSession).where(
                UserSession.id == session_id,
                UserSession.user_id == user_id,
            )
        )
        return result.scalar_one_or_none()

    async def end_for_tokens(
        self,
        token_ids: Sequence[UUID],
        reason: SessionEndReason,
    ) -> int:
        """End the active sessions bound to the given refresh tokens.

        Returns the number of sessions ended.
        """
        if not token_ids:
            return 0
        result = await self.session.execute(
            update(UserSession)
            .where(UserSession.refresh_token_id.in_(token_ids))  # type: ignore[attr-defined]
            .where(UserSession.is_active == True)  # type: ignore[arg-type]  # noqa: E712
            .values(is_active=False, ended_at=utc_now(), end_reason=reason.value)
            .execution_options(synchronize_session=False)
        )
        return cast(CursorResult[Any], result).rowcount or 0

    async def count_active(self, consultancy_id: UUID | None = None) -> int:
        query = select(func.count()).select_from(UserSession).where(
            UserSession.is_active == True,  # noqa: E712
            UserSession.expires_at > utc_now(),  # type: ignore[operator]
        )
        query = self._scope(query, consultancy_id)
        result = await self.session.execute(query)
        return int(result.scalar_one())

    async def count_all(self, consultancy_id: UUID | None = None) -> int:
        query = self._scope(select(func.count()).select_from(UserSession), consultancy_id)
        result = await self.session.execute(query)
        return int(result.scalar_one())

    async def list_recent(
        self, consultancy_id: UUID | None = None, limit: int = 10
    ) -> list[tuple[UserSession, str]]:
        """Most recently created sessions with the owner's email."""
        query = (
            select(UserSession, User.email)
            .join(User, User.id == UserSession.user_id)  # type: ignore[arg-type]
            .order_by(UserSession.created_at.desc())  # type: ignore[attr-defined]
            .limit(limit)
        )
        if consultancy_id is not None:
            query = query.where(User.consultancy_id == consultancy_id)
        result = await self.session.execute(query)
        return [(row[0], row[1]) for row in result.all()]

    @staticmethod
    def _scope(query: Any, consultancy_id: UUID | None) -> Any:
        if consultancy_id is None:
            return query
        return query.join(User, User.id == UserSession.user_id).where(  # type: ignore[arg-type]
            User.consultancy_id == consultancy_id
        )

    async def cleanup_inactive(self, retention_days: int = 30, now: datetime | None = None) -> int:
        """Delete sessions that ended, or expired, more than ``retention_days`` ago.

        Idempotent: DELETE operations are inherently idempotent.

        Returns:
            Number of sessions deleted
        """
        cutoff = (now or utc_now()) - timedelta(days=retention_days)
        stmt = delete(UserSession).where(
            or_(
                and_(
                    UserSession.is_active == False,  # type: ignore[arg-type]  # noqa: E712
                    UserSession.ended_at < cutoff,  # type: ignore[operator]
                ),
                UserSession.expires_at < cutoff,  # type: ignore[arg-type]
            )
        )
        result = await self.session.execute(stmt)
        await self.session.commit()
        return cast(CursorResult[Any], result).rowcount or 0
