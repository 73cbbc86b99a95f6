"""Session registry service - listing, statistics and cleanup of device sessions."""

from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from src.portal.core.config import get_settings
from src.portal.core.exceptions import SessionNotFound
from src.portal.core.logging import get_logger
from src.portal.models import User, UserRole, UserSession
from src.portal.repositories import RefreshTokenRepository, SessionRepository
from src.portal.schemas import RecentSession, SessionRead, SessionStatsResponse

logger = get_logger(__name__)


class SessionService:
    """Read side of the session registry plus the retention cleanup."""

    def __init__(
        self,
        session_repo: SessionRepository,
        token_repo: RefreshTokenRepository,
        session: AsyncSession,
    ):
        self.session_repo = session_repo
        self.token_repo = token_repo
        self.session = session

    async def get_active_sessions(
        self, user: User, current_session_id: UUID | None = None
    ) -> list[SessionRead]:
        """Active sessions of ``user``, the caller's own flagged ``is_current``."""
        sessions = await self.session_repo.get_active_for_user(user.id)
        return [self._to_read(s, current_session_id) for s in sessions]

    async def get_session(
        self, user: User, session_id: UUID, current_session_id: UUID | None = None
    ) -> SessionRead:
        """One session of ``user``. Other users' sessions are reported as not found."""
        user_session = await self.session_repo.get_for_user(user.id, session_id)
        if user_session is None:
            raise SessionNotFound()
        return self._to_read(user_session, current_session_id)

    async def get_stats(self, user: User, recent_limit: int = 10) -> SessionStatsResponse:
        """Session counts and the most recent sessions.

        A consultancy admin only sees users of their own consultancy; a super
        admin sees everything.
        """
        consultancy_id = None
        if user.role != UserRole.SUPER_ADMIN.value:
            consultancy_id = user.consultancy_id

        total_active = await self.session_repo.count_active(consultancy_id)
        total_all = await self.session_repo.count_all(consultancy_id)
        recent = await self.session_repo.list_recent(consultancy_id, limit=recent_limit)

        return SessionStatsResponse(
            total_active=total_active,
            total_all=total_all,
            recent_sessions=[
                RecentSession(
                    **SessionRead.model_validate(s).model_dump(),
                    user_id=s.user_id,
                    user_email=email,
                )
                for s, email in recent
            ],
        )

    async def cleanup(self, retention_days: int | None = None) -> tuple[int, int]:
        """Delete sessions ended more than ``retention_days`` ago, then expired tokens.

        Every refresh token whose expiry has passed is deleted once no session
        references it; ``retention_days`` only applies to sessions.

        Returns:
            Tuple of (sessions_deleted, tokens_deleted)
        """
        settings = get_settings()
        sessions_deleted = await self.session_repo.cleanup_inactive(
            retention_days if retention_days is not None else settings.session_retention_days
        )
        tokens_deleted = await self.token_repo.cleanup_expired(retention_days=0)
        logger.info(
            "Session cleanup completed",
            sessions_deleted=sessions_deleted,
            tokens_deleted=tokens_deleted,
        )
        return sessions_deleted, tokens_deleted

    @staticmethod
    def _to_read(user_session: UserSession, current_session_id: UUID | None) -> SessionRead:
        read = SessionRead.model_validate(user_session)
        read.is_current = current_session_id is not None and user_session.id == current_session_id
        return read
