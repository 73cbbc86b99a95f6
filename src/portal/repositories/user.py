"""Repository for User entity."""

from datetime import datetime, timedelta
from uuid import UUID

from sqlalchemy import and_, case, update
from sqlmodel import select

from src.portal.models import User
from src.portal.models.base import utc_now
from src.portal.repositories.base import BaseRepository


class UserRepository(BaseRepository[User]):
    """Repository for User entity (credential store)."""

    model = User

    async def get_by_email(self, email: str) -> User | None:
        """Get user by email address (case-insensitive)."""
        result = await self.session.execute(select(User).where(User.email == email.lower()))
        return result.scalar_one_or_none()

    async def get_by_reset_token_hash(self, token_hash: str) -> User | None:
        """Get the user owning an unexpired password reset token."""
        result = await self.session.execute(
            select(User).where(
                User.reset_password_token_hash == token_hash,
                User.reset_password_expires_at > utc_now(),  # type: ignore[operator]
            )
        )
        return result.scalar_one_or_none()

    async def register_failed_login(
        self,
        user_id: UUID,
        max_attempts: int,
        lockout: timedelta,
        now: datetime | None = None,
    ) -> bool:
        """Atomically count a failed login and lock the account at the threshold.

        A lock that has already expired restarts the counter at 1. Both
        statements are single-row UPDATEs, so concurrent failures never lose
        an increment.

        Returns:
            True if this failure locked the account.
        """
        now = now or utc_now()
        lock_expired = and_(
            User.lock_until.is_not(None),  # type: ignore[union-attr]
            User.lock_until <= now,  # type: ignore[operator]
        )
        await self.session.execute(
            update(User)
            .where(User.id == user_id)  # type: ignore[arg-type]
            .values(
                login_attempts=case((lock_expired, 1), else_=User.login_attempts + 1),
                lock_until=case((lock_expired, None), else_=User.lock_until),
                last_failed_login=now,
            )
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(
            update(User)
            .where(User.id == user_id)  # type: ignore[arg-type]
            .where(User.login_attempts >= max_attempts)  # type: ignore[arg-type]
            .where(User.lock_until.is_(None))  # type: ignore[union-attr]
            .values(lock_until=now + lockout)
            .execution_options(synchronize_session=False)
        )
        return bool(result.rowcount)  # type: ignore[attr-defined]

    async def reset_login_state(self, user_id: UUID) -> None:
        """Clear the failed-attempt counter and any lock."""
        await self.session.execute(
            update(User)
            .where(User.id == user_id)  # type: ignore[arg-type]
            .values(login_attempts=0, lock_until=None, last_failed_login=None)
            .execution_options(synchronize_session=False)
        )
