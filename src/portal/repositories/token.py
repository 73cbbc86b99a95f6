"""Repository for RefreshToken entity."""

from collections.abc import Sequence
from datetime import datetime, timedelta
from typing import Any, cast
from uuid import UUID

from sqlalchemy import delete, update
from sqlalchemy.engine import CursorResult
from sqlmodel import select

from src.portal.models import RefreshToken, RevokeReason, UserSession
from src.portal.models.base import utc_now
from src.portal.repositories.base import BaseRepository


class RefreshTokenRepository(BaseRepository[RefreshToken]):
    """Repository for RefreshToken entity."""

    model = RefreshToken

    async def get_by_hash(self, token_hash: str) -> RefreshToken | None:
        """Get refresh token by its hash, whatever its state."""
        result = await self.session.execute(
            select(RefreshToken).where(RefreshToken.token_hash == token_hash)
        )
        return result.scalar_one_or_none()

    async def get_active_for_user(self, user_id: UUID) -> list[RefreshToken]:
        """All unrevoked, unexpired tokens of a user."""
        result = await self.session.execute(
            select(RefreshToken).where(
                RefreshToken.user_id == user_id,
                RefreshToken.is_revoked == False,  # noqa: E712
                RefreshToken.expires_at > utc_now(),  # type: ignore[operator]
            )
        )
        return list(result.scalars().all())

    async def revoke_if_active(
        self,
        token_id: UUID,
        reason: RevokeReason,
        ip: str | None = None,
        replaced_by_token_id: UUID | None = None,
    ) -> bool:
        """Revoke a token only if nobody revoked it first.

        The ``is_revoked = false`` guard makes this the linearization point for
        rotation: of two concurrent refreshes presenting the same token, only
        one UPDATE matches a row.

        Returns:
            True if this call revoked the token.
        """
        result = await self.session.execute(
            update(RefreshToken)
            .where(RefreshToken.id == token_id)  # type: ignore[arg-type]
            .where(RefreshToken.is_revoked == False)  # type: ignore[arg-type]  # noqa: E712
            .values(
                is_revoked=True,
                revoked_at=utc_now(),
                revoked_by_ip=ip,
                revoked_reason=reason.value,
                replaced_by_token_id=replaced_by_token_id,
            )
            .execution_options(synchronize_session=False)
        )
        return cast(CursorResult[Any], result).rowcount == 1

    async def revoke_many(
        self,
        token_ids: Sequence[UUID],
        reason: RevokeReason,
        ip: str | None = None,
    ) -> int:
        """Revoke every still-active token in ``token_ids``.

        Returns the number of tokens revoked.
        """
        if not token_ids:
            return 0
        result = await self.session.execute(
            update(RefreshToken)
            .where(RefreshToken.id.in_(token_ids))  # type: ignore[attr-defined]
            .where(RefreshToken.is_revoked == False)  # type: ignore[arg-type]  # noqa: E712
            .values(
                is_revoked=True,
                revoked_at=utc_now(),
                revoked_by_ip=ip,
                revoked_reason=reason.value,
            )
            .execution_options(synchronize_session=False)
        )
        return cast(CursorResult[Any], result).rowcount or 0

    async def get_hashes(self, token_ids: Sequence[UUID]) -> list[str]:
        """Token hashes for the given ids (for the Redis blacklist)."""
        if not token_ids:
            return []
        result = await self.session.execute(
            select(RefreshToken.token_hash).where(
                RefreshToken.id.in_(token_ids)  # type: ignore[attr-defined]
            )
        )
        return list(result.scalars().all())

    async def cleanup_expired(self, retention_days: int = 0, now: datetime | None = None) -> int:
        """Delete tokens expired more than ``retention_days`` ago.

        Tokens still referenced by a session row are kept until that session is
        cleaned up. Idempotent: a second run finds nothing to delete.

        Returns:
            Number of tokens deleted
        """
        cutoff = (now or utc_now()) - timedelta(days=retention_days)
        referenced = select(UserSession.refresh_token_id)
        stmt = delete(RefreshToken).where(
            RefreshToken.expires_at < cutoff,  # type: ignore[arg-type]
            RefreshToken.id.not_in(referenced),  # type: ignore[attr-defined]
        )
        result = await self.session.execute(stmt)
        await self.session.commit()
        return cast(CursorResult[Any], result).rowcount or 0
