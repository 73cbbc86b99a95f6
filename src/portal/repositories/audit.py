"""Repository for AuditLog entity."""

from datetime import datetime, timedelta
from typing import Any, cast
from uuid import UUID

from sqlalchemy import delete
from sqlalchemy.engine import CursorResult
from sqlmodel import select

from src.portal.models import AuditAction, AuditLog
from src.portal.models.base import utc_now
from src.portal.repositories.base import BaseRepository


class AuditLogRepository(BaseRepository[AuditLog]):
    """Repository for AuditLog entity. Entries are never updated."""

    model = AuditLog

    async def list_logs(
        self,
        cursor: str | None = None,
        limit: int = 50,
        action: str | None = None,
        user_id: UUID | None = None,
        status: str | None = None,
    ) -> tuple[list[AuditLog], str | None, bool]:
        """List audit logs newest first with optional filters.

        Returns:
            Tuple of (logs, next_cursor, has_more)
        """
        query = select(AuditLog)

        if action:
            query = query.where(AuditLog.action == action)
        if user_id:
            query = query.where(AuditLog.user_id == user_id)
        if status:
            query = query.where(AuditLog.status == status)

        return await self.paginate(query, cursor, limit, AuditLog.timestamp)

    async def list_failed_logins(
        self,
        since: datetime,
        cursor: str | None = None,
        limit: int = 50,
    ) -> tuple[list[AuditLog], str | None, bool]:
        """Failed login attempts recorded after ``since``."""
        query = select(AuditLog).where(
            AuditLog.action == AuditAction.LOGIN_FAILED.value,
            AuditLog.timestamp >= since,  # type: ignore[operator]
        )
        return await self.paginate(query, cursor, limit, AuditLog.timestamp)

    async def cleanup_old_logs(self, retention_days: int, now: datetime | None = None) -> int:
        """Delete audit logs older than retention_days.

        Returns:
            Number of logs deleted
        """
        cutoff = (now or utc_now()) - timedelta(days=retention_days)
        stmt = delete(AuditLog).where(AuditLog.timestamp < cutoff)  # type: ignore[arg-type]
        result = await self.session.execute(stmt)
        await self.session.commit()
        return cast(CursorResult[Any], result).rowcount or 0
