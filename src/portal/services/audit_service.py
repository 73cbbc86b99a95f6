"""Audit logging service - records security events for forensic review."""

from collections.abc import Callable
from contextlib import AbstractAsyncContextManager
from datetime import timedelta
from typing import Any
from uuid import UUID

from fastapi import BackgroundTasks
from sqlalchemy.ext.asyncio import AsyncSession

from src.portal.core.audit_context import AuditContext, get_audit_context
from src.portal.core.db import get_session
from src.portal.core.logging import get_logger
from src.portal.models import AuditAction, AuditLog, AuditStatus
from src.portal.models.base import utc_now
from src.portal.repositories import AuditLogRepository

logger = get_logger(__name__)

SessionFactory = Callable[[], AbstractAsyncContextManager[AsyncSession]]

MAX_ERROR_MESSAGE_LENGTH = 1000


class AuditService:
    """Service for recording and reading audit logs.

    Fire-and-forget design: every write uses its own database session and a
    failed write is logged, never raised. When constructed with the request's
    ``BackgroundTasks`` successful entries are written after the response is sent.
    """

    def __init__(
        self,
        session_factory: SessionFactory = get_session,
        background: BackgroundTasks | None = None,
    ):
        self.session_factory = session_factory
        self.background = background

    async def emit(
        self,
        action: AuditAction,
        *,
        user_id: UUID | None = None,
        user_email: str | None = None,
        status: AuditStatus = AuditStatus.SUCCESS,
        status_code: int | None = None,
        resource: str | None = None,
        resource_id: str | UUID | None = None,
        details: dict[str, Any] | None = None,
        error_message: str | None = None,
    ) -> None:
        """Record an audit entry.

        Successful outcomes are deferred to after the response when background
        tasks are available. Failures and warnings are written before returning
        because background tasks do not run when the endpoint raises.

        Request metadata is captured now, while the request context is still set.
        """
        fields: dict[str, Any] = {
            "user_id": user_id,
            "user_email": user_email,
            "status": status,
            "status_code": status_code,
            "resource": resource,
            "resource_id": str(resource_id) if resource_id is not None else None,
            "details": details,
            "error_message": error_message,
            "context": get_audit_context(),
        }
        if self.background is not None and status is AuditStatus.SUCCESS:
            self.background.add_task(self.log_action, action, **fields)
        else:
            await self.log_action(action, **fields)

    async def log_action(
        self,
        action: AuditAction,
        *,
        user_id: UUID | None = None,
        user_email: str | None = None,
        status: AuditStatus = AuditStatus.SUCCESS,
        status_code: int | None = None,
        resource: str | None = None,
        resource_id: str | None = None,
        details: dict[str, Any] | None = None,
        error_message: str | None = None,
        context: AuditContext | None = None,
    ) -> AuditLog | None:
        """Write one audit entry immediately.

        Returns:
            The created AuditLog, or None if logging failed
        """
        try:
            audit_log = AuditLog(
                user_id=user_id,
                user_email=user_email,
                action=action.value,
                resource=resource,
                resource_id=resource_id,
                details=details,
                method=context.method if context else None,
                endpoint=context.endpoint if context else None,
                ip=context.ip_address if context else None,
                user_agent=context.user_agent if context else None,
                request_id=context.request_id if context else None,
                status=status.value,
                status_code=status_code,
                error_message=error_message[:MAX_ERROR_MESSAGE_LENGTH] if error_message else None,
            )

            async with self.session_factory() as session:
                AuditLogRepository(session).add(audit_log)
                await session.commit()

            logger.debug(
                "Audit log recorded",
                action=audit_log.action,
                status=audit_log.status,
                user_id=str(user_id) if user_id else None,
            )
            return audit_log

        except Exception as e:
            # Fire-and-forget: log the failure but don't propagate
            logger.warning(
                "Failed to record audit log",
                action=action.value,
                error=str(e),
            )
            return None

    async def list_logs(
        self,
        cursor: str | None = None,
        limit: int = 50,
        action: str | None = None,
        user_id: UUID | None = None,
        status: str | None = None,
    ) -> tuple[list[AuditLog], str | None, bool]:
        """List audit logs newest first."""
        async with self.session_factory() as session:
            return await AuditLogRepository(session).list_logs(
                cursor=cursor,
                limit=limit,
                action=action,
                user_id=user_id,
                status=status,
            )

    async def list_failed_logins(
        self,
        hours: int = 24,
        cursor: str | None = None,
        limit: int = 50,
    ) -> tuple[list[AuditLog], str | None, bool]:
        """List failed login attempts from the last ``hours`` hours."""
        since = utc_now() - timedelta(hours=hours)
        async with self.session_factory() as session:
            return await AuditLogRepository(session).list_failed_logins(
                since=since,
                cursor=cursor,
                limit=limit,
            )
