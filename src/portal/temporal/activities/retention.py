"""Retention activities - delete refresh tokens, sessions and audit logs past retention.

Every activity is a single DELETE, so retries and repeated runs are harmless:
a second run finds nothing left to delete.
"""

from temporalio import activity

from src.portal.core.db import get_session
from src.portal.repositories import (
    AuditLogRepository,
    RefreshTokenRepository,
    SessionRepository,
)


@activity.defn
async def cleanup_sessions(retention_days: int) -> int:
    """Delete sessions that ended, or expired, more than ``retention_days`` ago.

    Must run before :func:`cleanup_refresh_tokens`; a token is only deletable
    once no session row references it.
    """
    activity.logger.info(f"Cleaning up sessions older than {retention_days} days")

    async with get_session() as session:
        count = await SessionRepository(session).cleanup_inactive(retention_days)

    activity.logger.info(f"Deleted {count} inactive sessions")
    return count


@activity.defn
async def cleanup_refresh_tokens(retention_days: int) -> int:
    """Delete refresh tokens that expired more than ``retention_days`` ago."""
    activity.logger.info(f"Cleaning up refresh tokens older than {retention_days} days")

    async with get_session() as session:
        count = await RefreshTokenRepository(session).cleanup_expired(retention_days)

    activity.logger.info(f"Deleted {count} expired refresh tokens")
    return count


@activity.defn
async def cleanup_audit_logs(retention_days: int) -> int:
    """Delete audit logs older than ``retention_days``."""
    activity.logger.info(f"Cleaning up audit logs older than {retention_days} days")

    async with get_session() as session:
        count = await AuditLogRepository(session).cleanup_old_logs(retention_days)

    activity.logger.info(f"Deleted {count} audit logs")
    return count
