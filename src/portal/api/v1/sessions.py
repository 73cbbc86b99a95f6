"""Session registry endpoints - list and revoke device sessions."""

from uuid import UUID

from fastapi import APIRouter, Query
from starlette.requests import Request

from src.portal.api.cookies import REFRESH_TOKEN_COOKIE
from src.portal.api.dependencies import (
    AdminUser,
    AuthServiceDep,
    CurrentSessionId,
    CurrentUser,
    SessionServiceDep,
)
from src.portal.api.routing import AuditedRoute
from src.portal.core.audit_context import get_request_ip
from src.portal.schemas import (
    CleanupResponse,
    MessageResponse,
    RevokeAllResponse,
    SessionListResponse,
    SessionRead,
    SessionStatsResponse,
)

router = APIRouter(prefix="/sessions", tags=["sessions"], route_class=AuditedRoute)


@router.get("/me", response_model=SessionListResponse)
async def list_my_sessions(
    current_user: CurrentUser,
    session_id: CurrentSessionId,
    service: SessionServiceDep,
) -> SessionListResponse:
    """List the caller's active sessions, most recently used first."""
    sessions = await service.get_active_sessions(current_user, session_id)
    return SessionListResponse(count=len(sessions), sessions=sessions)


@router.get("/admin/stats", response_model=SessionStatsResponse)
async def session_stats(admin: AdminUser, service: SessionServiceDep) -> SessionStatsResponse:
    """Session counts and recent sessions.

    Consultancy admins only see users of their own consultancy.
    """
    return await service.get_stats(admin)


@router.post("/admin/cleanup", response_model=CleanupResponse)
async def cleanup_sessions(
    admin: AdminUser,
    service: SessionServiceDep,
    days: int = Query(default=30, ge=1, le=365),
) -> CleanupResponse:
    """Delete sessions and refresh tokens that ended more than ``days`` ago."""
    sessions_deleted, tokens_deleted = await service.cleanup(days)
    return CleanupResponse(
        message=f"Cleaned up sessions older than {days} days",
        sessions_deleted=sessions_deleted,
        tokens_deleted=tokens_deleted,
    )


@router.delete("/all/remove", response_model=RevokeAllResponse)
async def revoke_all_other_sessions(
    request: Request,
    current_user: CurrentUser,
    session_id: CurrentSessionId,
    service: AuthServiceDep,
) -> RevokeAllResponse:
    """Sign out every other device. The current session stays active."""
    count = await service.revoke_all_other_sessions(
        current_user,
        ip=get_request_ip(request),
        current_refresh_token=request.cookies.get(REFRESH_TOKEN_COOKIE),
        current_session_id=session_id,
    )
    return RevokeAllResponse(
        message=f"Logged out from {count} other device(s)",
        sessions_revoked=count,
    )


@router.get("/{session_id}", response_model=SessionRead)
async def get_session(
    session_id: UUID,
    current_user: CurrentUser,
    current_session_id: CurrentSessionId,
    service: SessionServiceDep,
) -> SessionRead:
    """Get one of the caller's sessions."""
    return await service.get_session(current_user, session_id, current_session_id)


@router.delete("/{session_id}", response_model=MessageResponse)
async def revoke_session(
    request: Request,
    session_id: UUID,
    current_user: CurrentUser,
    service: AuthServiceDep,
) -> MessageResponse:
    """Revoke one of the caller's sessions."""
    await service.revoke_session(current_user, session_id, ip=get_request_ip(request))
    return MessageResponse(message="Session revoked successfully")
