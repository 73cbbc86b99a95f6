"""Audit log endpoints - super admin only."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Query

from src.portal.api.dependencies import AuditServiceDep, SuperAdmin
from src.portal.models import AuditStatus
from src.portal.schemas import AuditLogListResponse, AuditLogRead

router = APIRouter(prefix="/audit", tags=["audit"])

# Query parameter types
CursorQuery = Annotated[str | None, Query(description="Pagination cursor")]
LimitQuery = Annotated[int, Query(ge=1, le=100, description="Items per page")]
ActionQuery = Annotated[str | None, Query(description="Filter by action, e.g. login_failed")]
UserIdQuery = Annotated[UUID | None, Query(description="Filter by user ID")]
StatusQuery = Annotated[AuditStatus | None, Query(description="Filter by outcome")]


@router.get(
    "/logs",
    response_model=AuditLogListResponse,
    responses={
        200: {
            "description": "List of audit logs",
            "content": {
                "application/json": {
                    "example": {
                        "items": [
                            {
                                "id": "550e8400-e29b-41d4-a716-446655440000",
                                "user_id": "550e8400-e29b-41d4-a716-446655440002",
                                "user_email": "counselor@example.com",
                                "action": "login",
                                "resource": None,
                                "resource_id": None,
                                "method": "POST",
                                "endpoint": "/api/v1/auth/login",
                                "ip": "192.168.1.1",
                                "user_agent": "Mozilla/5.0...",
                                "request_id": "abc-123",
                                "status": "success",
                                "status_code": 200,
                                "details": {"session_id": "..."},
                                "error_message": None,
                                "timestamp": "2025-01-01T00:00:00",
                            }
                        ],
                        "next_cursor": "abc123",
                        "has_more": True,
                    }
                }
            },
        },
        403: {"description": "Super admin access required"},
    },
)
async def list_audit_logs(
    _: SuperAdmin,
    audit_service: AuditServiceDep,
    cursor: CursorQuery = None,
    limit: LimitQuery = 50,
    action: ActionQuery = None,
    user_id: UserIdQuery = None,
    status: StatusQuery = None,
) -> AuditLogListResponse:
    """List audit logs newest first."""
    logs, next_cursor, has_more = await audit_service.list_logs(
        cursor=cursor,
        limit=limit,
        action=action,
        user_id=user_id,
        status=status.value if status else None,
    )

    return AuditLogListResponse(
        items=[AuditLogRead.model_validate(log) for log in logs],
        next_cursor=next_cursor,
        has_more=has_more,
    )


@router.get(
    "/failed-logins",
    response_model=AuditLogListResponse,
    responses={403: {"description": "Super admin access required"}},
)
async def list_failed_logins(
    _: SuperAdmin,
    audit_service: AuditServiceDep,
    hours: Annotated[int, Query(ge=1, le=720, description="Look-back window")] = 24,
    cursor: CursorQuery = None,
    limit: LimitQuery = 50,
) -> AuditLogListResponse:
    """Failed login attempts within the last ``hours`` hours."""
    logs, next_cursor, has_more = await audit_service.list_failed_logins(
        hours=hours,
        cursor=cursor,
        limit=limit,
    )

    return AuditLogListResponse(
        items=[AuditLogRead.model_validate(log) for log in logs],
        next_cursor=next_cursor,
        has_more=has_more,
    )
