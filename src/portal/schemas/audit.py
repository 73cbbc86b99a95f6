"""Audit log schemas for API responses."""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict

from src.portal.schemas.pagination import CursorPage


class AuditLogRead(BaseModel):
    """Audit log entry for API responses."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    user_id: UUID | None
    user_email: str | None
    action: str
    resource: str | None
    resource_id: str | None
    method: str | None
    endpoint: str | None
    ip: str | None
    user_agent: str | None
    request_id: str | None
    status: str
    status_code: int | None
    details: dict[str, Any] | None
    error_message: str | None
    timestamp: datetime


AuditLogListResponse = CursorPage[AuditLogRead]
