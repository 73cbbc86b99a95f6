"""Session registry schemas. The raw user agent is never exposed."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict


class SessionRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    ip: str | None
    browser: str | None
    browser_version: str | None
    os: str | None
    os_version: str | None
    device: str | None
    device_type: str
    is_active: bool
    last_activity: datetime
    created_at: datetime
    expires_at: datetime
    ended_at: datetime | None
    end_reason: str | None
    is_current: bool = False


class SessionListResponse(BaseModel):
    count: int
    sessions: list[SessionRead]


class RevokeAllResponse(BaseModel):
    message: str
    sessions_revoked: int


class RecentSession(SessionRead):
    user_id: UUID
    user_email: str


class SessionStatsResponse(BaseModel):
    total_active: int
    total_all: int
    recent_sessions: list[RecentSession]


class CleanupResponse(BaseModel):
    message: str
    sessions_deleted: int
    tokens_deleted: int
