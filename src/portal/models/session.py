"""Session model - one login on one device, bound to exactly one refresh token."""

from datetime import datetime
from uuid import UUID, uuid4

from sqlalchemy import Index
from sqlmodel import Field, SQLModel

from src.portal.models.base import utc_now
from src.portal.models.enums import DeviceType


class UserSession(SQLModel, table=True):
    """Device session record.

    ``is_active`` mirrors the bound refresh token; both rows are always changed
    in the same transaction.
    """

    __tablename__ = "sessions"
    __table_args__ = (
        Index("ix_sessions_user_active", "user_id", "is_active"),
        Index("ix_sessions_active_ended", "is_active", "ended_at"),
    )

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    user_id: UUID = Field(foreign_key="users.id", index=True)
    refresh_token_id: UUID = Field(foreign_key="refresh_tokens.id", unique=True)

    # Network / device
    ip: str | None = Field(default=None, max_length=45)
    user_agent: str | None = Field(default=None, max_length=500)
    browser: str | None = Field(default=None, max_length=100)
    browser_version: str | None = Field(default=None, max_length=50)
    os: str | None = Field(default=None, max_length=100)
    os_version: str | None = Field(default=None, max_length=50)
    device: str | None = Field(default=None, max_length=100)
    device_type: str = Field(default=DeviceType.DESKTOP.value, max_length=20)

    # Lifecycle
    is_active: bool = Field(default=True)
    last_activity: datetime = Field(default_factory=utc_now)
    created_at: datetime = Field(default_factory=utc_now)
    expires_at: datetime
    ended_at: datetime | None = Field(default=None)
    end_reason: str | None = Field(default=None, max_length=30)
