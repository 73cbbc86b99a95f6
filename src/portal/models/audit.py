"""Audit log model for security-relevant events."""

from datetime import datetime
from enum import Enum
from typing import Any
from uuid import UUID, uuid4

from sqlalchemy import JSON, Column, Index
from sqlmodel import Field, SQLModel

from src.portal.models.base import utc_now


class AuditAction(str, Enum):
    """Closed set of audited actions."""

    LOGIN = "login"
    LOGOUT = "logout"
    LOGIN_FAILED = "login_failed"
    LOGOUT_ALL_DEVICES = "logout_all_devices"
    SESSION_REVOKED = "session_revoked"
    TOKEN_REFRESH = "token_refresh"
    TOKEN_REUSE_DETECTED = "token_reuse_detected"
    PASSWORD_CHANGE = "password_change"
    PASSWORD_RESET_REQUEST = "password_reset_request"
    PASSWORD_RESET_COMPLETE = "password_reset_complete"
    ACCOUNT_LOCKED = "account_locked"
    ACCOUNT_UNLOCKED = "account_unlocked"
    PROFILE_UPDATE = "profile_update"
    FILE_UPLOAD = "file_upload"
    FILE_DELETE = "file_delete"
    STUDENT_CREATE = "student_create"
    STUDENT_UPDATE = "student_update"
    STUDENT_DELETE = "student_delete"
    ROLE_CHANGE = "role_change"
    PERMISSION_CHANGE = "permission_change"
    API_ACCESS = "api_access"


class AuditStatus(str, Enum):
    """Audit log status."""

    SUCCESS = "success"
    FAILURE = "failure"
    WARNING = "warning"


class AuditLog(SQLModel, table=True):
    """Append-only audit entry. Removed by the retention sweep after 90 days."""

    __tablename__ = "audit_logs"
    __table_args__ = (
        Index("ix_audit_logs_user_timestamp", "user_id", "timestamp"),
        Index("ix_audit_logs_action_timestamp", "action", "timestamp"),
    )

    id: UUID = Field(default_factory=uuid4, primary_key=True)

    # Actor (absent for events that precede identity resolution)
    user_id: UUID | None = Field(default=None, index=True)
    user_email: str | None = Field(default=None, max_length=255)

    # Action details
    action: str = Field(max_length=50)
    resource: str | None = Field(default=None, max_length=50)
    resource_id: str | None = Field(default=None, max_length=64)
    details: dict[str, Any] | None = Field(
        default=None,
        sa_column=Column(JSON, nullable=True),
    )

    # Request metadata
    method: str | None = Field(default=None, max_length=10)
    endpoint: str | None = Field(default=None, max_length=255)
    ip: str | None = Field(default=None, max_length=45)
    user_agent: str | None = Field(default=None, max_length=500)
    request_id: str | None = Field(default=None, max_length=64)

    # Result
    status: str = Field(default=AuditStatus.SUCCESS.value, max_length=20)
    status_code: int | None = Field(default=None)
    error_message: str | None = Field(default=None, max_length=1000)

    timestamp: datetime = Field(default_factory=utc_now, index=True)
