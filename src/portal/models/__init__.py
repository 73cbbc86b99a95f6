"""Model exports.

Import from here: `from src.portal.models import User, UserSession`
"""

from src.portal.models.audit import AuditAction, AuditLog, AuditStatus
from src.portal.models.auth import RefreshToken
from src.portal.models.enums import (
    DeviceType,
    RevokeReason,
    SessionEndReason,
    UserRole,
    UserSubRole,
)
from src.portal.models.session import UserSession
from src.portal.models.user import User

__all__ = [
    # Enums
    "AuditAction",
    "AuditStatus",
    "DeviceType",
    "RevokeReason",
    "SessionEndReason",
    "UserRole",
    "UserSubRole",
    # Models
    "AuditLog",
    "RefreshToken",
    "UserSession",
    "User",
]
