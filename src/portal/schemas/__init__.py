from src.portal.schemas.audit import AuditLogListResponse, AuditLogRead
from src.portal.schemas.auth import (
    ChangePasswordRequest,
    ChangePasswordResponse,
    ForgotPasswordRequest,
    LoginRequest,
    LoginResponse,
    MessageResponse,
    RefreshRequest,
    ResetPasswordRequest,
    TokenPair,
)
from src.portal.schemas.pagination import CursorPage
from src.portal.schemas.session import (
    CleanupResponse,
    RecentSession,
    RevokeAllResponse,
    SessionListResponse,
    SessionRead,
    SessionStatsResponse,
)
from src.portal.schemas.user import UserRead

__all__ = [
    # Audit
    "AuditLogListResponse",
    "AuditLogRead",
    # Auth
    "ChangePasswordRequest",
    "ChangePasswordResponse",
    "ForgotPasswordRequest",
    "LoginRequest",
    "LoginResponse",
    "MessageResponse",
    "RefreshRequest",
    "ResetPasswordRequest",
    "TokenPair",
    # Pagination
    "CursorPage",
    # Session
    "CleanupResponse",
    "RecentSession",
    "RevokeAllResponse",
    "SessionListResponse",
    "SessionRead",
    "SessionStatsResponse",
    # User
    "UserRead",
]
