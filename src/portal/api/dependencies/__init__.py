"""FastAPI dependency injection definitions."""

from src.portal.api.dependencies.auth import (
    AdminUser,
    CurrentSessionId,
    CurrentUser,
    SuperAdmin,
    TokenClaims,
    get_current_session_id,
    get_current_user,
    get_token_claims,
    require_roles,
)
from src.portal.api.dependencies.db import DBSession, get_db_session
from src.portal.api.dependencies.repositories import (
    SessionRepo,
    TokenRepo,
    UserRepo,
    get_session_repository,
    get_token_repository,
    get_user_repository,
)
from src.portal.api.dependencies.services import (
    AuditServiceDep,
    AuthServiceDep,
    SessionServiceDep,
    get_audit_service,
    get_auth_service,
    get_session_service,
)

__all__ = [
    # Database
    "DBSession",
    "get_db_session",
    # Auth
    "AdminUser",
    "CurrentSessionId",
    "CurrentUser",
    "SuperAdmin",
    "TokenClaims",
    "get_current_session_id",
    "get_current_user",
    "get_token_claims",
    "require_roles",
    # Repositories
    "SessionRepo",
    "TokenRepo",
    "UserRepo",
    "get_session_repository",
    "get_token_repository",
    "get_user_repository",
    # Services
    "AuditServiceDep",
    "AuthServiceDep",
    "SessionServiceDep",
    "get_audit_service",
    "get_auth_service",
    "get_session_service",
]
