"""Service layer - business logic and transaction boundaries."""

from src.portal.services.audit_service import AuditService
from src.portal.services.auth_service import AuthResult, AuthService
from src.portal.services.session_service import SessionService

__all__ = [
    "AuditService",
    "AuthResult",
    "AuthService",
    "SessionService",
]
