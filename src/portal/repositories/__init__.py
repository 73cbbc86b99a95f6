"""Repository layer - data access abstraction."""

from src.portal.repositories.audit import AuditLogRepository
from src.portal.repositories.base import BaseRepository
from src.portal.repositories.session import SessionRepository
from src.portal.repositories.token import RefreshTokenRepository
from src.portal.repositories.user import UserRepository

__all__ = [
    "AuditLogRepository",
    "BaseRepository",
    "RefreshTokenRepository",
    "SessionRepository",
    "UserRepository",
]
