"""Service factory dependencies."""

from typing import Annotated

from fastapi import BackgroundTasks, Depends

from src.portal.api.dependencies.db import DBSession
from src.portal.api.dependencies.repositories import SessionRepo, TokenRepo, UserRepo
from src.portal.services import AuditService, AuthService, SessionService


def get_audit_service(background_tasks: BackgroundTasks) -> AuditService:
    """Get audit service.

    Entries are written after the response through their own database
    session, so a rolled-back business transaction never loses its audit trail.
    """
    return AuditService(background=background_tasks)


AuditServiceDep = Annotated[AuditService, Depends(get_audit_service)]


def get_auth_service(
    user_repo: UserRepo,
    token_repo: TokenRepo,
    session_repo: SessionRepo,
    session: DBSession,
    audit: AuditServiceDep,
) -> AuthService:
    return AuthService(user_repo, token_repo, session_repo, session, audit)


def get_session_service(
    session_repo: SessionRepo,
    token_repo: TokenRepo,
    session: DBSession,
) -> SessionService:
    return SessionService(session_repo, token_repo, session)


AuthServiceDep = Annotated[AuthService, Depends(get_auth_service)]
SessionServiceDep = Annotated[SessionService, Depends(get_session_service)]
