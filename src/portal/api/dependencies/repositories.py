"""Repository factory dependencies."""

from typing import Annotated

from fastapi import Depends

from src.portal.api.dependencies.db import DBSession
from src.portal.repositories import (
    RefreshTokenRepository,
    SessionRepository,
    UserRepository,
)


def get_user_repository(session: DBSession) -> UserRepository:
    return UserRepository(session)


def get_token_repository(session: DBSession) -> RefreshTokenRepository:
    return RefreshTokenRepository(session)


def get_session_repository(session: DBSession) -> SessionRepository:
    return SessionRepository(session)


UserRepo = Annotated[UserRepository, Depends(get_user_repository)]
TokenRepo = Annotated[RefreshTokenRepository, Depends(get_token_repository)]
SessionRepo = Annotated[SessionRepository, Depends(get_session_repository)]
