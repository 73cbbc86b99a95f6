"""Database session dependency."""

from collections.abc import AsyncGenerator
from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from src.portal.core.db import get_session


async def get_db_session() -> AsyncGenerator[AsyncSession]:
    """One database session per request, shared by every dependency that asks."""
    async with get_session() as session:
        yield session


DBSession = Annotated[AsyncSession, Depends(get_db_session)]
