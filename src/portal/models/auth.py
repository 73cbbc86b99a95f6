"""Refresh token model."""

from datetime import datetime
from uuid import UUID, uuid4

from sqlmodel import Field, SQLModel

from src.portal.models.base import utc_now


class RefreshToken(SQLModel, table=True):
    """Persisted refresh token. Only the SHA256 hash of the plaintext is stored."""

    __tablename__ = "refresh_tokens"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    user_id: UUID = Field(foreign_key="users.id", index=True)
    token_hash: str = Field(max_length=255, unique=True, index=True)
    expires_at: datetime
    created_by_ip: str | None = Field(default=None, max_length=45)
    user_agent: str | None = Field(default=None, max_length=500)

    is_revoked: bool = Field(default=False)
    revoked_at: datetime | None = Field(default=None)
    revoked_by_ip: str | None = Field(default=None, max_length=45)
    revoked_reason: str | None = Field(default=None, max_length=50)
    replaced_by_token_id: UUID | None = Field(default=None)

    created_at: datetime = Field(default_factory=utc_now)

    def is_expired(self, now: datetime | None = None) -> bool:
        return self.expires_at <= (now or utc_now())

    def is_active(self, now: datetime | None = None) -> bool:
        """Usable iff not revoked and not expired."""
        return not self.is_revoked and not self.is_expired(now)
