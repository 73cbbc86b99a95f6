"""User model - the credential store."""

from datetime import datetime
from uuid import UUID, uuid4

from sqlmodel import Field, SQLModel

from src.portal.models.base import utc_now
from src.portal.models.enums import UserRole


class User(SQLModel, table=True):
    """Portal user with hashed password and lockout counters."""

    __tablename__ = "users"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    email: str = Field(max_length=255, unique=True, index=True)
    hashed_password: str = Field(max_length=255)
    name: str = Field(max_length=100)
    role: str = Field(default=UserRole.STUDENT.value, max_length=50)
    sub_role: str | None = Field(default=None, max_length=50)
    consultancy_id: UUID | None = Field(default=None, index=True)

    # Lockout
    login_attempts: int = Field(default=0)
    lock_until: datetime | None = Field(default=None)
    last_failed_login: datetime | None = Field(default=None)

    # Password reset
    reset_password_token_hash: str | None = Field(default=None, max_length=255, index=True)
    reset_password_expires_at: datetime | None = Field(default=None)

    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    def is_locked(self, now: datetime | None = None) -> bool:
        """True while lock_until lies in the future."""
        return self.lock_until is not None and self.lock_until > (now or utc_now())
