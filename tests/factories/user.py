"""User factories for test data generation."""

from datetime import timedelta

from polyfactory import Use

from src.portal.core.security import hash_password
from src.portal.models import User, UserRole, UserSubRole
from tests.factories.base import BaseFactory, generate_uuid, utc_now

# Default test password - satisfies the password policy
DEFAULT_TEST_PASSWORD = "Corr3ct-Horse-Battery!"

_DEFAULT_HASH = hash_password(DEFAULT_TEST_PASSWORD)


class UserFactory(BaseFactory):
    """Factory for generating User test data."""

    __model__ = User

    id = Use(generate_uuid)
    email = Use(lambda: f"user_{generate_uuid().hex[-8:]}@example.com")
    hashed_password = _DEFAULT_HASH
    name = "Test User"
    role = UserRole.STUDENT.value
    sub_role = None
    consultancy_id = None
    login_attempts = 0
    lock_until = None
    last_failed_login = None
    reset_password_token_hash = None
    reset_password_expires_at = None
    created_at = Use(utc_now)
    updated_at = Use(utc_now)

    @classmethod
    def super_admin(cls, **kwargs):
        """Create a super admin."""
        return cls.build(role=UserRole.SUPER_ADMIN.value, name="Super Admin", **kwargs)

    @classmethod
    def consultancy_admin(cls, **kwargs):
        """Create a consultancy admin, in a new consultancy unless one is given."""
        kwargs.setdefault("consultancy_id", generate_uuid())
        return cls.build(role=UserRole.CONSULTANCY_ADMIN.value, **kwargs)

    @classmethod
    def staff(cls, sub_role: UserSubRole, **kwargs):
        """Create consultancy staff with the given sub-role."""
        return cls.build(
            role=UserRole.CONSULTANCY_STAFF.value,
            sub_role=sub_role.value,
            **kwargs,
        )

    @classmethod
    def locked(cls, minutes: int = 15, **kwargs):
        """Create a user locked for ``minutes`` more minutes."""
        return cls.build(
            login_attempts=5,
            lock_until=utc_now() + timedelta(minutes=minutes),
            last_failed_login=utc_now(),
            **kwargs,
        )
