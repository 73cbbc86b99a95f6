"""Cryptographic utilities - password hashing, JWT tokens, and token hashing."""

import secrets
from datetime import UTC, datetime, timedelta
from hashlib import sha256
from typing import Any
from uuid import UUID, uuid4

import argon2
from jose import ExpiredSignatureError, JWTError, jwt

from src.portal.core.config import get_settings


class TokenType:
    """Token type claim values."""

    ACCESS = "access"
    REFRESH = "refresh"


class TokenDecodeError(Exception):
    """Raised when a JWT cannot be decoded."""

    def __init__(self, expired: bool = False):
        self.expired = expired
        super().__init__("Token expired" if expired else "Token invalid")


def hash_token(token: str) -> str:
    """Hash a token using SHA256 for secure storage."""
    return sha256(token.encode()).hexdigest()


def generate_reset_token() -> str:
    """Generate a random password reset token (40 hex chars)."""
    return secrets.token_hex(20)


def _create_password_hasher() -> argon2.PasswordHasher:
    """Create password hasher with settings from config."""
    settings = get_settings()
    return argon2.PasswordHasher(
        time_cost=settings.argon2_time_cost,
        memory_cost=settings.argon2_memory_cost,
        parallelism=settings.argon2_parallelism,
    )


_password_hasher = _create_password_hasher()


def hash_password(password: str) -> str:
    """Hash password using Argon2id."""
    return _password_hasher.hash(password)


def verify_password(password: str, hashed: str) -> bool:
    """Verify password against hash. Returns False on any error."""
    try:
        _password_hasher.verify(hashed, password)
        return True
    except argon2.exceptions.VerifyMismatchError:
        return False
    except argon2.exceptions.InvalidHashError:
        return False


# Verified against when the email is unknown so both login paths cost one Argon2 check
DUMMY_PASSWORD_HASH = hash_password(secrets.token_urlsafe(32))


def create_access_token(
    subject: str | UUID,
    role: str,
    permissions: list[str],
    session_id: str | UUID | None = None,
    expires_delta: timedelta | None = None,
) -> str:
    """Create JWT access token carrying the flattened permission set."""
    settings = get_settings()

    if expires_delta:
        expire = datetime.now(UTC) + expires_delta
    else:
        expire = datetime.now(UTC) + timedelta(minutes=settings.access_token_expire_minutes)

    to_encode: dict[str, Any] = {
        "sub": str(subject),
        "role": role,
        "perms": permissions,
        "exp": expire,
        "type": TokenType.ACCESS,
    }
    if session_id is not None:
        to_encode["sid"] = str(session_id)
    return jwt.encode(  # type: ignore[no-any-return]
        to_encode,
        settings.jwt_secret_key,
        algorithm=settings.jwt_algorithm,
    )


def create_refresh_token(subject: str | UUID) -> tuple[str, datetime]:
    """Create refresh token. Returns (token, expiry as naive UTC datetime).

    Includes a unique JWT ID (jti) so every token hashes differently, even if
    created in the same second for the same user.
    """
    settings = get_settings()
    expire = datetime.now(UTC) + timedelta(days=settings.refresh_token_expire_days)

    to_encode = {
        "sub": str(subject),
        "exp": expire,
        "type": TokenType.REFRESH,
        "jti": str(uuid4()),
    }
    token: str = jwt.encode(  # type: ignore[assignment]
        to_encode,
        settings.jwt_secret_key,
        algorithm=settings.jwt_algorithm,
    )
    return token, expire.replace(tzinfo=None)


def decode_token(token: str) -> dict[str, Any]:
    """Decode and validate JWT token.

    Raises:
        TokenDecodeError: with ``expired=True`` when only the expiry check failed.
    """
    settings = get_settings()
    try:
        return jwt.decode(  # type: ignore[no-any-return]
            token,
            settings.jwt_secret_key,
            algorithms=[settings.jwt_algorithm],
        )
    except ExpiredSignatureError as e:
        raise TokenDecodeError(expired=True) from e
    except JWTError as e:
        raise TokenDecodeError() from e
