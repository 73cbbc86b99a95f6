"""Security utilities - crypto and validators.

Re-exports all security-related functions for convenience.
"""

from src.portal.core.security.crypto import (
    DUMMY_PASSWORD_HASH,
    TokenDecodeError,
    TokenType,
    create_access_token,
    create_refresh_token,
    decode_token,
    generate_reset_token,
    hash_password,
    hash_token,
    verify_password,
)
from src.portal.core.security.validators import validate_password_strength

__all__ = [
    # Crypto
    "DUMMY_PASSWORD_HASH",
    "TokenDecodeError",
    "TokenType",
    "create_access_token",
    "create_refresh_token",
    "decode_token",
    "generate_reset_token",
    "hash_password",
    "hash_token",
    "verify_password",
    # Validators
    "validate_password_strength",
]
