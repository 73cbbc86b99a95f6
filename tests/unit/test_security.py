"""Tests for password hashing, JWT handling and the password policy."""

import time
from datetime import timedelta
from uuid import uuid4

import pytest

from src.portal.core.config import get_settings
from src.portal.core.security import (
    DUMMY_PASSWORD_HASH,
    TokenDecodeError,
    TokenType,
    create_access_token,
    create_refresh_token,
    decode_token,
    generate_reset_token,
    hash_password,
    hash_token,
    validate_password_strength,
    verify_password,
)
from src.portal.schemas import ChangePasswordRequest, LoginRequest, ResetPasswordRequest

pytestmark = pytest.mark.unit


class TestPasswordHashing:
    def test_hash_and_verify(self):
        hashed = hash_password("S3cure!Passphrase")
        assert hashed.startswith("$argon2id$")
        assert verify_password("S3cure!Passphrase", hashed)

    def test_wrong_password(self):
        assert not verify_password("wrong", hash_password("S3cure!Passphrase"))

    def test_invalid_hash_is_a_mismatch(self):
        assert not verify_password("anything", "not-a-hash")

    def test_dummy_hash_never_matches_common_passwords(self):
        assert not verify_password("", DUMMY_PASSWORD_HASH)
        assert not verify_password("password", DUMMY_PASSWORD_HASH)


class TestTokenHashing:
    def test_hash_is_deterministic_sha256(self):
        assert hash_token("abc") == hash_token("abc")
        assert len(hash_token("abc")) == 64

    def test_reset_token_is_40_hex_chars(self):
        token = generate_reset_token()
        assert len(token) == 40
        int(token, 16)
        assert generate_reset_token() != token


class TestAccessToken:
    def test_claims(self):
        user_id = uuid4()
        session_id = uuid4()
        token = create_access_token(
            user_id, "consultancy_staff", ["consultancy_staff", "manager"], session_id
        )
        payload = decode_token(token)

        assert payload["sub"] == str(user_id)
        assert payload["role"] == "consultancy_staff"
        assert payload["perms"] == ["consultancy_staff", "manager"]
        assert payload["sid"] == str(session_id)
        assert payload["type"] == TokenType.ACCESS

    def test_default_lifetime(self):
        before = int(time.time())
        payload = decode_token(create_access_token(uuid4(), "student", ["student"]))
        expected = get_settings().access_token_expire_minutes * 60
        assert expected - 2 <= payload["exp"] - before <= expected + 2

    def test_expired_token(self):
        token = create_access_token(uuid4(), "student", ["student"], expires_delta=timedelta(-1))
        with pytest.raises(TokenDecodeError) as exc_info:
            decode_token(token)
        assert exc_info.value.expired is True

    def test_tampered_token(self):
        token = create_access_token(uuid4(), "student", ["student"])
        with pytest.raises(TokenDecodeError) as exc_info:
            decode_token(token[:-2] + "xx")
        assert exc_info.value.expired is False

    def test_garbage_token(self):
        with pytest.raises(TokenDecodeError):
            decode_token("not.a.jwt")


class TestRefreshToken:
    def test_unique_per_call(self):
        user_id = uuid4()
        first, _ = create_refresh_token(user_id)
        second, _ = create_refresh_token(user_id)
        assert first != second

    def test_type_and_naive_expiry(self):
        token, expires_at = create_refresh_token(uuid4())
        assert decode_token(token)["type"] == TokenType.REFRESH
        assert expires_at.tzinfo is None


class TestPasswordPolicy:
    def test_strong_password_passes(self):
        assert validate_password_strength("Corr3ct-Horse-Battery!") == "Corr3ct-Horse-Battery!"

    def test_too_short(self):
        with pytest.raises(ValueError, match="at least 8 characters"):
            validate_password_strength("Ab1!")

    @pytest.mark.parametrize(
        "password",
        ["alllowercase1!", "ALLUPPERCASE1!", "NoDigitsHere!", "NoSpecial123abc"],
    )
    def test_missing_character_class(self, password):
        with pytest.raises(ValueError, match="uppercase letter"):
            validate_password_strength(password)

    def test_guessable_password(self):
        with pytest.raises(ValueError, match="(?i)weak"):
            validate_password_strength("Password1!")

    def test_reset_schema_applies_policy(self):
        with pytest.raises(ValueError):
            ResetPasswordRequest(password="password")

    def test_change_schema_applies_policy_to_new_password_only(self):
        data = ChangePasswordRequest(current_password="old", new_password="Corr3ct-Horse-Battery!")
        assert data.current_password == "old"
        with pytest.raises(ValueError):
            ChangePasswordRequest(current_password="old", new_password="short")

    def test_login_schema_lowercases_email(self):
        assert LoginRequest(email="Jane@Example.COM", password="x").email == "jane@example.com"
