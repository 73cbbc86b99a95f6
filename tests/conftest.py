"""Root test fixtures shared across all test types.

This conftest contains fixtures that can be used by both unit and integration tests.
Database and HTTP client fixtures are in tests/integration/conftest.py.
"""

import os

# Environment must be set before any app imports: settings are cached and the
# rate limiter and password hasher are built at import time
os.environ.setdefault("APP_ENV", "testing")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key-that-is-at-least-32-characters-long")
# Cheap Argon2 parameters keep the suite fast
os.environ.setdefault("ARGON2_TIME_COST", "1")
os.environ.setdefault("ARGON2_MEMORY_COST", "8192")
os.environ.setdefault("REDIS_URL", "")

# ruff: noqa: E402 - Imports must be after env var setup
from collections.abc import AsyncGenerator

import pytest
from fakeredis import aioredis as fakeredis_aio
from redis.asyncio import Redis

from src.portal.core import redis as redis_core
from src.portal.core.config import get_settings

# Clear settings cache to ensure test environment variables are picked up
get_settings.cache_clear()


@pytest.fixture(autouse=True)
def _reset_redis_state() -> None:
    """Forget any Redis client or failed connection between tests."""
    redis_core.reset_redis_state()
    yield
    redis_core.reset_redis_state()


# --- Redis Test Fixtures (shared) ---


@pytest.fixture
async def fake_redis() -> AsyncGenerator[Redis]:
    """Provides a fakeredis client for testing.

    Returns an in-memory Redis implementation that behaves like
    a real Redis server but doesn't require external dependencies.
    """
    client = fakeredis_aio.FakeRedis(decode_responses=True)
    yield client
    await client.aclose()


@pytest.fixture
async def mock_redis(fake_redis: Redis, monkeypatch: pytest.MonkeyPatch) -> AsyncGenerator[Redis]:
    """Patches get_redis() to return fakeredis client.

    Patches both src.portal.core.redis and src.portal.core.cache modules
    to ensure the fake redis is used everywhere.
    """

    async def _get_fake_redis() -> Redis:
        return fake_redis

    monkeypatch.setattr("src.portal.core.redis.get_redis", _get_fake_redis)
    monkeypatch.setattr("src.portal.core.cache.get_redis", _get_fake_redis)
    yield fake_redis


@pytest.fixture
async def mock_redis_unavailable(monkeypatch: pytest.MonkeyPatch) -> AsyncGenerator[None]:
    """Patches get_redis() to return None (simulates Redis unavailable)."""

    async def _get_none() -> None:
        return None

    monkeypatch.setattr("src.portal.core.redis.get_redis", _get_none)
    monkeypatch.setattr("src.portal.core.cache.get_redis", _get_none)
    yield
