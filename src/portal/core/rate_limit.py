"""Endpoint rate limiting with slowapi.

Uses Redis for distributed counters when REDIS_URL is configured and falls
back to per-process memory otherwise. Login is limited to 5 attempts per 15
minutes and the password reset endpoints to 3 per hour per client IP.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address
from starlette.requests import Request

from src.portal.core.audit_context import get_client_ip
from src.portal.core.config import get_settings
from src.portal.core.logging import get_logger

logger = get_logger(__name__)


def get_rate_limit_key(request: Request) -> str:
    """Rate limit key: the client IP, honouring X-Forwarded-For from trusted proxies only.

    Never include user-controlled headers other than the trusted forwarded
    address; rotating them would create unlimited buckets.
    """
    client_host = get_remote_address(request)
    ip = get_client_ip(request.headers.get("x-forwarded-for"), client_host)
    return ip or "unknown"


def create_limiter() -> Limiter:
    """Create rate limiter with appropriate storage backend.

    Disabled in the testing environment.
    """
    settings = get_settings()

    if settings.app_env == "testing":
        logger.info("Rate limiter disabled (testing environment)")
        return Limiter(key_func=get_rate_limit_key, enabled=False)

    if settings.redis_url:
        logger.info("Rate limiter using Redis backend")
        return Limiter(key_func=get_rate_limit_key, storage_uri=settings.redis_url)

    logger.info("Rate limiter using in-memory backend (not distributed)")
    return Limiter(key_func=get_rate_limit_key)


def login_rate_limit() -> str:
    return get_settings().login_rate_limit


def password_reset_rate_limit() -> str:
    return get_settings().password_reset_rate_limit


# Reads settings at import time; changing limits requires a restart
limiter = create_limiter()
