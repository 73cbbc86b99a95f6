"""Revoked refresh-token blacklist backed by Redis.

The database stays authoritative for revocation; the blacklist only lets the
refresh endpoint reject a revoked token before touching the database. The
stored value is the revocation reason so reuse of a rotated token can still be
told apart from an ordinary revoked one.
"""

from src.portal.core.redis import get_redis

PREFIX_TOKEN_BLACKLIST = "token_blacklist"


def _key(token_hash: str) -> str:
    return f"{PREFIX_TOKEN_BLACKLIST}:{token_hash}"


async def blacklist_token(token_hash: str, ttl: int, reason: str = "revoked") -> bool:
    """Mark a token hash as revoked for ``ttl`` seconds.

    Returns:
        True if stored in Redis, False if Redis is unavailable.
    """
    redis = await get_redis()
    if not redis:
        return False
    await redis.setex(_key(token_hash), max(ttl, 1), reason)
    return True


async def blacklist_tokens(token_hashes: list[str], ttl: int, reason: str = "revoked") -> int:
    """Mark several token hashes as revoked in a single pipeline.

    Returns:
        Number of hashes stored (0 if Redis unavailable).
    """
    if not token_hashes:
        return 0
    redis = await get_redis()
    if not redis:
        return 0

    pipe = redis.pipeline()
    for token_hash in token_hashes:
        pipe.setex(_key(token_hash), max(ttl, 1), reason)
    await pipe.execute()
    return len(token_hashes)


async def get_blacklist_reason(token_hash: str) -> str | None:
    """Return the revocation reason if the token is blacklisted.

    Returns None both when the token is not blacklisted and when Redis is
    unavailable; either way the caller must check the database.
    """
    redis = await get_redis()
    if not redis:
        return None
    reason: str | None = await redis.get(_key(token_hash))
    return reason
