"""Redis store for caching and token revocation.

Handles:
- Caching with TTL policies
- Revoked bearer tokens (logout)

TTL policies:
- Admin dashboard stats: settings.dashboard_cache_ttl (default 30 seconds)
- Revoked tokens: remaining lifetime of the token

The store listing is never cached here: averages are recomputed per request.
"""

import json
import logging
from typing import Any

import redis.asyncio as redis

from store_ratings.settings import get_settings

# Key prefixes
PREFIX_REVOKED_TOKEN = "auth:revoked:"
PREFIX_DASHBOARD = "dashboard:"

KEY_DASHBOARD_STATS = f"{PREFIX_DASHBOARD}stats"

# Redis client (initialized on startup)
_redis: redis.Redis | None = None
logger = logging.getLogger("uvicorn.error")


async def init_redis() -> None:
    """Initialize Redis connection."""
    global _redis
    settings = get_settings()
    if not settings.redis_enabled:
        logger.info("Redis disabled (REDIS_ENABLED=false)")
        return
    _redis = redis.from_url(
        settings.redis_url,
        encoding="utf-8",
        decode_responses=True,
        socket_connect_timeout=5,
        socket_timeout=5,
    )
    # Validate connectivity early (especially for `rediss://` in production).
    await _redis.ping()
    logger.info("Redis connected")


async def close_redis() -> None:
    """Close Redis connection."""
    global _redis
    if _redis:
        await _redis.aclose()
        _redis = None


def redis_enabled() -> bool:
    """Whether Redis-backed features (revocation, caching) are active."""
    return get_settings().redis_enabled


def _get_redis() -> redis.Redis:
    """Get Redis client instance."""
    if _redis is None:
        raise RuntimeError("Redis not initialized. Call init_redis() first.")
    return _redis


# ============================================================
# Generic cache operations
# ============================================================


async def cache_get(key: str) -> str | None:
    """Get value from cache.

    Args:
        key: Cache key.

    Returns:
        Cached value or None if not found.
    """
    return await _get_redis().get(key)


async def cache_set(key: str, value: str, ttl: int) -> None:
    """Set value in cache with TTL.

    Args:
        key: Cache key.
        value: Value to cache.
        ttl: Time-to-live in seconds.
    """
    await _get_redis().setex(key, ttl, value)


async def cache_get_json(key: str) -> dict[str, Any] | None:
    """Get JSON value from cache."""
    value = await cache_get(key)
    if value:
        return json.loads(value)
    return None


async def cache_set_json(key: str, value: dict[str, Any], ttl: int) -> None:
    """Set JSON value in cache."""
    await cache_set(key, json.dumps(value), ttl)


# ============================================================
# Token revocation (logout)
# ============================================================


async def revoke_token(jti: str, ttl: int) -> None:
    """Mark a token id as revoked until it would have expired anyway.

    Args:
        jti: Token id claim.
        ttl: Seconds until the token's exp; values < 1 are clamped to 1.
    """
    await cache_set(f"{PREFIX_REVOKED_TOKEN}{jti}", "1", max(1, ttl))


async def is_token_revoked(jti: str) -> bool:
    """Check whether a token id was revoked by logout."""
    result = await cache_get(f"{PREFIX_REVOKED_TOKEN}{jti}")
    return result is not None


# ============================================================
# Dashboard stats cache
# ============================================================


async def get_dashboard_stats_cache() -> dict[str, Any] | None:
    return await cache_get_json(KEY_DASHBOARD_STATS)


async def set_dashboard_stats_cache(payload: dict[str, Any], ttl: int) -> None:
    await cache_set_json(KEY_DASHBOARD_STATS, payload, ttl)
