"""Redis client for idempotency keys on credit issuance.

The client is created by the FastAPI lifespan and closed on shutdown; it is
optional, and callers check ``redis_available()`` before relying on it.

Usage:
    from blue_carbon_registry.infrastructure.redis_client import claim_idempotency_key

    if not await claim_idempotency_key("mint", key):
        raise DuplicateOperationError(key)
"""

from __future__ import annotations

import redis.asyncio as aioredis

from blue_carbon_registry.config import get_settings
from blue_carbon_registry.logging_config import get_logger

logger = get_logger(__name__)

_redis_client: aioredis.Redis | None = None


async def init_redis() -> aioredis.Redis:
    """Initialize and return the Redis client. Called during app startup."""
    global _redis_client
    settings = get_settings()
    client = aioredis.from_url(settings.redis_url, decode_responses=True)
    await client.ping()
    _redis_client = client
    logger.info("redis.connected", url=settings.redis_url)
    return _redis_client


def redis_available() -> bool:
    """Return True once init_redis() has succeeded."""
    return _redis_client is not None


def get_redis() -> aioredis.Redis:
    """Return the Redis client singleton. Must call init_redis() first."""
    if _redis_client is None:
        raise RuntimeError("Redis not initialized. Call init_redis() first.")
    return _redis_client


async def close_redis() -> None:
    """Close the Redis connection. Called during app shutdown."""
    global _redis_client
    if _redis_client is not None:
        await _redis_client.aclose()
        logger.info("redis.disconnected")
        _redis_client = None


# --- Idempotency Helpers ---


def _key(scope: str, key: str) -> str:
    return f"idempotency:{scope}:{key}"


async def claim_idempotency_key(scope: str, key: str) -> bool:
    """Atomically claim an idempotency key with a TTL.

    Returns True if the key was new, False if it was already claimed.
    """
    settings = get_settings()
    claimed = await get_redis().set(
        _key(scope, key),
        "pending",
        ex=settings.redis_idempotency_ttl_seconds,
        nx=True,
    )
    return bool(claimed)


async def release_idempotency_key(scope: str, key: str) -> None:
    """Drop a claimed key so a failed operation can be retried by the caller."""
    await get_redis().delete(_key(scope, key))
