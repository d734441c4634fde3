"""
Redis caching for the public available-jobs listing.

CACHING STRATEGY
================

What we cache:
  - The /jobs/available response rows (JSON-serialized)
  - Cache key pattern: "jobs:available:limit={limit}"

Invalidation:
  - Any job mutation (post, apply, accept, reject, update, delete) changes
    either the set of open jobs or their applicant counts, so all
    "jobs:available:*" keys are dropped
  - TTL-based expiry as safety net

Redis is advisory: every failure is logged and the caller falls back to
the database.
"""

import json
from typing import Optional

import redis.asyncio as redis
from app.core.config import get_settings
from app.core.logging import get_logger
from app.core.metrics import record_cache_operation

logger = get_logger(__name__)
settings = get_settings()

AVAILABLE_JOBS_PREFIX = "jobs:available:"

_redis_client: Optional[redis.Redis] = None


async def get_redis() -> Optional[redis.Redis]:
    """Get or create Redis connection. Returns None if Redis is disabled."""
    global _redis_client

    if not settings.REDIS_ENABLED:
        return None

    if _redis_client is None:
        try:
            _redis_client = redis.from_url(
                settings.REDIS_URL,
                encoding="utf-8",
                decode_responses=True,
                socket_connect_timeout=5,
                socket_timeout=5,
                retry_on_timeout=True,
            )
            await _redis_client.ping()
            logger.info("redis_connected", url=settings.REDIS_URL)
        except Exception as e:
            logger.error("redis_connection_failed", error=str(e))
            _redis_client = None
            return None

    return _redis_client


async def close_redis() -> None:
    """Close Redis connection on shutdown."""
    global _redis_client
    if _redis_client:
        await _redis_client.aclose()
        _redis_client = None


def _make_available_jobs_key(limit: int) -> str:
    return f"{AVAILABLE_JOBS_PREFIX}limit={limit}"


async def get_cached_available_jobs(limit: int) -> Optional[list[dict]]:
    client = await get_redis()
    if not client:
        return None

    key = _make_available_jobs_key(limit)
    try:
        data = await client.get(key)
        record_cache_operation("get", hit=data is not None)
        if data:
            logger.debug("cache_hit", key=key)
            return json.loads(data)
        logger.debug("cache_miss", key=key)
    except Exception as e:
        logger.error("cache_get_error", key=key, error=str(e))

    return None


async def set_cached_available_jobs(limit: int, rows: list[dict]) -> None:
    client = await get_redis()
    if not client:
        return

    key = _make_available_jobs_key(limit)
    try:
        await client.setex(key, settings.REDIS_CACHE_TTL, json.dumps(rows, default=str))
        record_cache_operation("set", hit=False)
        logger.debug("cache_set", key=key, ttl=settings.REDIS_CACHE_TTL)
    except Exception as e:
        logger.error("cache_set_error", key=key, error=str(e))


async def invalidate_job_cache() -> None:
    """Drop every cached available-jobs page."""
    client = await get_redis()
    if not client:
        return

    try:
        deleted = 0
        async for key in client.scan_iter(match=f"{AVAILABLE_JOBS_PREFIX}*", count=100):
            await client.delete(key)
            deleted += 1
        logger.info("cache_invalidated", keys_deleted=deleted)
    except Exception as e:
        logger.error("cache_invalidation_error", error=str(e))


async def get_cache_stats() -> dict:
    """Get Redis cache statistics for monitoring."""
    client = await get_redis()
    if not client:
        return {"status": "disabled"}

    try:
        info = await client.info("stats")
        hits = info.get("keyspace_hits", 0)
        misses = info.get("keyspace_misses", 0)
        return {
            "status": "connected",
            "hits": hits,
            "misses": misses,
            "hit_rate": round(hits / max(hits + misses, 1) * 100, 2),
        }
    except Exception as e:
        return {"status": "error", "error": str(e)}
