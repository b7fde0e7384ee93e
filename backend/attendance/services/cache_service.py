"""
Redis caching service for public event details.

CACHING STRATEGY
================

What we cache:
  - The public check-in payload of a single event (JSON-serialized)
  - Cache key pattern: "events:public:{event_id}"

Why:
  - Every attendee opening a check-in link fetches the same event, and a
    busy event sees its whole audience arrive within a few minutes

What we do NOT cache:
  - The registration status. It is a function of wall-clock time and is
    recomputed on every request from the cached time fields.

Invalidation strategy:
  - Any mutation of an event (edit, close, reopen, delete) deletes its key
  - Deleting a recurring pattern deletes the keys of all its instances
  - TTL-based expiry as safety net

Redis is optional: when disabled or unreachable every call degrades to a
cache miss and the database stays authoritative.
"""

import json
from typing import Iterable, Optional

import redis.asyncio as redis
from attendance.core.config import get_settings
from attendance.core.logging import get_logger
from attendance.core.metrics import record_cache_operation

logger = get_logger(__name__)
settings = get_settings()

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
        await _redis_client.close()
        _redis_client = None


def _make_public_event_key(event_id: str) -> str:
    return f"events:public:{event_id}"


async def get_cached_public_event(event_id: str) -> Optional[dict]:
    client = await get_redis()
    if not client:
        return None

    key = _make_public_event_key(event_id)
    try:
        data = await client.get(key)
        record_cache_operation("get", hit=bool(data))
        if data:
            return json.loads(data)
    except Exception as e:
        logger.error("cache_get_error", key=key, error=str(e))

    return None


async def set_cached_public_event(event_id: str, data: dict) -> None:
    client = await get_redis()
    if not client:
        return

    key = _make_public_event_key(event_id)
    try:
        await client.setex(key, settings.REDIS_CACHE_TTL, json.dumps(data, default=str))
        logger.debug("cache_set", key=key, ttl=settings.REDIS_CACHE_TTL)
    except Exception as e:
        logger.error("cache_set_error", key=key, error=str(e))


async def invalidate_public_events(event_ids: Iterable[str]) -> None:
    client = await get_redis()
    if not client:
        return

    keys = [_make_public_event_key(event_id) for event_id in event_ids]
    if not keys:
        return
    try:
        deleted = await client.delete(*keys)
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
