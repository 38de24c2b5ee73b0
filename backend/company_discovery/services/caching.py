from __future__ import annotations

import json
import logging
from typing import Any

import redis
from ..core.config import get_settings

logger = logging.getLogger(__name__)


def _get_sync_redis(url: str) -> redis.Redis:
    """
    Fresh sync client per call so Celery workers don't hold onto closed
    event loops.
    """
    return redis.from_url(
        url,
        decode_responses=True,
        socket_timeout=5,
        socket_connect_timeout=5,
    )


async def cached_get(
    key: str,
    set_value: Any | None = None,
    ttl: int | None = None,
) -> Any:
    """
    JSON TTL cache for raw provider responses, backed by Redis.

        value = await cached_get("k")                  # read
        await cached_get("k", set_value=value, ttl=60) # write with TTL

    Without REDIS_URL every read misses and writes are no-ops. Redis errors
    are treated as a miss.
    """
    url = get_settings().REDIS_URL
    if not url:
        return set_value

    client = _get_sync_redis(url)
    try:
        if set_value is None:
            val = client.get(key)
            if val is not None:
                return json.loads(val)
            return None

        serialized = json.dumps(set_value)
        if ttl is not None:
            client.set(key, serialized, ex=ttl)
        else:
            client.set(key, serialized)
        return set_value

    except redis.RedisError as e:
        logger.debug("Redis cache unavailable: %s", e, extra={"step": "cache"})
        return None
    finally:
        try:
            client.close()
        except redis.RedisError:
            pass
