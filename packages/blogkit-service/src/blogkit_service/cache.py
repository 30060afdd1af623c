"""Optional Redis read-through cache and analytics stream."""

from __future__ import annotations

import json
from collections.abc import Awaitable, Callable
from typing import Any

import structlog
from redis.asyncio import Redis
from redis.exceptions import RedisError

logger = structlog.get_logger()

POSTS_PUBLISHED_KEY = "posts:all:published-only"
POSTS_WITH_DRAFTS_KEY = "posts:all:with-drafts"
ANALYTICS_STREAM = "analytics_events"


def create_redis(url: str) -> Redis | None:
    if not url:
        return None
    return Redis.from_url(url, decode_responses=True)


class Cache:
    """JSON cache over Redis. Without a client every call is a pass-through."""

    def __init__(self, redis_client: Redis | None = None, default_ttl: int = 3600) -> None:
        self._redis = redis_client
        self._default_ttl = default_ttl

    @property
    def enabled(self) -> bool:
        return self._redis is not None

    async def get_or_set(
        self,
        key: str,
        loader: Callable[[], Awaitable[Any]],
        ttl: int | None = None,
    ) -> Any:
        if self._redis is None:
            return await loader()
        try:
            cached = await self._redis.get(key)
        except RedisError as exc:
            logger.warning("cache_read_failed", key=key, error=str(exc))
            return await loader()
        if cached:
            return json.loads(cached)

        fresh = await loader()
        try:
            await self._redis.set(key, json.dumps(fresh), ex=ttl or self._default_ttl)
        except RedisError as exc:
            logger.warning("cache_write_failed", key=key, error=str(exc))
        return fresh

    async def invalidate(self, *keys: str) -> None:
        if self._redis is None or not keys:
            return
        try:
            await self._redis.delete(*keys)
        except RedisError as exc:
            logger.warning("cache_invalidate_failed", keys=list(keys), error=str(exc))

    async def publish_event(self, fields: dict[str, str]) -> None:
        """Best-effort XADD of an analytics event; failures are logged only."""
        if self._redis is None:
            return
        try:
            await self._redis.xadd(ANALYTICS_STREAM, fields)
        except RedisError as exc:
            logger.warning("analytics_enqueue_failed", error=str(exc))

    async def close(self) -> None:
        if self._redis is not None:
            await self._redis.aclose()
