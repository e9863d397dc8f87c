"""
Redis caching for legislative data.

Fixed-TTL JSON entries for feeds, bills, legislators, sessions, roll
calls, raw LegiScan responses, user interests and district info.

Every Redis failure is logged and swallowed: reads miss, writes no-op.
With Redis disabled the cache always misses.

Responsibility: Cache reads/writes/invalidation around the legislative pipeline
"""

import json
from typing import Any, Awaitable, Callable, Dict, List, Optional, TypeVar
import logging

import redis.asyncio as aioredis

from ..config import settings
from ..utils.hash_utils import generate_filters_hash

logger = logging.getLogger(__name__)

T = TypeVar("T")


class LegislativeCache:
    """
    Redis cache for legislative data.

    Example:
        cache = LegislativeCache()
        await cache.set_bill(123, {"bill_number": "AB1"})
        bill = await cache.get_bill(123)
        await cache.invalidate_bill_data(123)
    """

    USER_FEED_TTL = 900          # 15 minutes
    BILL_TTL = 14400             # 4 hours
    LEGISLATOR_TTL = 86400       # 24 hours
    SESSION_TTL = 43200          # 12 hours
    ROLL_CALL_TTL = 3600         # 1 hour
    DEFAULT_TTL = 3600
    INTERESTS_TTL = 7200         # 2 hours
    DISTRICT_TTL = 86400         # 24 hours

    def __init__(self, client: Optional[aioredis.Redis] = None, enabled: Optional[bool] = None):
        """
        Args:
            client: Redis client (created lazily from settings when omitted)
            enabled: Override ``settings.redis.enabled``
        """
        self._client = client
        if enabled is None:
            enabled = client is not None or settings.redis.enabled
        self.enabled = enabled

    @property
    def redis(self) -> Optional[aioredis.Redis]:
        if not self.enabled:
            return None
        if self._client is None:
            self._client = aioredis.from_url(
                settings.redis.connection_string,
                encoding="utf-8",
                decode_responses=True,
                socket_timeout=settings.redis.socket_timeout,
                socket_connect_timeout=settings.redis.socket_connect_timeout,
                max_connections=settings.redis.max_connections,
            )
        return self._client

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    # MARK: - Primitives

    async def _get(self, key: str) -> Optional[Any]:
        client = self.redis
        if client is None:
            return None
        try:
            cached = await client.get(key)
            return json.loads(cached) if cached else None
        except Exception as e:
            logger.error(f"Error reading cache key {key}: {e}")
            return None

    async def _set(self, key: str, value: Any, ttl: int) -> None:
        client = self.redis
        if client is None:
            return
        try:
            await client.setex(key, ttl, json.dumps(value, default=str))
        except Exception as e:
            logger.error(f"Error writing cache key {key}: {e}")

    async def _delete_pattern(self, pattern: str) -> int:
        client = self.redis
        if client is None:
            return 0
        try:
            keys = [key async for key in client.scan_iter(match=pattern)]
            if keys:
                await client.delete(*keys)
            return len(keys)
        except Exception as e:
            logger.error(f"Error invalidating {pattern}: {e}")
            return 0

    # MARK: - Keys

    @staticmethod
    def user_feed_key(user_id: str, filters_hash: str) -> str:
        return f"feed:user:{user_id}:{filters_hash}"

    @staticmethod
    def legiscan_key(endpoint: str, params: Dict[str, Any]) -> str:
        params_key = "|".join(f"{k}:{params[k]}" for k in sorted(params))
        return f"legiscan:{endpoint}:{params_key}"

    @staticmethod
    def generate_filters_hash(filters: Dict[str, Any]) -> str:
        return generate_filters_hash(filters)

    # MARK: - Feeds

    async def get_user_feed(self, user_id: str, filters_hash: str) -> Optional[List[Any]]:
        return await self._get(self.user_feed_key(user_id, filters_hash))

    async def set_user_feed(self, user_id: str, filters_hash: str, items: List[Any]) -> None:
        await self._set(self.user_feed_key(user_id, filters_hash), items, self.USER_FEED_TTL)

    # MARK: - Legislative entities

    async def get_bill(self, bill_id: int) -> Optional[Any]:
        return await self._get(f"bill:{bill_id}")

    async def set_bill(self, bill_id: int, bill: Any) -> None:
        await self._set(f"bill:{bill_id}", bill, self.BILL_TTL)

    async def get_legislator(self, people_id: int) -> Optional[Any]:
        return await self._get(f"legislator:{people_id}")

    async def set_legislator(self, people_id: int, legislator: Any) -> None:
        await self._set(f"legislator:{people_id}", legislator, self.LEGISLATOR_TTL)

    async def get_session(self, session_id: int) -> Optional[Any]:
        return await self._get(f"session:{session_id}")

    async def set_session(self, session_id: int, session: Any) -> None:
        await self._set(f"session:{session_id}", session, self.SESSION_TTL)

    async def get_roll_call(self, roll_call_id: int) -> Optional[Any]:
        return await self._get(f"rollcall:{roll_call_id}")

    async def set_roll_call(self, roll_call_id: int, roll_call: Any) -> None:
        await self._set(f"rollcall:{roll_call_id}", roll_call, self.ROLL_CALL_TTL)

    async def get_legiscan_response(self, endpoint: str, params: Dict[str, Any]) -> Optional[Any]:
        return await self._get(self.legiscan_key(endpoint, params))

    async def set_legiscan_response(
        self,
        endpoint: str,
        params: Dict[str, Any],
        data: Any,
        ttl: Optional[int] = None
    ) -> None:
        await self._set(self.legiscan_key(endpoint, params), data, ttl or self.DEFAULT_TTL)

    # MARK: - Users and districts

    async def get_user_interests(self, user_id: str) -> Optional[Any]:
        return await self._get(f"interests:{user_id}")

    async def set_user_interests(self, user_id: str, interests: Any) -> None:
        await self._set(f"interests:{user_id}", interests, self.INTERESTS_TTL)

    async def invalidate_user_interests(self, user_id: str) -> None:
        client = self.redis
        if client is None:
            return
        try:
            await client.delete(f"interests:{user_id}")
        except Exception as e:
            logger.error(f"Error invalidating interests for {user_id}: {e}")

    async def get_district_info(self, district: str) -> Optional[Any]:
        return await self._get(f"district:{district}")

    async def set_district_info(self, district: str, info: Any) -> None:
        await self._set(f"district:{district}", info, self.DISTRICT_TTL)

    # MARK: - Invalidation

    async def invalidate_user_feeds(self) -> int:
        """Drop every cached user feed (new feed content exists)."""
        return await self._delete_pattern("feed:user:*")

    async def invalidate_user_feed(self, user_id: str) -> int:
        return await self._delete_pattern(f"feed:user:{user_id}:*")

    async def invalidate_bill_data(self, bill_id: int) -> None:
        """Drop a cached bill and every user feed that may include it."""
        client = self.redis
        if client is None:
            return
        try:
            await client.delete(f"bill:{bill_id}")
        except Exception as e:
            logger.error(f"Error invalidating bill {bill_id}: {e}")
            return
        await self.invalidate_user_feeds()

    # MARK: - Monitoring

    async def health_check(self) -> bool:
        client = self.redis
        if client is None:
            return False
        try:
            return bool(await client.ping())
        except Exception as e:
            logger.error(f"Redis health check failed: {e}")
            return False

    async def get_cache_stats(self) -> Optional[Dict[str, Any]]:
        """Health flag plus key count across feed/bill/legislator keys."""
        client = self.redis
        if client is None:
            return {"health": False, "key_count": 0}
        try:
            health = await self.health_check()
            key_count = 0
            for pattern in ("feed:*", "bill:*", "legislator:*"):
                key_count += len([key async for key in client.scan_iter(match=pattern)])
            return {"health": health, "key_count": key_count}
        except Exception as e:
            logger.error(f"Error getting cache stats: {e}")
            return None

    async def cleanup(self) -> int:
        """Delete keys whose TTL reports them as already expired."""
        client = self.redis
        if client is None:
            return 0
        try:
            deleted = 0
            async for key in client.scan_iter(match="*"):
                if await client.ttl(key) == -2:
                    await client.delete(key)
                    deleted += 1
            return deleted
        except Exception as e:
            logger.error(f"Error during cache cleanup: {e}")
            return 0


async def with_cache(
    fetch: Callable[[], Awaitable[T]],
    set_cache: Callable[[T], Awaitable[None]],
    get_cache: Callable[[], Awaitable[Optional[T]]],
) -> T:
    """
    Read-through helper.

    Returns the cached value when present, otherwise fetches, stores and
    returns the fresh value.
    """
    cached = await get_cache()
    if cached is not None:
        return cached

    value = await fetch()
    await set_cache(value)
    return value


# Global cache instance
legislative_cache = LegislativeCache()
