# booking_engine/cache.py
"""
Redis cache for computed free intervals.

Fail-open: when Redis is not configured or not reachable every lookup is a
miss and writes are dropped, so availability is simply recomputed.
Any write to a barber's shifts, absences, blocks or appointments must call
``invalidate_barber`` before the next read can be trusted.
"""
import json
import logging
from datetime import date
from typing import List, Optional

import redis

from . import config
from .core import Interval

logger = logging.getLogger(__name__)


class AvailabilityCache:
    def __init__(self, url: Optional[str] = None, ttl: int = config.AVAILABILITY_CACHE_TTL, client=None):
        self.url = url
        self.ttl = ttl
        self.redis_client = client

    def _get_client(self):
        """Lazy load Redis client"""
        if self.redis_client is None and self.url:
            try:
                self.redis_client = redis.from_url(self.url, decode_responses=True)
            except Exception as e:
                logger.warning(f"Redis cache unavailable: {e}")
                return None
        return self.redis_client

    @staticmethod
    def generation_key(barber_id: int) -> str:
        return f"availability:{barber_id}:gen"

    @staticmethod
    def key(barber_id: int, generation: int, on_date: date, duration_minutes: int) -> str:
        return f"availability:{barber_id}:{generation}:{on_date.isoformat()}:{duration_minutes}"

    def generation(self, barber_id: int) -> Optional[int]:
        """
        Current generation of a barber's cached availability, or None when
        the cache can't be used. Read it before computing and pass it to
        ``set``: a write that lands in between bumps the generation, so the
        stale result is stored under a key nobody reads.
        """
        client = self._get_client()
        if not client:
            return None

        gen_key = self.generation_key(barber_id)
        try:
            value = client.get(gen_key)
        except redis.RedisError as e:
            logger.error(f"Cache get error for {gen_key}: {e}")
            return None
        return int(value) if value is not None else 0

    def get(self, barber_id: int, generation: Optional[int], on_date: date,
            duration_minutes: int) -> Optional[List[Interval]]:
        client = self._get_client()
        if not client or generation is None:
            return None

        key = self.key(barber_id, generation, on_date, duration_minutes)
        try:
            value = client.get(key)
        except redis.RedisError as e:
            logger.error(f"Cache get error for {key}: {e}")
            return None
        if value is None:
            logger.debug(f"Cache MISS: {key}")
            return None
        logger.debug(f"Cache HIT: {key}")
        return [Interval(start, end) for start, end in json.loads(value)]

    def set(self, barber_id: int, generation: Optional[int], on_date: date, duration_minutes: int,
            intervals: List[Interval]) -> bool:
        client = self._get_client()
        if not client or generation is None:
            return False

        key = self.key(barber_id, generation, on_date, duration_minutes)
        try:
            client.setex(key, self.ttl, json.dumps([list(iv) for iv in intervals]))
            return True
        except redis.RedisError as e:
            logger.error(f"Cache set error for {key}: {e}")
            return False

    def invalidate_barber(self, barber_id: int) -> int:
        """Bump the barber's generation and drop every cached day"""
        client = self._get_client()
        if not client:
            return 0

        pattern = f"availability:{barber_id}:[0-9]*"
        try:
            client.incr(self.generation_key(barber_id))
            keys = client.keys(pattern)
            if keys:
                deleted = client.delete(*keys)
                logger.debug(f"Cache DELETE pattern: {pattern} ({deleted} keys)")
                return deleted
            return 0
        except redis.RedisError as e:
            logger.error(f"Cache delete pattern error for {pattern}: {e}")
            return 0


# Global cache instance
availability_cache = AvailabilityCache(url=config.REDIS_URL)


def get_availability_cache() -> AvailabilityCache:
    return availability_cache
