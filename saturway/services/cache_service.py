"""Shared key/value cache for AI responses.

Backends either return a value, return ``None`` for a miss, or raise
``CacheError``. A broken backend is never reported as a miss.
"""
from __future__ import annotations

import logging
import threading
import time
from functools import lru_cache
from typing import Callable, NamedTuple, Optional

import redis
from cachetools import TLRUCache

from saturway.core.config import settings
from saturway.core.errors import CacheError, ValidationError

logger = logging.getLogger(__name__)


def create_key(*parts: object) -> str:
    return ":".join(str(part) for part in parts)


class CacheStore:
    """Base interface for cache backends."""

    def get(self, key: str) -> Optional[str]:
        raise NotImplementedError

    def set(self, key: str, value: str, ttl_s: int) -> None:
        raise NotImplementedError

    def delete(self, key: str) -> None:
        raise NotImplementedError


class _Entry(NamedTuple):
    value: str
    ttl_s: float


def _entry_expiry(_key: str, entry: _Entry, now: float) -> float:
    return now + entry.ttl_s


class MemoryCacheStore(CacheStore):
    """In-process LRU cache with a per-entry time-to-live."""

    def __init__(self, maxsize: int = 2048, timer: Callable[[], float] = time.monotonic):
        self._cache: TLRUCache = TLRUCache(maxsize=maxsize, ttu=_entry_expiry, timer=timer)
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            entry = self._cache.get(key)
        return entry.value if entry is not None else None

    def set(self, key: str, value: str, ttl_s: int) -> None:
        if ttl_s <= 0:
            return
        with self._lock:
            self._cache[key] = _Entry(value, float(ttl_s))

    def delete(self, key: str) -> None:
        with self._lock:
            self._cache.pop(key, None)


class RedisCacheStore(CacheStore):
    def __init__(self, url: Optional[str] = None, client: Optional[redis.Redis] = None):
        self._client = client or redis.Redis.from_url(url or settings.redis_url, decode_responses=True)

    def get(self, key: str) -> Optional[str]:
        try:
            value = self._client.get(key)
        except redis.RedisError as exc:
            logger.error("Cache get failed for %s: %s", key, exc)
            raise CacheError("Cache backend unavailable") from exc
        if isinstance(value, bytes):
            return value.decode("utf-8")
        return value

    def set(self, key: str, value: str, ttl_s: int) -> None:
        if ttl_s <= 0:
            return
        try:
            self._client.setex(key, ttl_s, value)
        except redis.RedisError as exc:
            logger.error("Cache set failed for %s: %s", key, exc)
            raise CacheError("Cache backend unavailable") from exc

    def delete(self, key: str) -> None:
        try:
            self._client.delete(key)
        except redis.RedisError as exc:
            logger.error("Cache delete failed for %s: %s", key, exc)
            raise CacheError("Cache backend unavailable") from exc


@lru_cache
def get_cache_store() -> CacheStore:
    backend = settings.cache_backend
    if backend == "memory":
        return MemoryCacheStore(maxsize=settings.cache_max_entries)
    if backend == "redis":
        return RedisCacheStore(settings.redis_url)
    raise ValidationError(f"Unknown cache backend: {backend}")
