"""
Key-value store used for quiz sessions and the leaderboard.
- If REDIS_URL is set, use Redis.
- Otherwise fall back to an in-memory store (process-local, not for production).
"""

from __future__ import annotations

import copy
import json
import logging
import os
import threading
from datetime import datetime, timedelta
from typing import Any, ContextManager, Optional, Tuple

import redis

logger = logging.getLogger(__name__)

_CACHED_STORE: BaseCache | None = None
_CACHED_STORE_CONFIG: tuple[str | None, str, bool] | None = None

# Upper bound for holding / waiting on a Redis lock, seconds.
LOCK_TIMEOUT_SECONDS = 10


def _json_default(obj: Any):
    """Make cache payload JSON-serializable (best-effort)."""
    if hasattr(obj, "model_dump"):
        return obj.model_dump(mode="json")
    if isinstance(obj, datetime):
        return obj.isoformat()
    return str(obj)


class BaseCache:
    def get(self, key: str) -> Optional[Any]:
        raise NotImplementedError

    def set(self, key: str, value: Any, ttl_seconds: Optional[int] = None) -> None:
        raise NotImplementedError

    def delete(self, key: str) -> None:
        raise NotImplementedError

    def lock(self, key: str) -> ContextManager:
        """Mutual exclusion for read-modify-write cycles on `key`."""
        raise NotImplementedError


class InMemoryCache(BaseCache):
    def __init__(self):
        self.store: dict[str, Tuple[Any, Optional[datetime]]] = {}
        self._locks: dict[str, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    def get(self, key: str) -> Optional[Any]:
        item = self.store.get(key)
        if not item:
            return None
        value, expires_at = item
        if expires_at and datetime.now() > expires_at:
            self.delete(key)
            return None
        # Callers mutate what they load; keep the stored copy intact.
        return copy.deepcopy(value)

    def set(self, key: str, value: Any, ttl_seconds: Optional[int] = None) -> None:
        expires_at = (
            datetime.now() + timedelta(seconds=ttl_seconds) if ttl_seconds else None
        )
        self.store[key] = (copy.deepcopy(value), expires_at)

    def delete(self, key: str) -> None:
        self.store.pop(key, None)

    def lock(self, key: str) -> ContextManager:
        with self._locks_guard:
            return self._locks.setdefault(key, threading.Lock())


class RedisCache(BaseCache):
    def __init__(self, url: str, prefix: str = ""):
        self.client = redis.Redis.from_url(url)
        self.prefix = prefix

    def _k(self, key: str) -> str:
        return f"{self.prefix}{key}"

    def get(self, key: str) -> Optional[Any]:
        data = self.client.get(self._k(key))
        if data is None:
            return None
        try:
            return json.loads(data)
        except ValueError:
            logger.warning("Dropping undecodable cache value for key %s", key)
            return None

    def set(self, key: str, value: Any, ttl_seconds: Optional[int] = None) -> None:
        data = json.dumps(value, ensure_ascii=False, default=_json_default)
        self.client.set(self._k(key), data, ex=ttl_seconds)

    def delete(self, key: str) -> None:
        self.client.delete(self._k(key))

    def lock(self, key: str) -> ContextManager:
        # Shared across processes; expires if the holder dies.
        return self.client.lock(
            self._k(key),
            timeout=LOCK_TIMEOUT_SECONDS,
            blocking_timeout=LOCK_TIMEOUT_SECONDS,
        )


def get_cache_store() -> BaseCache:
    global _CACHED_STORE, _CACHED_STORE_CONFIG
    redis_url = os.getenv("REDIS_URL")
    prefix = os.getenv("CACHE_PREFIX", "")
    require_redis = os.getenv("REQUIRE_REDIS", "").strip().lower() in {
        "1",
        "true",
        "yes",
    }
    config = (redis_url, prefix, require_redis)
    if _CACHED_STORE is not None and _CACHED_STORE_CONFIG == config:
        return _CACHED_STORE
    if redis_url:
        try:
            cache = RedisCache(redis_url, prefix=prefix)
            cache.client.ping()  # Verify connection immediately
            _CACHED_STORE = cache
            _CACHED_STORE_CONFIG = config
            return cache
        except redis.RedisError as e:
            if require_redis:
                raise RuntimeError(f"REQUIRE_REDIS=1 but Redis ping failed: {e}")
            logger.warning(
                "Redis configured but unavailable (ping failed), falling back to in-memory cache: %s",
                e,
            )
    elif require_redis:
        raise RuntimeError("REQUIRE_REDIS=1 but REDIS_URL is not set")
    _CACHED_STORE = InMemoryCache()
    _CACHED_STORE_CONFIG = config
    return _CACHED_STORE


def reset_cache_store() -> None:
    """Drop the memoized store (tests / config reloads)."""
    global _CACHED_STORE, _CACHED_STORE_CONFIG
    _CACHED_STORE = None
    _CACHED_STORE_CONFIG = None
