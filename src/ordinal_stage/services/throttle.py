"""Rate limiting and time-boxed flags backed by Redis."""

from __future__ import annotations

import logging
import os
import time
from threading import Lock
from typing import Final

import redis

from ordinal_stage.core.settings import settings

logger = logging.getLogger(__name__)

_TEST_MODE: Final[bool] = os.getenv("PYTEST_RUNNING", "").lower() == "true"


class ThrottleService:
    """Fixed-window counters and expiring flags.

    Redis is used when reachable. Otherwise an in-process cache keeps the
    service usable in tests and single-instance deployments.
    """

    def __init__(self, client: redis.Redis | None = None) -> None:
        self._redis = client
        if self._redis is None and not _TEST_MODE:
            try:
                self._redis = redis.from_url(settings.redis_url)
            except (redis.RedisError, ValueError):  # pragma: no cover - misconfigured URL
                logger.warning("Redis unavailable at %s; using local cache", settings.redis_url)
                self._redis = None

    # --- Fixed-window rate limiting ------------------------------------------------
    def hit(self, key: str, limit: int, window_seconds: int) -> bool:
        """Count one call against ``key`` and return True if it is within ``limit``."""
        if limit <= 0 or window_seconds <= 0:
            return True
        bucket = f"rate:{key}"
        if self._redis is not None:
            try:
                count = int(self._redis.incr(bucket))
                if count == 1:
                    self._redis.expire(bucket, int(window_seconds))
                return count <= limit
            except redis.RedisError:  # pragma: no cover - redis optional
                logger.warning("Redis rate limiter failed; falling back to local cache")
                self._redis = None

        now = time.time()
        with _CACHE_LOCK:
            entry = _RATE_CACHE.get(bucket)
            if entry is None or entry[1] <= now:
                entry = [0, now + window_seconds]
                _RATE_CACHE[bucket] = entry
            entry[0] = int(entry[0]) + 1
            return entry[0] <= limit

    # --- Expiring flags -------------------------------------------------------------
    def claim_window(self, key: str, ttl_seconds: int) -> bool:
        """Set ``key`` for ``ttl_seconds`` unless it is already set.

        Returns True for the caller that set it.
        """
        flag = f"window:{key}"
        if self._redis is not None:
            try:
                return bool(self._redis.set(flag, "1", nx=True, ex=max(1, int(ttl_seconds))))
            except redis.RedisError:  # pragma: no cover - redis optional
                logger.warning("Redis flag store failed; falling back to local cache")
                self._redis = None

        now = time.time()
        with _CACHE_LOCK:
            expiry = _WINDOW_CACHE.get(flag)
            if expiry is not None and expiry > now:
                return False
            _WINDOW_CACHE[flag] = now + max(1, int(ttl_seconds))
            return True

    def is_window_active(self, key: str) -> bool:
        """Return True while ``key`` is set and unexpired."""
        flag = f"window:{key}"
        if self._redis is not None:
            try:
                return bool(self._redis.exists(flag))
            except redis.RedisError:  # pragma: no cover - redis optional
                self._redis = None
        with _CACHE_LOCK:
            expiry = _WINDOW_CACHE.get(flag)
            return expiry is not None and expiry > time.time()

    def release_window(self, key: str) -> None:
        """Clear ``key`` so the next caller may claim it."""
        flag = f"window:{key}"
        if self._redis is not None:
            try:
                self._redis.delete(flag)
                return
            except redis.RedisError:  # pragma: no cover - redis optional
                self._redis = None
        with _CACHE_LOCK:
            _WINDOW_CACHE.pop(flag, None)


_RATE_CACHE: dict[str, list[float]] = {}
_WINDOW_CACHE: dict[str, float] = {}
_CACHE_LOCK = Lock()


def reset_local_cache() -> None:
    """Forget every in-process counter and flag."""
    with _CACHE_LOCK:
        _RATE_CACHE.clear()
        _WINDOW_CACHE.clear()


def get_throttle_service() -> ThrottleService:
    """Return a throttle service instance."""
    return ThrottleService()
