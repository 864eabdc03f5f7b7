"""Short-lived key/value state for CAPTCHA codes and rate-limit counters."""

from __future__ import annotations

import logging
import time
import uuid
from threading import Lock
from typing import Any, Final

import redis

from puzzle_gate.core.settings import settings

logger = logging.getLogger(__name__)


class EphemeralStore:
    """Expiring values backed by Redis, or by a process-local cache.

    When a Redis call fails the store logs the error and keeps serving from
    the local cache for the rest of its lifetime.
    """

    def __init__(self, redis_url: str | None = None, *, prefix: str = "pg") -> None:
        self.prefix = prefix
        self._redis: Any = None
        url = redis_url if redis_url is not None else settings.redis_url
        if url:
            self._redis = _redis_client(url)

    def _key(self, key: str) -> str:
        return f"{self.prefix}:{key}"

    def _drop_redis(self, err: Exception) -> None:
        logger.error("Redis unavailable, using in-process cache: %s", err)
        self._redis = None

    def set(self, key: str, value: str, ttl_seconds: int) -> None:
        """Store ``value`` under ``key`` for ``ttl_seconds``."""
        full_key = self._key(key)
        if self._redis is not None:
            try:
                self._redis.set(full_key, value, ex=int(ttl_seconds))
                return
            except redis.RedisError as err:
                self._drop_redis(err)

        now = time.monotonic()
        with _CACHE_LOCK:
            _sweep_expired(now)
            _VALUE_CACHE[full_key] = (value, now + ttl_seconds)

    def pop(self, key: str) -> str | None:
        """Remove ``key`` and return its value if it has not expired."""
        full_key = self._key(key)
        if self._redis is not None:
            try:
                pipe = self._redis.pipeline()
                pipe.get(full_key)
                pipe.delete(full_key)
                value, _ = pipe.execute()
                return value
            except redis.RedisError as err:
                self._drop_redis(err)

        with _CACHE_LOCK:
            entry = _VALUE_CACHE.pop(full_key, None)
        if entry is None:
            return None
        value, expiry = entry
        if expiry <= time.monotonic():
            return None
        return value

    def incr(self, key: str, window_seconds: int) -> tuple[int, int]:
        """Increment a fixed-window counter.

        Returns:
            The count after incrementing and the seconds left in the window.
        """
        full_key = self._key(key)
        if self._redis is not None:
            try:
                pipe = self._redis.pipeline()
                pipe.incr(full_key)
                pipe.expire(full_key, int(window_seconds), nx=True)
                pipe.ttl(full_key)
                count, _, ttl = pipe.execute()
                return int(count), max(int(ttl), 0)
            except redis.RedisError as err:
                self._drop_redis(err)

        now = time.monotonic()
        with _CACHE_LOCK:
            _sweep_expired(now)
            count, expiry = _COUNTER_CACHE.get(full_key, (0, 0.0))
            if expiry <= now:
                count, expiry = 0, now + window_seconds
            count += 1
            _COUNTER_CACHE[full_key] = (count, expiry)
        return count, max(int(expiry - now), 0)

    def peek_counter(self, key: str) -> tuple[int, int]:
        """Return the current count and seconds left without incrementing."""
        full_key = self._key(key)
        if self._redis is not None:
            try:
                pipe = self._redis.pipeline()
                pipe.get(full_key)
                pipe.ttl(full_key)
                count, ttl = pipe.execute()
                return int(count or 0), max(int(ttl), 0)
            except redis.RedisError as err:
                self._drop_redis(err)

        now = time.monotonic()
        with _CACHE_LOCK:
            count, expiry = _COUNTER_CACHE.get(full_key, (0, 0.0))
        if expiry <= now:
            return 0, 0
        return count, max(int(expiry - now), 0)

    def delete(self, key: str) -> None:
        """Remove a value or counter."""
        full_key = self._key(key)
        if self._redis is not None:
            try:
                self._redis.delete(full_key)
                return
            except redis.RedisError as err:
                self._drop_redis(err)

        with _CACHE_LOCK:
            _VALUE_CACHE.pop(full_key, None)
            _COUNTER_CACHE.pop(full_key, None)


class CaptchaStore:
    """One-shot storage of issued CAPTCHA codes keyed by challenge id."""

    def __init__(self, store: EphemeralStore | None = None, *, ttl_seconds: int | None = None) -> None:
        self.store = store or EphemeralStore()
        self.ttl_seconds = ttl_seconds or settings.captcha_ttl_seconds

    def issue(self, code: str) -> str:
        """Remember ``code`` and return the id the client must send back."""
        captcha_id = uuid.uuid4().hex
        self.store.set(f"captcha:{captcha_id}", code, self.ttl_seconds)
        return captcha_id

    def consume(self, captcha_id: str) -> str | None:
        """Return the stored code and forget it; None if unknown or expired."""
        if not captcha_id:
            return None
        return self.store.pop(f"captcha:{captcha_id}")

    def discard(self, captcha_id: str) -> None:
        """Forget a challenge without checking it."""
        if captcha_id:
            self.store.delete(f"captcha:{captcha_id}")


_VALUE_CACHE: dict[str, tuple[str, float]] = {}
_COUNTER_CACHE: dict[str, tuple[int, float]] = {}
_CACHE_LOCK: Final[Lock] = Lock()
_REDIS_CLIENTS: dict[str, Any] = {}


def _sweep_expired(now: float) -> None:
    """Drop expired local entries. Caller must hold ``_CACHE_LOCK``."""
    for cache in (_VALUE_CACHE, _COUNTER_CACHE):
        expired = [key for key, (_, expiry) in cache.items() if expiry <= now]
        for key in expired:
            del cache[key]


def _redis_client(url: str) -> Any:
    """Return the shared client for ``url``, creating its pool on first use."""
    with _CACHE_LOCK:
        client = _REDIS_CLIENTS.get(url)
        if client is None:
            client = redis.from_url(url, decode_responses=True)
            _REDIS_CLIENTS[url] = client
        return client


def get_ephemeral_store() -> EphemeralStore:
    """Return an ephemeral store configured from settings."""
    return EphemeralStore()


def clear_local_cache() -> None:
    """Drop every in-process entry and forget shared Redis clients."""
    with _CACHE_LOCK:
        _VALUE_CACHE.clear()
        _COUNTER_CACHE.clear()
        _REDIS_CLIENTS.clear()
