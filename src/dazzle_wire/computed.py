"""
Computed (derived) component properties.

A computed property is evaluated lazily and memoized for the lifetime of
one request cycle. Persistent computed properties are additionally kept
in Redis with a TTL, keyed by component id, so expensive derivations
survive across round trips.

Usage::

    class PostList(Component):
        search: str = ""

        @computed
        def posts(self) -> list[Post]:
            return repo.search(self.search)

        @computed(persist=True, ttl=300)
        def categories(self) -> list[str]:
            return repo.categories()
"""

from __future__ import annotations

import json
import logging
import math
import os
from collections.abc import Callable
from typing import Any, overload

import redis

logger = logging.getLogger(__name__)

_DEFAULT_TTL = 3600.0
_KEY_PREFIX = "wire_computed"


class ComputedProperty:
    """Descriptor marking a method as a computed property."""

    def __init__(
        self,
        func: Callable[[Any], Any],
        *,
        persist: bool = False,
        ttl: float | None = None,
    ) -> None:
        self.func = func
        self.name = func.__name__
        self.persist = persist
        self.ttl = ttl
        self.__doc__ = func.__doc__

    def __set_name__(self, owner: type, name: str) -> None:
        self.name = name

    def __get__(self, instance: Any, owner: type | None = None) -> Any:
        if instance is None:
            return self
        return instance.state.computed(self.name)


@overload
def computed(func: Callable[[Any], Any]) -> ComputedProperty: ...


@overload
def computed(
    func: None = None, *, persist: bool = False, ttl: float | None = None
) -> Callable[[Callable[[Any], Any]], ComputedProperty]: ...


def computed(
    func: Callable[[Any], Any] | None = None,
    *,
    persist: bool = False,
    ttl: float | None = None,
) -> ComputedProperty | Callable[[Callable[[Any], Any]], ComputedProperty]:
    """Declare a computed property, with or without arguments."""
    if func is not None:
        return ComputedProperty(func)

    def decorator(f: Callable[[Any], Any]) -> ComputedProperty:
        return ComputedProperty(f, persist=persist, ttl=ttl)

    return decorator


class PersistentComputedCache:
    """
    Redis-backed cache for ``persist=True`` computed values.

    Gracefully degrades to a no-op when Redis is unavailable or disabled:
    every lookup misses and persistent computed values are only memoized
    per request cycle.

    Cache key structure::

        wire_computed:{component_id}:{computed_name}  -> JSON value

    Values that are not JSON-serializable are not persisted.

    Args:
        redis_url: Explicit Redis URL. ``None`` -> read ``DAZZLE_WIRE_REDIS_URL``
            or ``REDIS_URL``.
        enabled: Set ``False`` to force-disable (all ops become no-ops).
        default_ttl: Expiry in seconds for entries stored without a TTL.
    """

    def __init__(
        self,
        redis_url: str | None = None,
        *,
        enabled: bool = True,
        default_ttl: float = _DEFAULT_TTL,
    ) -> None:
        self.default_ttl = default_ttl
        self._redis: Any = None
        url = redis_url
        if url is None:
            url = os.environ.get("DAZZLE_WIRE_REDIS_URL") or os.environ.get("REDIS_URL", "")
        if not enabled or not url:
            return
        try:
            self._redis = redis.from_url(url, decode_responses=True)
            self._redis.ping()
            logger.info("Persistent computed cache connected to Redis")
        except (redis.RedisError, ValueError) as e:
            logger.info("Persistent computed cache disabled (Redis unavailable: %s)", e)
            self._redis = None

    @property
    def available(self) -> bool:
        """Whether the cache backend is connected."""
        return self._redis is not None

    @staticmethod
    def _key(scope: str, name: str) -> str:
        return f"{_KEY_PREFIX}:{scope}:{name}"

    def get(self, scope: str, name: str) -> tuple[bool, Any]:
        """Return ``(hit, value)``; a stored ``None`` is a hit."""
        if not self._redis:
            return False, None
        try:
            raw = self._redis.get(self._key(scope, name))
        except redis.RedisError as e:
            logger.debug("Computed cache get failed: %s", e)
            return False, None
        if raw is None:
            return False, None
        return True, json.loads(raw)

    def put(self, scope: str, name: str, value: Any, ttl: float | None = None) -> None:
        """Store a value with an expiry (SETEX, whole seconds, at least 1)."""
        if not self._redis:
            return
        try:
            payload = json.dumps(value)
        except (TypeError, ValueError) as e:
            logger.debug("Computed value %s:%s not persisted: %s", scope, name, e)
            return
        seconds = max(1, math.ceil(ttl if ttl is not None else self.default_ttl))
        try:
            self._redis.setex(self._key(scope, name), seconds, payload)
        except redis.RedisError as e:
            logger.debug("Computed cache put failed: %s", e)

    def forget(self, scope: str, name: str | None = None) -> None:
        """Drop one entry, or every entry of a scope when ``name`` is None."""
        if not self._redis:
            return
        try:
            if name is not None:
                self._redis.delete(self._key(scope, name))
                return
            keys = list(self._redis.scan_iter(match=self._key(scope, "*")))
            if keys:
                self._redis.delete(*keys)
        except redis.RedisError as e:
            logger.debug("Computed cache forget failed: %s", e)


_default_cache: PersistentComputedCache | None = None


def get_persistent_cache() -> PersistentComputedCache:
    """Return the process-wide persistent computed cache (configured from the environment)."""
    global _default_cache
    if _default_cache is None:
        _default_cache = PersistentComputedCache()
    return _default_cache


class RequestCycle:
    """
    Memo cache for one request cycle.

    ``evaluations`` counts how often each derivation actually ran, which
    is what the at-most-once guarantee is checked against.
    """

    def __init__(self) -> None:
        self._memo: dict[str, Any] = {}
        self.evaluations: dict[str, int] = {}
        self.closed = False

    def get_or_compute(self, name: str, derive: Callable[[], Any]) -> Any:
        if name in self._memo:
            return self._memo[name]
        value = derive()
        self.evaluations[name] = self.evaluations.get(name, 0) + 1
        self._memo[name] = value
        return value

    def has(self, name: str) -> bool:
        return name in self._memo

    def forget(self, name: str | None = None) -> None:
        if name is None:
            self._memo.clear()
        else:
            self._memo.pop(name, None)

    def close(self) -> None:
        """Discard every memoized value."""
        self._memo.clear()
        self.closed = True
        logger.debug("Request cycle closed", extra={"context": {"evaluations": self.evaluations}})
