"""Bounded memo of decoded parse results."""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable

from cachetools import Cache, LRUCache, TTLCache

from .constants import DEFAULT_CACHE_MAX_ENTRIES, DEFAULT_CACHE_TTL
from .types import Address, CacheKey, ParseResult
from .utils import normalise_address

logger = logging.getLogger(__name__)


class ResultCache:
    """LRU cache of ``ParseResult`` values with an optional per-entry TTL.

    Every ``clear()`` bumps ``generation`` and every ``invalidate_handler()``
    bumps that handler's ``handler_generation``. Writers that captured an
    older generation before their chain call have their ``put`` dropped, so a
    result fetched before a reset (e.g. a network switch or a revoked handler)
    is never stored after it.
    Operations hold an internal lock only for the duration of the dict access.
    """

    def __init__(
        self,
        maxsize: int = DEFAULT_CACHE_MAX_ENTRIES,
        ttl: float | None = DEFAULT_CACHE_TTL,
        *,
        timer: Callable[[], float] = time.monotonic,
    ) -> None:
        if maxsize < 1:
            raise ValueError("Cache maxsize must be at least 1")
        if ttl is not None and ttl <= 0:
            raise ValueError("Cache ttl must be positive")

        self._maxsize = maxsize
        self._ttl = ttl
        self._store: Cache[CacheKey, ParseResult]
        if ttl is None:
            self._store = LRUCache(maxsize=maxsize)
        else:
            self._store = TTLCache(maxsize=maxsize, ttl=ttl, timer=timer)
        self._lock = threading.Lock()
        self._generation = 0
        self._handler_generations: dict[Address, int] = {}

    @property
    def maxsize(self) -> int:
        return self._maxsize

    @property
    def ttl(self) -> float | None:
        return self._ttl

    @property
    def generation(self) -> int:
        return self._generation

    def handler_generation(self, handler_address: Address) -> int:
        with self._lock:
            return self._handler_generations.get(handler_address, 0)

    def get(self, key: CacheKey) -> ParseResult | None:
        with self._lock:
            return self._store.get(key)

    def put(
        self,
        key: CacheKey,
        value: ParseResult,
        *,
        generation: int | None = None,
        handler_generation: int | None = None,
    ) -> bool:
        """Store ``value``; returns False when the write was stale and dropped."""

        with self._lock:
            current_handler = self._handler_generations.get(key.handler_address, 0)
            if (generation is not None and generation != self._generation) or (
                handler_generation is not None and handler_generation != current_handler
            ):
                logger.debug("Dropping stale cache write for %s", key)
                return False
            self._store[key] = value
            return True

    def invalidate(self, key: CacheKey) -> bool:
        with self._lock:
            return self._store.pop(key, None) is not None

    def invalidate_handler(self, handler_address: Address) -> int:
        address = normalise_address(handler_address)
        with self._lock:
            self._handler_generations[address] = self._handler_generations.get(address, 0) + 1
            stale = [key for key in list(self._store.keys()) if key.handler_address == address]
            for key in stale:
                self._store.pop(key, None)
        if stale:
            logger.info("Invalidated %d cached results for %s", len(stale), address)
        return len(stale)

    def clear(self) -> None:
        with self._lock:
            self._store.clear()
            self._generation += 1
        logger.info("Cleared parse result cache (generation=%d)", self._generation)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._store

    def __len__(self) -> int:
        with self._lock:
            if isinstance(self._store, TTLCache):
                self._store.expire()
            return len(self._store)
