"""
app/connectors/response_cache.py

Injected response cache handle for remote documents.
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable
from typing import Any, Protocol, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ResponseCache(Protocol):
    def get(self, key: str) -> Any | None:
        ...

    def set(self, key: str, value: Any, ttl_seconds: float) -> None:
        ...


class InMemoryResponseCache:
    """
    Process-local TTL cache. One instance per owner; never module-global.
    """

    def __init__(self, *, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._entries: dict[str, tuple[float, Any]] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Any | None:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            expires_at, value = entry
            if self._clock() >= expires_at:
                del self._entries[key]
                return None
            return value

    def set(self, key: str, value: Any, ttl_seconds: float) -> None:
        with self._lock:
            self._entries[key] = (self._clock() + max(0.0, ttl_seconds), value)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()


def cached_fetch(
    cache: ResponseCache | None,
    key: str,
    ttl_seconds: float,
    fetcher: Callable[[], T],
) -> T:
    """
    Return a cached value for ``key`` or call ``fetcher`` and store its result.

    A missing cache, or one that raises, falls back to calling ``fetcher``.
    Errors from ``fetcher`` itself always propagate.
    """

    if cache is None:
        return fetcher()

    try:
        hit = cache.get(key)
    except Exception as exc:  # noqa: BLE001
        logger.warning("Response cache read failed key=%s error=%s", key, exc)
        hit = None
    if hit is not None:
        return hit

    value = fetcher()
    try:
        cache.set(key, value, ttl_seconds)
    except Exception as exc:  # noqa: BLE001
        logger.warning("Response cache write failed key=%s error=%s", key, exc)
    return value
