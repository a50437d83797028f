"""Django cache adapter for the reading cache."""
from __future__ import annotations

import logging
from typing import Any

from django.conf import settings
from django.core.cache import caches
from django.core.cache.backends.base import BaseCache

from windcore.cache import ReadingCache
from windcore.errors import CacheUnavailable
from windcore.fetchers import RetryPolicy

logger = logging.getLogger(__name__)


class DjangoCacheStore:
    """Expose a Django cache backend as a key-value store.

    Backend errors (for instance an unreachable Redis) surface as
    ``CacheUnavailable`` so the reading cache can treat them as misses.
    """

    def __init__(self, backend: BaseCache) -> None:
        self._backend = backend

    def get(self, key: str) -> Any:
        try:
            return self._backend.get(key)
        except Exception as exc:  # noqa: BLE001 - backend specific connection errors
            raise CacheUnavailable(f"cache read failed: {exc}") from exc

    def set(self, key: str, value: Any, ttl: float) -> None:
        try:
            self._backend.set(key, value, int(ttl))
        except Exception as exc:  # noqa: BLE001 - backend specific connection errors
            raise CacheUnavailable(f"cache write failed: {exc}") from exc


def reading_cache() -> ReadingCache:
    """Reading cache over the configured Django cache alias, built per call."""
    backend = caches[settings.WEATHER_CACHE_ALIAS]
    logger.debug("Using cache alias %s for readings", settings.WEATHER_CACHE_ALIAS)
    return ReadingCache(DjangoCacheStore(backend))


def retry_policy() -> RetryPolicy:
    return RetryPolicy(
        max_attempts=settings.WEATHER_RETRY_ATTEMPTS,
        base_delay=settings.WEATHER_RETRY_BASE_DELAY,
        max_delay=settings.WEATHER_RETRY_MAX_DELAY,
        timeout=settings.WEATHER_REQUEST_TIMEOUT,
    )


__all__ = ["DjangoCacheStore", "reading_cache", "retry_policy"]
