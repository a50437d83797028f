from __future__ import annotations

import logging
import math
import time
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional, Protocol, Tuple

from .entities import NormalizedReading
from .errors import CacheUnavailable

logger = logging.getLogger(__name__)

# Raw store retention as a multiple of the entry TTL, so expired entries stay
# readable for stale-on-failure.
STALE_RETENTION_FACTOR = 12


class KeyValueStore(Protocol):
    """The get/set-with-TTL surface shared by Redis, Django caches and fakes."""

    def get(self, key: str) -> Any:
        ...

    def set(self, key: str, value: Any, ttl: float) -> None:
        ...


class InMemoryStore:
    """A lightweight TTL store emulating Redis behaviour for tests."""

    def __init__(self, time_func: Callable[[], float] = time.time) -> None:
        self._time_func = time_func
        self._storage: Dict[str, Tuple[float, Any]] = {}

    def get(self, key: str) -> Any:
        item = self._storage.get(key)
        if not item:
            return None
        expires_at, value = item
        if expires_at < self._time_func():
            self._storage.pop(key, None)
            return None
        return value

    def set(self, key: str, value: Any, ttl: float) -> None:
        self._storage[key] = (self._time_func() + ttl, value)

    def clear(self) -> None:
        self._storage.clear()


def bucket_key(source_id: str, now: float, bucket_width: int) -> str:
    bucket = int(math.floor(now / bucket_width) * bucket_width)
    return f"{source_id}:{bucket}"


def latest_key(source_id: str) -> str:
    return f"{source_id}:latest"


@dataclass(frozen=True)
class CacheEntry:
    key: str
    reading: NormalizedReading
    written_at: float
    ttl_seconds: int

    def expired(self, now: float) -> bool:
        return self.written_at + self.ttl_seconds < now

    def remaining(self, now: float) -> int:
        return max(int(self.written_at + self.ttl_seconds - now), 0)


class ReadingCache:
    """Bucketed, TTL-checked cache of normalized readings on top of any store.

    Staleness is checked lazily on read; nothing sweeps the store. Store
    failures surface as :class:`CacheUnavailable` from the store adapter and
    are treated as a miss here.
    """

    def __init__(self, store: KeyValueStore, time_func: Callable[[], float] = time.time) -> None:
        self._store = store
        self._time_func = time_func

    def now(self) -> float:
        return self._time_func()

    def key_for(self, source_id: str, bucket_width: int) -> str:
        return bucket_key(source_id, self.now(), bucket_width)

    # Public API ---------------------------------------------------------
    def get(self, key: str) -> Optional[NormalizedReading]:
        entry = self.lookup(key)
        if entry is None:
            return None
        return entry.reading

    def lookup(self, key: str) -> Optional[CacheEntry]:
        entry = self._read(key)
        if entry is None:
            return None
        if entry.expired(self.now()):
            logger.debug("Cache entry %s expired", key)
            return None
        logger.debug("Cache hit for %s", key)
        return entry

    def put(self, key: str, reading: NormalizedReading, ttl_seconds: int) -> None:
        entry = CacheEntry(key=key, reading=reading, written_at=self.now(), ttl_seconds=ttl_seconds)
        payload = self._serialize(entry)
        retention = ttl_seconds * STALE_RETENTION_FACTOR
        try:
            self._store.set(key, payload, retention)
            self._store.set(latest_key(reading.source_id), payload, retention)
        except CacheUnavailable as exc:
            logger.warning("Cache write for %s skipped: %s", key, exc)

    def last_known(self, source_id: str) -> Optional[CacheEntry]:
        """Most recent entry for a source, expired or not."""
        return self._read(latest_key(source_id))

    # Helpers ------------------------------------------------------------
    def _read(self, key: str) -> Optional[CacheEntry]:
        try:
            payload = self._store.get(key)
        except CacheUnavailable as exc:
            logger.warning("Cache read for %s failed, treating as miss: %s", key, exc)
            return None
        if not payload:
            return None
        try:
            return self._deserialize(payload)
        except (KeyError, TypeError, ValueError) as exc:
            logger.warning("Discarding unreadable cache entry %s: %s", key, exc)
            return None

    def _serialize(self, entry: CacheEntry) -> dict:
        reading = asdict(entry.reading)
        reading["timestamp"] = format_timestamp(entry.reading.timestamp)
        return {
            "key": entry.key,
            "written_at": entry.written_at,
            "ttl_seconds": entry.ttl_seconds,
            "reading": reading,
        }

    def _deserialize(self, payload: dict) -> CacheEntry:
        reading = dict(payload["reading"])
        reading["timestamp"] = datetime.fromisoformat(reading["timestamp"].replace("Z", "+00:00"))
        return CacheEntry(
            key=payload["key"],
            reading=NormalizedReading(**reading),
            written_at=float(payload["written_at"]),
            ttl_seconds=int(payload["ttl_seconds"]),
        )


def format_timestamp(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


__all__ = [
    "CacheEntry",
    "InMemoryStore",
    "KeyValueStore",
    "ReadingCache",
    "bucket_key",
    "format_timestamp",
    "latest_key",
]
