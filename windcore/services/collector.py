from __future__ import annotations

import logging
import time
from datetime import datetime, timezone
from typing import Callable, Optional

import requests

from ..cache import ReadingCache
from ..entities import NormalizedReading, ReadingCandidate, StationConfig
from ..errors import ValidationReject
from ..fetchers import RetryPolicy, SourceFetcher, build_fetcher
from ..outcomes import StationResult, StationStatus
from ..parsers import SourceParser, build_parser
from ..validation import validate

Validator = Callable[..., NormalizedReading]


class StationCollector:
    """Fetch, parse, validate and cache one station.

    Each ``collect`` call walks FETCH -> PARSE -> VALIDATE -> CACHE-WRITE and
    stops at the first failing stage. Failures fall back to the last cached
    reading (even an expired one) before being reported as an error. Retries
    belong to the fetcher; nothing is retried here.
    """

    STALE_TTL = 60

    def __init__(
        self,
        config: StationConfig,
        cache: ReadingCache,
        *,
        fetcher: Optional[SourceFetcher] = None,
        parser: Optional[SourceParser] = None,
        validator: Validator = validate,
        session: Optional[requests.Session] = None,
        policy: Optional[RetryPolicy] = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.config = config
        self.cache = cache
        self.fetcher = fetcher or build_fetcher(config, session=session, policy=policy, sleep=sleep)
        self.parser = parser or build_parser(config)
        self._validate = validator
        self._log = logging.getLogger(self.__class__.__name__)

    # Public API ---------------------------------------------------------
    def collect(self) -> StationResult:
        station_id = self.config.id
        key = self.cache.key_for(station_id, self.config.refresh_interval)
        entry = self.cache.lookup(key)
        if entry is not None:
            return StationResult(
                station_id=station_id,
                status=StationStatus.CACHED,
                reading=entry.reading,
                ttl=entry.remaining(self.cache.now()),
            )

        fetched = self.fetcher.fetch(self.config)
        if not fetched.ok:
            return self._degrade(
                f"fetch failed: {fetched.reason}",
                attempts=fetched.attempts,
                fetch_ms=fetched.duration_ms,
            )

        parsed = self.parser.parse(fetched.payload)
        if not parsed.ok:
            return self._degrade(
                f"parse failed: {parsed.reason}",
                attempts=fetched.attempts,
                fetch_ms=fetched.duration_ms,
                parse_ms=parsed.duration_ms,
            )

        candidate = parsed.reading
        if fetched.supplement:
            candidate = self.parser.apply_supplement(candidate, fetched.supplement)

        try:
            reading = self._validate(candidate, fallback_time=self._now())
        except ValidationReject as exc:
            self._log.error("%s: reading rejected: %s", station_id, exc)
            return self._degrade(
                f"validation rejected: {exc}",
                attempts=fetched.attempts,
                fetch_ms=fetched.duration_ms,
                parse_ms=parsed.duration_ms,
            )
        self._log_invalid_fields(candidate, reading)

        ttl = self.config.refresh_interval
        self.cache.put(key, reading, ttl)
        self._log.info(
            "%s: collected %.1f m/s @ %s deg in %.0fms",
            station_id,
            reading.wind_speed_avg,
            reading.wind_direction,
            fetched.duration_ms + parsed.duration_ms,
        )
        return StationResult(
            station_id=station_id,
            status=StationStatus.FRESH,
            reading=reading,
            ttl=ttl,
            attempts=fetched.attempts,
            fetch_ms=fetched.duration_ms,
            parse_ms=parsed.duration_ms,
        )

    # Helpers ------------------------------------------------------------
    def _degrade(self, reason: str, *, attempts: int = 0, fetch_ms: float = 0.0, parse_ms: float = 0.0) -> StationResult:
        station_id = self.config.id
        stale = self.cache.last_known(station_id)
        if stale is not None:
            self._log.warning("%s: %s; serving stale reading from %s", station_id, reason, stale.reading.timestamp)
            return StationResult(
                station_id=station_id,
                status=StationStatus.STALE,
                reading=stale.reading,
                error=reason,
                ttl=self.STALE_TTL,
                attempts=attempts,
                fetch_ms=fetch_ms,
                parse_ms=parse_ms,
            )
        self._log.error("%s: %s; no cached reading available", station_id, reason)
        return StationResult(
            station_id=station_id,
            status=StationStatus.ERROR,
            error=reason,
            attempts=attempts,
            fetch_ms=fetch_ms,
            parse_ms=parse_ms,
        )

    def _log_invalid_fields(self, candidate: ReadingCandidate, reading: NormalizedReading) -> None:
        if not reading.valid:
            self._log.warning("%s: out-of-range fields dropped from %s", self.config.id, candidate)

    def _now(self) -> datetime:
        return datetime.fromtimestamp(self.cache.now(), tz=timezone.utc)


__all__ = ["StationCollector"]
