from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone
from typing import Callable, List, Mapping, Optional

from ..cache import ReadingCache
from ..entities import RegionConfig, StationConfig
from ..outcomes import RegionResult, StationResult, StationStatus
from ..stations import STATIONS
from .collector import StationCollector

logger = logging.getLogger(__name__)

CollectorFactory = Callable[[StationConfig], StationCollector]


class RegionAggregator:
    """Collect every station of a region concurrently.

    All stations are waited for; a failing or slow station never cancels its
    siblings. The output keeps the region's configured station order, and a
    station that fails appears as an explicit error entry.
    """

    DEFAULT_TTL = 60

    def __init__(
        self,
        cache: ReadingCache,
        *,
        stations: Optional[Mapping[str, StationConfig]] = None,
        collector_factory: Optional[CollectorFactory] = None,
        max_workers: Optional[int] = None,
    ) -> None:
        self.cache = cache
        self._stations = stations if stations is not None else STATIONS
        self._collector_factory = collector_factory or (lambda config: StationCollector(config, cache))
        self.max_workers = max_workers

    def aggregate(self, region: RegionConfig) -> RegionResult:
        station_ids = list(region.stations)
        workers = self.max_workers or max(len(station_ids), 1)
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix=f"region-{region.id}") as executor:
            futures = [executor.submit(self._safe_collect, station_id) for station_id in station_ids]
            results: List[StationResult] = [future.result() for future in futures]

        ttls = [result.ttl for result in results if result.ttl is not None]
        failed = sum(1 for result in results if not result.ok)
        if failed:
            logger.warning("Region %s: %s/%s stations failed", region.id, failed, len(results))
        return RegionResult(
            region_id=region.id,
            region_name=region.name,
            timestamp=datetime.fromtimestamp(self.cache.now(), tz=timezone.utc),
            stations=results,
            ttl=min(ttls) if ttls else self.DEFAULT_TTL,
        )

    def _safe_collect(self, station_id: str) -> StationResult:
        config = self._stations.get(station_id)
        if config is None:
            logger.error("Region references unknown station %s", station_id)
            return StationResult(station_id=station_id, status=StationStatus.ERROR, error="unknown station")
        try:
            return self._collector_factory(config).collect()
        except Exception as exc:  # noqa: BLE001 - one station must not fail the region
            logger.exception("Station %s collection crashed", station_id)
            return StationResult(station_id=station_id, status=StationStatus.ERROR, error=str(exc))


__all__ = ["RegionAggregator"]
