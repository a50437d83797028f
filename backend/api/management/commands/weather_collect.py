"""Management command that runs the collection path for a cron trigger."""
from __future__ import annotations

import json
import time
from typing import Any, Dict

from django.core.management.base import BaseCommand, CommandError

from backend.api.store import reading_cache
from backend.api.views import build_collector, collect_region
from windcore.cache import ReadingCache, format_timestamp
from windcore.outcomes import StationResult
from windcore.stations import REGIONS, STATIONS, get_region, get_station, region_for_station


class Command(BaseCommand):
    help = "Collect readings for all stations, one region, or one station"

    def add_arguments(self, parser) -> None:  # noqa: D401
        parser.add_argument("--region", type=str, help="Only collect stations of this region")
        parser.add_argument("--station", type=str, help="Only collect this station")

    def handle(self, *args: Any, **options: Any) -> None:  # noqa: D401
        started = time.monotonic()
        cache = reading_cache()
        region_id = options.get("region")
        station_id = options.get("station")

        if station_id:
            config = get_station(station_id)
            if config is None:
                raise CommandError(f"Unknown station {station_id}")
            results = [build_collector(config, cache).collect()]
        elif region_id:
            if get_region(region_id) is None:
                raise CommandError(f"Unknown region {region_id}")
            results = collect_region(region_id, cache).stations
        else:
            results = self._collect_all(cache)

        payload = {
            "message": "Collection completed",
            "totalTime": f"{(time.monotonic() - started) * 1000:.0f}ms",
            "results": {result.station_id: self._summarize(result) for result in results},
        }
        self.stdout.write(json.dumps(payload))

    def _collect_all(self, cache: ReadingCache):
        results = []
        for region_id in REGIONS:
            results.extend(collect_region(region_id, cache).stations)
        # Stations outside every region are still refreshed, one at a time.
        for config in STATIONS.values():
            if region_for_station(config.id) is None:
                results.append(build_collector(config, cache).collect())
        return results

    @staticmethod
    def _summarize(result: StationResult) -> Dict[str, Any]:
        entry: Dict[str, Any] = {"status": result.status.value, "success": result.ok}
        if result.reading is not None:
            entry["timestamp"] = format_timestamp(result.reading.timestamp)
        if result.error:
            entry["error"] = result.error
        return entry
