"""REST API views for station and region weather."""
from __future__ import annotations

import logging
from typing import Optional

from django.http import HttpResponse
from rest_framework import status
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.views import APIView

from backend.api.store import reading_cache, retry_policy
from windcore.cache import ReadingCache
from windcore.display import render
from windcore.entities import SpeedUnit, StationConfig
from windcore.outcomes import RegionResult, StationResult
from windcore.serializers import region_envelope, station_envelope, station_error
from windcore.services import RegionAggregator, StationCollector
from windcore.stations import REGIONS, all_stations, get_region, get_station, region_for_station

logger = logging.getLogger(__name__)


def build_collector(config: StationConfig, cache: Optional[ReadingCache] = None) -> StationCollector:
    return StationCollector(config, cache or reading_cache(), policy=retry_policy())


def collect_station(config: StationConfig) -> StationResult:
    return build_collector(config).collect()


def collect_region(region_id: str, cache: Optional[ReadingCache] = None) -> RegionResult:
    region = REGIONS[region_id]
    cache = cache or reading_cache()
    aggregator = RegionAggregator(cache, collector_factory=lambda config: build_collector(config, cache))
    return aggregator.aggregate(region)


def _wants_display(request) -> bool:
    return request.query_params.get("format") == "display"


def _display_response(text: str, ttl) -> HttpResponse:
    response = HttpResponse(text, content_type="text/plain; charset=utf-8")
    if ttl:
        response["Cache-Control"] = f"public, max-age={int(ttl)}"
    return response


class StationWeatherView(APIView):
    """Serve the latest reading for one station."""

    permission_classes = [AllowAny]

    def get(self, request, station_id: str, *args, **kwargs):  # noqa: D401
        """Return the ``weather.v1`` envelope, or display text on request."""
        config = get_station(station_id)
        if config is None:
            return Response({"detail": f"Station '{station_id}' not found"}, status=status.HTTP_404_NOT_FOUND)

        result = collect_station(config)
        if not result.ok:
            logger.error("Station %s unavailable: %s", config.id, result.error)
            return Response(station_error(result), status=status.HTTP_503_SERVICE_UNAVAILABLE)

        if _wants_display(request):
            region = region_for_station(config.id)
            unit = region.display_unit if region else SpeedUnit.MPS
            return _display_response(render(config.name, result.reading, unit, stale=result.stale), result.ttl)

        response = Response(station_envelope(result), status=status.HTTP_200_OK)
        response["Cache-Control"] = f"public, max-age={int(result.ttl or 0)}"
        return response


class RegionWeatherView(APIView):
    """Serve every station of a region in one envelope."""

    permission_classes = [AllowAny]

    def get(self, request, region_id: str, *args, **kwargs):  # noqa: D401
        region = get_region(region_id)
        if region is None:
            return Response({"detail": f"Region '{region_id}' not found"}, status=status.HTTP_404_NOT_FOUND)

        result = collect_region(region.id)
        if _wants_display(request):
            blocks = []
            for station in result.stations:
                config = get_station(station.station_id)
                name = config.name if config else station.station_id
                if station.ok:
                    blocks.append(render(name, station.reading, region.display_unit, stale=station.stale))
                else:
                    blocks.append(f"=== {name.upper()} ===\n\nUnavailable")
            return _display_response("\n\n".join(blocks), result.ttl)

        response = Response(region_envelope(result), status=status.HTTP_200_OK)
        response["Cache-Control"] = f"public, max-age={int(result.ttl)}"
        return response


class StationListView(APIView):
    """List configured stations with their region."""

    permission_classes = [AllowAny]

    def get(self, request, *args, **kwargs):  # noqa: D401
        stations = []
        for config in all_stations():
            region = region_for_station(config.id)
            stations.append(
                {
                    "id": config.id,
                    "name": config.name,
                    "region": region.id if region else None,
                    "location": region.name if region else None,
                    "refreshInterval": config.refresh_interval,
                }
            )
        return Response({"stations": stations}, status=status.HTTP_200_OK)
