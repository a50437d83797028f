"""JSON envelopes served to display clients."""
from __future__ import annotations

from typing import Any, Dict

from .cache import format_timestamp
from .entities import NormalizedReading
from .outcomes import RegionResult, StationResult

STATION_SCHEMA = "weather.v1"
REGION_SCHEMA = "weather.region.v1"


def reading_payload(reading: NormalizedReading) -> Dict[str, Any]:
    """Build the ``data`` block; absent quantities are omitted, never null."""

    wind: Dict[str, Any] = {
        "avg": reading.wind_speed_avg,
        "direction": reading.wind_direction,
        "unit": "mps",
    }
    if reading.wind_gust is not None:
        wind["gust"] = reading.wind_gust

    data: Dict[str, Any] = {"wind": wind}
    if reading.temperature is not None:
        data["temperature"] = {"air": reading.temperature, "unit": "celsius"}
    if reading.pressure is not None:
        data["pressure"] = {"value": reading.pressure, "unit": "hPa"}
    if reading.humidity is not None:
        data["humidity"] = {"value": reading.humidity, "unit": "percent"}
    return data


def station_envelope(result: StationResult) -> Dict[str, Any]:
    if result.reading is None:
        raise ValueError(f"Station {result.station_id} has no reading to serialize")
    payload: Dict[str, Any] = {
        "schema": STATION_SCHEMA,
        "stationId": result.station_id,
        "timestamp": format_timestamp(result.reading.timestamp),
        "data": reading_payload(result.reading),
        "ttl": result.ttl,
    }
    if result.stale:
        payload["stale"] = True
    return payload


def station_error(result: StationResult) -> Dict[str, Any]:
    return {
        "stationId": result.station_id,
        "status": "error",
        "error": result.error or "unavailable",
    }


def region_envelope(result: RegionResult) -> Dict[str, Any]:
    stations = [
        station_envelope(station) if station.ok else station_error(station)
        for station in result.stations
    ]
    return {
        "schema": REGION_SCHEMA,
        "regionId": result.region_id,
        "regionName": result.region_name,
        "timestamp": format_timestamp(result.timestamp),
        "stations": stations,
        "ttl": result.ttl,
    }


__all__ = [
    "REGION_SCHEMA",
    "STATION_SCHEMA",
    "reading_payload",
    "region_envelope",
    "station_envelope",
    "station_error",
]
