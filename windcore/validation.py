"""Single place where unit and range policy is applied to parser output.

``validate`` is pure: it converts a :class:`ReadingCandidate` into a
:class:`NormalizedReading` or raises :class:`ValidationReject`. Optional
quantities outside their physical range become ``None`` and clear the
``valid`` flag; zero is always a real value, never "missing".
"""
from __future__ import annotations

import math
from datetime import datetime
from typing import Optional, Tuple

from .entities import NormalizedReading, ReadingCandidate
from .errors import ValidationReject
from .units import normalize_direction, to_mps

TEMPERATURE_RANGE = (-60.0, 60.0)
PRESSURE_RANGE = (800.0, 1200.0)
HUMIDITY_RANGE = (0.0, 100.0)
MAX_NATIVE_WIND_SPEED = 200.0


def validate(candidate: ReadingCandidate, *, fallback_time: datetime) -> NormalizedReading:
    speed = _finite(candidate.wind_speed)
    if speed is None:
        raise ValidationReject(f"{candidate.source_id}: wind speed is not a number")
    if speed > MAX_NATIVE_WIND_SPEED:
        raise ValidationReject(
            f"{candidate.source_id}: wind speed {speed} {candidate.speed_unit.value} is implausible"
        )
    direction = _finite(candidate.wind_direction)
    if direction is None:
        raise ValidationReject(f"{candidate.source_id}: wind direction is not a number")

    temperature, temp_ok = _in_range(candidate.temperature, *TEMPERATURE_RANGE)
    pressure, pressure_ok = _in_range(candidate.pressure, *PRESSURE_RANGE)
    humidity, humidity_ok = _in_range(candidate.humidity, *HUMIDITY_RANGE)
    visibility, visibility_ok = _in_range(candidate.visibility, 0.0, math.inf)
    uv_index, uv_ok = _in_range(candidate.uv_index, 0.0, math.inf)
    precipitation, precipitation_ok = _in_range(candidate.precipitation, 0.0, math.inf)

    gust = _finite(candidate.wind_gust)
    gust_mps = to_mps(gust, candidate.speed_unit)

    return NormalizedReading(
        source_id=candidate.source_id,
        timestamp=candidate.timestamp or fallback_time,
        wind_speed_avg=round(to_mps(max(speed, 0.0), candidate.speed_unit), 2),
        wind_direction=normalize_direction(direction),
        wind_gust=round(gust_mps, 2) if gust_mps is not None else None,
        temperature=_round(temperature, 1),
        humidity=_round(humidity, 1),
        pressure=_round(pressure, 1),
        visibility=_round(visibility, 2),
        uv_index=_round(uv_index, 1),
        precipitation=_round(precipitation, 2),
        valid=all((temp_ok, pressure_ok, humidity_ok, visibility_ok, uv_ok, precipitation_ok)),
    )


def _finite(value: Optional[float]) -> Optional[float]:
    if value is None:
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(number) or math.isinf(number):
        return None
    return number


def _in_range(value: Optional[float], low: float, high: float) -> Tuple[Optional[float], bool]:
    """Return the value (or None) and whether a present value was accepted."""
    if value is None:
        return None, True
    number = _finite(value)
    if number is None or not low <= number <= high:
        return None, False
    return number, True


def _round(value: Optional[float], digits: int) -> Optional[float]:
    if value is None:
        return None
    return round(value, digits)


__all__ = ["validate", "MAX_NATIVE_WIND_SPEED"]
