from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, ValidationError

from ..entities import ReadingCandidate, SpeedUnit
from ..errors import ParseError
from .base import SourceParser


class EnhancedWind(BaseModel):
    avg: Optional[float] = None
    high: Optional[float] = None
    low: Optional[float] = None
    direction: Optional[float] = None


class CurrentConditions(BaseModel):
    wind_speed: Optional[float] = None
    wind_direction: Optional[float] = None
    temperature: Optional[float] = None
    pressure: Optional[float] = None
    humidity: Optional[float] = None
    observed_at: Optional[datetime] = None


class MarinePayload(BaseModel):
    """Marine platform response: an averaged ``wind`` block and/or ``current``."""

    observed_at: Optional[datetime] = None
    wind: Optional[EnhancedWind] = None
    current: Optional[CurrentConditions] = None
    temperature: Optional[float] = None
    pressure: Optional[float] = None
    humidity: Optional[float] = None


class JsonEnhancedParser(SourceParser):
    name = "json_enhanced"
    speed_unit = SpeedUnit.MPS

    def _parse(self, raw: str) -> ReadingCandidate:
        try:
            payload = MarinePayload.model_validate_json(raw)
        except ValidationError as exc:
            raise ParseError(f"unexpected payload shape ({exc.error_count()} errors)") from exc

        wind = payload.wind
        if wind is not None and wind.avg is not None and wind.direction is not None:
            self._log.debug("%s: using enhanced wind block", self.source_id)
            return ReadingCandidate(
                source_id=self.source_id,
                wind_speed=wind.avg,
                wind_direction=wind.direction,
                speed_unit=self.speed_unit,
                wind_gust=wind.high,
                temperature=payload.temperature,
                pressure=payload.pressure,
                humidity=payload.humidity,
                timestamp=_as_utc(payload.observed_at),
            )

        current = payload.current
        if current is None or current.wind_speed is None or current.wind_direction is None:
            raise ParseError("neither enhanced nor current wind fields present")
        self._log.debug("%s: enhanced fields absent, using current conditions", self.source_id)
        # An instantaneous reading cannot establish a gust.
        return ReadingCandidate(
            source_id=self.source_id,
            wind_speed=current.wind_speed,
            wind_direction=current.wind_direction,
            speed_unit=self.speed_unit,
            wind_gust=None,
            temperature=_first(current.temperature, payload.temperature),
            pressure=_first(current.pressure, payload.pressure),
            humidity=_first(current.humidity, payload.humidity),
            timestamp=_as_utc(current.observed_at or payload.observed_at),
        )


def _first(*values: Optional[float]) -> Optional[float]:
    for value in values:
        if value is not None:
            return value
    return None


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


__all__ = ["JsonEnhancedParser", "MarinePayload"]
