from __future__ import annotations

import time
from datetime import datetime, timezone
from typing import Callable, Optional

from pydantic import BaseModel, Field, ValidationError

from ..entities import ReadingCandidate, SpeedUnit
from ..errors import ParseError
from .base import SourceParser

DEFAULT_STALE_AFTER = 30 * 60


class LiveMeasurements(BaseModel):
    date: Optional[datetime] = None
    pressure: Optional[float] = None
    wind_heading: Optional[float] = None
    wind_speed_avg: Optional[float] = None
    wind_speed_max: Optional[float] = None
    wind_speed_min: Optional[float] = None


class LiveStatus(BaseModel):
    date: Optional[datetime] = None
    state: Optional[str] = None


class LiveMeta(BaseModel):
    name: Optional[str] = None


class LiveStation(BaseModel):
    id: int
    meta: LiveMeta = Field(default_factory=LiveMeta)
    measurements: LiveMeasurements
    status: LiveStatus = Field(default_factory=LiveStatus)


class LivePayload(BaseModel):
    """``live-with-meta`` response of the alpine wind sensor network."""

    data: LiveStation


class JsonDirectParser(SourceParser):
    """Alpine sensor JSON; speeds are km/h and used as-is before validation.

    An old measurement does not invalidate the reading, it is only logged.
    """

    name = "json_direct"
    speed_unit = SpeedUnit.KMH

    def __init__(
        self,
        source_id: str,
        *,
        expected_id: Optional[int] = None,
        stale_after: int = DEFAULT_STALE_AFTER,
        time_func: Callable[[], float] = time.time,
    ) -> None:
        super().__init__(source_id)
        self.expected_id = expected_id
        self.stale_after = stale_after
        self._time_func = time_func

    def _parse(self, raw: str) -> ReadingCandidate:
        try:
            payload = LivePayload.model_validate_json(raw)
        except ValidationError as exc:
            raise ParseError(f"unexpected payload shape ({exc.error_count()} errors)") from exc

        station = payload.data
        if self.expected_id is not None and station.id != self.expected_id:
            raise ParseError(f"unexpected upstream station {station.id}, expected {self.expected_id}")

        measurements = station.measurements
        if measurements.wind_speed_avg is None:
            raise ParseError("measurements.wind_speed_avg missing")
        if measurements.wind_heading is None:
            raise ParseError("measurements.wind_heading missing")

        if station.status.state and station.status.state != "on":
            self._log.warning("%s: upstream station %s reports state %r", self.source_id, station.id, station.status.state)
        timestamp = _as_utc(measurements.date)
        self._check_freshness(timestamp)

        return ReadingCandidate(
            source_id=self.source_id,
            wind_speed=measurements.wind_speed_avg,
            wind_direction=measurements.wind_heading,
            speed_unit=self.speed_unit,
            wind_gust=measurements.wind_speed_max,
            pressure=measurements.pressure,
            timestamp=timestamp,
        )

    def _check_freshness(self, timestamp: Optional[datetime]) -> None:
        if timestamp is None:
            return
        age = self._time_func() - timestamp.timestamp()
        if age > self.stale_after:
            self._log.warning(
                "%s: last measurement is %.0f minutes old (%s)",
                self.source_id,
                age / 60,
                timestamp.isoformat(),
            )


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


__all__ = ["JsonDirectParser", "LivePayload"]
