from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Mapping, Optional, Tuple


class SpeedUnit(str, Enum):
    MPS = "mps"
    KNOTS = "kts"
    KMH = "kmh"


@dataclass(frozen=True)
class ReadingCandidate:
    """Reading as a parser extracted it, before unit and range policy.

    Wind speeds are expressed in ``speed_unit`` (the source's native unit).
    Every optional quantity is ``None`` when the upstream did not provide it.
    """

    source_id: str
    wind_speed: float
    wind_direction: float
    speed_unit: SpeedUnit
    wind_gust: Optional[float] = None
    temperature: Optional[float] = None
    humidity: Optional[float] = None
    pressure: Optional[float] = None
    visibility: Optional[float] = None
    uv_index: Optional[float] = None
    precipitation: Optional[float] = None
    timestamp: Optional[datetime] = None


@dataclass(frozen=True)
class NormalizedReading:
    """Canonical observation.

    Units:
    - wind speeds in metres per second (m/s)
    - temperature in Celsius
    - pressure in hectopascal (hPa)
    - visibility in kilometres, precipitation in millimetres
    """

    source_id: str
    timestamp: datetime
    wind_speed_avg: float
    wind_direction: int
    wind_gust: Optional[float] = None
    temperature: Optional[float] = None
    humidity: Optional[float] = None
    pressure: Optional[float] = None
    visibility: Optional[float] = None
    uv_index: Optional[float] = None
    precipitation: Optional[float] = None
    valid: bool = True

    @property
    def cardinal(self) -> str:
        return degrees_to_cardinal(self.wind_direction)


@dataclass(frozen=True)
class StationConfig:
    id: str
    name: str
    url: str
    parser: str
    refresh_interval: int = 300
    headers: Mapping[str, str] = field(default_factory=dict)
    method: str = "GET"
    body: Optional[str] = None
    session_url: Optional[str] = None
    session_cookie: str = "PHPSESSID"
    fallback_url: Optional[str] = None
    supplement_url: Optional[str] = None
    history_window: int = 60
    options: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class RegionConfig:
    id: str
    name: str
    stations: Tuple[str, ...]
    default_station: str
    display_unit: SpeedUnit = SpeedUnit.MPS


_CARDINALS = (
    "N", "NNE", "NE", "ENE", "E", "ESE", "SE", "SSE",
    "S", "SSW", "SW", "WSW", "W", "WNW", "NW", "NNW",
)


def degrees_to_cardinal(degrees: float) -> str:
    index = int(round(degrees / 22.5)) % 16
    return _CARDINALS[index]


__all__ = [
    "NormalizedReading",
    "ReadingCandidate",
    "RegionConfig",
    "SpeedUnit",
    "StationConfig",
    "degrees_to_cardinal",
]
