"""Tagged result values returned at every layer boundary.

Each outcome is created fresh by the call that produced it and never mutated.
``ok`` distinguishes the two variants without ``isinstance`` checks.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import List, Optional, Tuple, Union

from .entities import NormalizedReading, ReadingCandidate


@dataclass(frozen=True)
class ParseSuccess:
    reading: ReadingCandidate
    duration_ms: float
    ok: bool = field(default=True, init=False)


@dataclass(frozen=True)
class ParseFailure:
    reason: str
    duration_ms: float
    ok: bool = field(default=False, init=False)


ParseOutcome = Union[ParseSuccess, ParseFailure]


@dataclass(frozen=True)
class FetchSuccess:
    payload: str
    http_status: int
    attempts: int
    duration_ms: float
    url: str = ""
    attempt_ms: Tuple[float, ...] = ()
    supplement: Optional[str] = None
    ok: bool = field(default=True, init=False)


@dataclass(frozen=True)
class FetchFailure:
    reason: str
    attempts: int
    duration_ms: float
    kind: str = "network"
    attempt_ms: Tuple[float, ...] = ()
    ok: bool = field(default=False, init=False)


FetchOutcome = Union[FetchSuccess, FetchFailure]


class StationStatus(str, Enum):
    FRESH = "fresh"
    CACHED = "cached"
    STALE = "stale"
    ERROR = "error"


@dataclass(frozen=True)
class StationResult:
    station_id: str
    status: StationStatus
    reading: Optional[NormalizedReading] = None
    error: Optional[str] = None
    ttl: Optional[int] = None
    attempts: int = 0
    fetch_ms: float = 0.0
    parse_ms: float = 0.0

    @property
    def ok(self) -> bool:
        return self.reading is not None

    @property
    def stale(self) -> bool:
        return self.status is StationStatus.STALE


@dataclass(frozen=True)
class RegionResult:
    region_id: str
    region_name: str
    timestamp: datetime
    stations: List[StationResult]
    ttl: int

    @property
    def failed(self) -> List[StationResult]:
        return [result for result in self.stations if not result.ok]


__all__ = [
    "FetchFailure",
    "FetchOutcome",
    "FetchSuccess",
    "ParseFailure",
    "ParseOutcome",
    "ParseSuccess",
    "RegionResult",
    "StationResult",
    "StationStatus",
]
