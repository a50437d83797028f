"""Decoder for the packed binary samples of the Navis live-data telemetry.

Each sample is a hex string. The final 8 hex characters are the
least-significant 32-bit word; anything before them is the most-significant
word::

    LSB bits 16-31  wind speed, tenths of m/s
    LSB bits 7-15   wind direction, degrees (9 bits)
    MSB bits 0-10   temperature, (raw - 400) / 10 degrees C

Payloads come in three shapes: a bare hex string, a live reading
``timestamp:status:hex``, or a history window of comma-separated
``timestamp:hex`` pairs.
"""
from __future__ import annotations

import math
import re
import statistics
from dataclasses import dataclass, replace
from datetime import datetime
from typing import List, Optional, Tuple

from ..entities import ReadingCandidate, SpeedUnit
from ..errors import ParseError
from ..units import MPS_TO_KNOTS
from .base import SourceParser, from_epoch

# Peak must beat the window average by this much (knots) to count as a gust.
# The upstream never documented a threshold; this approximates its intent.
DEFAULT_GUST_MARGIN_KTS = 1.0
MAX_HISTORY_SAMPLES = 30
TEMPERATURE_OUTLIER_C = 8.0

_HEX = re.compile(r"^[0-9A-Fa-f]+$")


@dataclass(frozen=True)
class HexSample:
    wind_speed_kts: float
    wind_direction: int
    temperature: Optional[float]


def decode_sample(hex_value: str) -> HexSample:
    value = hex_value.strip().rstrip("%").strip()
    if len(value) < 8:
        raise ParseError(f"hex sample too short: {value!r} ({len(value)} chars)")
    if not _HEX.match(value):
        raise ParseError(f"invalid hex sample: {value!r}")

    lsb = int(value[-8:], 16)
    msb = int(value[:-8], 16) if len(value) > 8 else None

    speed_mps = ((lsb >> 16) & 0xFFFF) / 10.0
    direction = (lsb >> 7) & 0x1FF
    temperature = ((msb & 0x7FF) - 400) / 10.0 if msb is not None else None
    return HexSample(
        wind_speed_kts=speed_mps * MPS_TO_KNOTS,
        wind_direction=direction,
        temperature=temperature,
    )


class PackedHexParser(SourceParser):
    name = "packed_hex"
    speed_unit = SpeedUnit.KNOTS

    def __init__(self, source_id: str, *, gust_margin: float = DEFAULT_GUST_MARGIN_KTS) -> None:
        super().__init__(source_id)
        self.gust_margin = gust_margin

    def _parse(self, raw: str) -> ReadingCandidate:
        text = (raw or "").strip()
        if not text or text.rstrip("%").strip().lower() == "error":
            raise ParseError(f"upstream returned an error payload: {text!r}")
        if "," in text:
            return self._parse_history(text)
        return self._parse_live(text)

    def apply_supplement(self, candidate: ReadingCandidate, raw: str) -> ReadingCandidate:
        # The live endpoint reports a more reliable air temperature than the window.
        text = (raw or "").strip()
        try:
            live = decode_sample(text.split(":")[-1])
        except ParseError as exc:
            self._log.warning("%s: ignoring live temperature: %s", self.source_id, exc)
            return candidate
        if live.temperature is None:
            return candidate
        self._log.debug("%s: live temperature override %.1f C", self.source_id, live.temperature)
        return replace(candidate, temperature=live.temperature)

    def _parse_live(self, text: str) -> ReadingCandidate:
        parts = text.split(":")
        sample = decode_sample(parts[-1])
        timestamp = _parse_epoch(parts[0]) if len(parts) > 1 else None
        self._log.debug(
            "%s: live sample %.1f kts @ %s deg, temp=%s",
            self.source_id,
            sample.wind_speed_kts,
            sample.wind_direction,
            sample.temperature,
        )
        # A single instantaneous sample has no distinct peak.
        return ReadingCandidate(
            source_id=self.source_id,
            wind_speed=sample.wind_speed_kts,
            wind_direction=sample.wind_direction,
            speed_unit=self.speed_unit,
            wind_gust=None,
            temperature=sample.temperature,
            timestamp=timestamp,
        )

    def _parse_history(self, text: str) -> ReadingCandidate:
        samples: List[Tuple[int, datetime, HexSample]] = []
        for chunk in filter(None, (part.strip() for part in text.split(","))):
            ts_text, sep, hex_value = chunk.partition(":")
            if not sep:
                self._log.warning("%s: skipping sample without timestamp: %r", self.source_id, chunk)
                continue
            observed = _parse_epoch(ts_text)
            if observed is None:
                self._log.warning("%s: skipping sample with bad timestamp: %r", self.source_id, chunk)
                continue
            try:
                samples.append((int(ts_text), observed, decode_sample(hex_value)))
            except ParseError as exc:
                self._log.warning("%s: skipping malformed sample %r: %s", self.source_id, chunk, exc)
        if not samples:
            raise ParseError("no valid samples in history window")

        samples.sort(key=lambda item: item[0])
        recent = [sample for _, _, sample in samples[-MAX_HISTORY_SAMPLES:]]
        speeds = [sample.wind_speed_kts for sample in recent]
        average = sum(speeds) / len(speeds)
        peak = max(speeds)
        gust = peak if peak - average > self.gust_margin else None

        self._log.debug(
            "%s: %s samples avg=%.1f kts peak=%.1f kts gust=%s",
            self.source_id,
            len(recent),
            average,
            peak,
            gust,
        )
        return ReadingCandidate(
            source_id=self.source_id,
            wind_speed=average,
            wind_direction=_mean_direction([sample.wind_direction for sample in recent]),
            speed_unit=self.speed_unit,
            wind_gust=gust,
            temperature=_robust_temperature([s.temperature for s in recent if s.temperature is not None]),
            timestamp=samples[-1][1],
        )


def _parse_epoch(value: str) -> Optional[datetime]:
    try:
        return from_epoch(int(value))
    except (ValueError, OverflowError, OSError):
        return None


def _mean_direction(directions: List[int]) -> float:
    sin_sum = sum(math.sin(math.radians(d)) for d in directions)
    cos_sum = sum(math.cos(math.radians(d)) for d in directions)
    if math.isclose(sin_sum, 0.0, abs_tol=1e-9) and math.isclose(cos_sum, 0.0, abs_tol=1e-9):
        return float(directions[-1])
    return math.degrees(math.atan2(sin_sum, cos_sum)) % 360


def _robust_temperature(temperatures: List[float]) -> Optional[float]:
    if not temperatures:
        return None
    median = statistics.median(temperatures)
    kept = [t for t in temperatures if abs(t - median) <= TEMPERATURE_OUTLIER_C] or temperatures
    return round(sum(kept) / len(kept), 1)


__all__ = ["DEFAULT_GUST_MARGIN_KTS", "HexSample", "PackedHexParser", "decode_sample"]
