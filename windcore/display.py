"""Plain-text rendering for the e-paper display client."""
from __future__ import annotations

from datetime import datetime, timezone
from typing import List, Optional

from .entities import NormalizedReading, SpeedUnit
from .units import from_mps

UNIT_LABELS = {
    SpeedUnit.MPS: "m/s",
    SpeedUnit.KNOTS: "kts",
    SpeedUnit.KMH: "km/h",
}


def format_speed(speed_mps: float, unit: SpeedUnit) -> str:
    value = from_mps(speed_mps, unit)
    return f"{value:.1f}{UNIT_LABELS[unit]}"


def format_updated(value: datetime) -> str:
    return value.astimezone(timezone.utc).strftime("%Y-%m-%d %H:%M:%S UTC")


def display_lines(
    station_name: str,
    reading: NormalizedReading,
    unit: SpeedUnit = SpeedUnit.MPS,
    *,
    stale: bool = False,
) -> List[str]:
    lines = [f"=== {station_name.upper()} ===", ""]
    lines.append(f"Wind: {format_speed(reading.wind_speed_avg, unit)} @ {reading.wind_direction}° {reading.cardinal}")
    if reading.wind_gust is not None and reading.wind_gust > reading.wind_speed_avg:
        lines.append(f"Gust: {format_speed(reading.wind_gust, unit)}")
    lines.append("")

    if reading.temperature is not None:
        lines.append(f"Temp: {reading.temperature:.1f}°C")
    if reading.pressure is not None:
        lines.append(f"Pressure: {round(reading.pressure)} hPa")
    lines.append("")

    updated = f"Updated: {format_updated(reading.timestamp)}"
    lines.append(f"{updated} (stale)" if stale else updated)
    return lines


def render(station_name: str, reading: NormalizedReading, unit: Optional[SpeedUnit] = None, *, stale: bool = False) -> str:
    return "\n".join(display_lines(station_name, reading, unit or SpeedUnit.MPS, stale=stale))


__all__ = ["UNIT_LABELS", "display_lines", "format_speed", "format_updated", "render"]
