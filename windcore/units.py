from __future__ import annotations

from typing import Optional

from .entities import SpeedUnit

KNOTS_TO_MPS = 0.514444
MPS_TO_KNOTS = 1.94384
KMH_PER_MPS = 3.6


def knots_to_mps(knots: float) -> float:
    return knots * KNOTS_TO_MPS


def mps_to_knots(mps: float) -> float:
    return mps / KNOTS_TO_MPS


def kmh_to_mps(kmh: float) -> float:
    return kmh / KMH_PER_MPS


def mps_to_kmh(mps: float) -> float:
    return mps * KMH_PER_MPS


def to_mps(value: Optional[float], unit: SpeedUnit) -> Optional[float]:
    if value is None:
        return None
    if unit is SpeedUnit.KNOTS:
        return knots_to_mps(value)
    if unit is SpeedUnit.KMH:
        return kmh_to_mps(value)
    return value


def from_mps(value: Optional[float], unit: SpeedUnit) -> Optional[float]:
    if value is None:
        return None
    if unit is SpeedUnit.KNOTS:
        return mps_to_knots(value)
    if unit is SpeedUnit.KMH:
        return mps_to_kmh(value)
    return value


def normalize_direction(degrees: float) -> int:
    """Round to whole degrees and reduce into [0, 360)."""
    return int(round(degrees)) % 360


__all__ = [
    "KNOTS_TO_MPS",
    "MPS_TO_KNOTS",
    "from_mps",
    "kmh_to_mps",
    "knots_to_mps",
    "mps_to_kmh",
    "mps_to_knots",
    "normalize_direction",
    "to_mps",
]
