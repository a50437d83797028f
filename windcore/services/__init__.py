from .aggregator import RegionAggregator
from .collector import StationCollector

__all__ = ["RegionAggregator", "StationCollector"]
