"""Wind telemetry ingestion: fetch, parse, normalize and cache station readings."""

__version__ = "0.1.0"
