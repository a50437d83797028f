from __future__ import annotations

from typing import Any

from ..entities import StationConfig
from .base import RetryPolicy, SourceFetcher
from .session import SessionFetcher


def build_fetcher(config: StationConfig, **kwargs: Any) -> SourceFetcher:
    """Pick the fetcher variant a station needs; kwargs go to the constructor."""
    if config.session_url:
        return SessionFetcher(**kwargs)
    return SourceFetcher(**kwargs)


__all__ = ["RetryPolicy", "SessionFetcher", "SourceFetcher", "build_fetcher"]
