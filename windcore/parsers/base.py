from __future__ import annotations

import logging
import re
import time
from datetime import datetime, timezone
from typing import Optional

from ..entities import ReadingCandidate, SpeedUnit
from ..errors import ParseError
from ..outcomes import ParseFailure, ParseOutcome, ParseSuccess

_NUMBER = re.compile(r"-?\d+(?:\.\d+)?")


class SourceParser:
    """Turn one upstream payload into a :class:`ReadingCandidate`.

    Subclasses implement ``_parse`` and raise :class:`ParseError` for shape
    problems; ``parse`` never raises and always reports its duration.
    """

    name = "base"
    speed_unit = SpeedUnit.MPS

    def __init__(self, source_id: str) -> None:
        self.source_id = source_id
        self._log = logging.getLogger(self.__class__.__name__)

    def parse(self, raw: str) -> ParseOutcome:
        started = time.perf_counter()
        try:
            candidate = self._parse(raw)
        except ParseError as exc:
            self._log.error("%s: parse failed: %s", self.source_id, exc)
            return ParseFailure(str(exc), _elapsed_ms(started))
        except (ValueError, TypeError, KeyError, IndexError, AttributeError, OverflowError, OSError) as exc:
            self._log.error("%s: malformed payload: %s", self.source_id, exc)
            return ParseFailure(f"malformed payload: {exc}", _elapsed_ms(started))
        duration = _elapsed_ms(started)
        self._log.debug("%s: parsed in %.2fms: %s", self.source_id, duration, candidate)
        return ParseSuccess(candidate, duration)

    def apply_supplement(self, candidate: ReadingCandidate, raw: str) -> ReadingCandidate:
        """Merge an auxiliary payload into a parsed reading; no-op by default."""
        return candidate

    def _parse(self, raw: str) -> ReadingCandidate:  # pragma: no cover - abstract
        raise NotImplementedError


def first_number(text: Optional[str]) -> Optional[float]:
    """Leading numeric token of a cell such as ``"15.7 Knots"``."""
    if not text:
        return None
    match = _NUMBER.search(text)
    if not match:
        return None
    return float(match.group(0))


def from_epoch(value: float) -> datetime:
    # Some upstreams report milliseconds.
    if value > 1e11:
        value = value / 1000.0
    return datetime.fromtimestamp(value, tz=timezone.utc)


def _elapsed_ms(started: float) -> float:
    return (time.perf_counter() - started) * 1000.0


__all__ = ["SourceParser", "first_number", "from_epoch"]
