from __future__ import annotations

from typing import List

import pytest


class TimeController:
    def __init__(self, now: float = 1_700_000_100.0) -> None:
        self.now = now

    def advance(self, seconds: float) -> None:
        self.now += seconds

    def __call__(self) -> float:
        return self.now


class SleepRecorder:
    def __init__(self) -> None:
        self.calls: List[float] = []

    def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


@pytest.fixture
def clock() -> TimeController:
    return TimeController()


@pytest.fixture
def sleeps() -> SleepRecorder:
    return SleepRecorder()
