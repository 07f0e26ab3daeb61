"""
Score Accumulator — +1 per tick at a fixed sub-second cadence.
"""

from __future__ import annotations

from typing import Callable

from ..clock.periodic import PeriodicTask
from ..clock.source import ClockSource


class ScoreAccumulator:

    def __init__(self, clock: ClockSource, on_tick: Callable[[], None], period_ms: float = 90):
        self._on_tick = on_tick
        self._task = PeriodicTask(clock, period_ms, self._tick, name="score")
        self.score = 0

    @property
    def running(self) -> bool:
        return self._task.running

    def start(self) -> bool:
        return self._task.start()

    def stop(self) -> bool:
        return self._task.cancel()

    def reset(self) -> None:
        self._task.cancel()
        self.score = 0

    def _tick(self) -> None:
        self.score += 1
        self._on_tick()
