"""
Countdown Timer — whole-second decrementing remaining time with a single
terminal "expired" event.
"""

from __future__ import annotations

from typing import Callable, Optional

from ..clock.periodic import PeriodicTask
from ..clock.source import ClockSource
from ..errors import InvalidConfiguration


class CountdownTimer:

    def __init__(
        self,
        clock: ClockSource,
        on_tick: Callable[[], None],
        on_expired: Callable[[], None],
        period_ms: float = 1000,
    ):
        self._on_tick = on_tick
        self._on_expired = on_expired
        self._task = PeriodicTask(clock, period_ms, self._tick, name="countdown")
        self.total_seconds = 0
        self.remaining_seconds = 0
        self.expired = False

    @property
    def running(self) -> bool:
        return self._task.running

    def start(self, duration_seconds: int) -> None:
        if duration_seconds <= 0:
            raise InvalidConfiguration(f"duration must be positive, got {duration_seconds}")
        self._task.cancel()
        self.total_seconds = duration_seconds
        self.remaining_seconds = duration_seconds
        self.expired = False
        self._task.start()

    def pause(self) -> bool:
        return self._task.cancel()

    def resume(self) -> bool:
        if self.expired or self.remaining_seconds <= 0:
            return False
        return self._task.start()

    def stop(self) -> None:
        self._task.cancel()

    def reset(self, total_seconds: Optional[int] = None) -> None:
        """Back to the pre-start value with nothing scheduled."""
        self._task.cancel()
        if total_seconds is not None:
            self.total_seconds = total_seconds
        self.remaining_seconds = self.total_seconds
        self.expired = False

    def _tick(self) -> None:
        if self.remaining_seconds <= 0:
            return
        self.remaining_seconds -= 1
        if self.remaining_seconds == 0:
            self._task.cancel()
            self.expired = True
            self._on_expired()
        else:
            self._on_tick()
