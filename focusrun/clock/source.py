"""
Clock Source — the single timing primitive the engine depends on.

Every timer in the engine is built on "call this after N ms, give me a
cancellable handle". Two implementations:

    AsyncioClock  — the running asyncio loop (production, API server)
    ManualClock   — virtual time advanced explicitly (tests, offline simulation)
"""

from __future__ import annotations

import asyncio
import heapq
import itertools
from typing import Callable, List, Optional, Protocol, Tuple


class Handle(Protocol):
    def cancel(self) -> None: ...


class ClockSource(Protocol):
    def now_ms(self) -> float: ...

    def call_later(self, delay_ms: float, callback: Callable[[], None]) -> Handle: ...


class AsyncioClock:
    """Clock over an asyncio event loop. asyncio.TimerHandle.cancel() is idempotent."""

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None):
        self._loop = loop or asyncio.get_running_loop()

    def now_ms(self) -> float:
        return self._loop.time() * 1000.0

    def call_later(self, delay_ms: float, callback: Callable[[], None]) -> asyncio.TimerHandle:
        return self._loop.call_later(max(0.0, delay_ms) / 1000.0, callback)


class _ManualTimer:
    __slots__ = ("callback", "cancelled")

    def __init__(self, callback: Callable[[], None]):
        self.callback = callback
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class ManualClock:
    """
    Deterministic virtual clock.

    Usage:
        clock = ManualClock()
        clock.call_later(1000, cb)
        clock.advance(1000)        # cb fires with now_ms() == 1000
    """

    def __init__(self, start_ms: float = 0):
        self._now = start_ms
        self._seq = itertools.count()
        self._queue: List[Tuple[float, int, _ManualTimer]] = []

    def now_ms(self) -> float:
        return self._now

    def call_later(self, delay_ms: float, callback: Callable[[], None]) -> _ManualTimer:
        timer = _ManualTimer(callback)
        heapq.heappush(self._queue, (self._now + max(0, delay_ms), next(self._seq), timer))
        return timer

    def advance(self, ms: float) -> None:
        """Move time forward, firing every due callback in deadline order."""
        target = self._now + ms
        while self._queue and self._queue[0][0] <= target:
            due, _, timer = heapq.heappop(self._queue)
            if timer.cancelled:
                continue
            self._now = due
            timer.callback()
        self._now = target

    def advance_seconds(self, seconds: float) -> None:
        self.advance(seconds * 1000)

    def pending(self) -> int:
        """Number of scheduled, not-yet-cancelled callbacks."""
        return sum(1 for _, _, t in self._queue if not t.cancelled)
