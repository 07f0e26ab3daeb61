"""
Owned periodic tasks on top of a ClockSource.

A PeriodicTask holds at most one pending handle. start() on a running task
is a no-op and cancel() on a stopped task is a no-op, so pause/resume
sequences can never leave two overlapping tick streams behind.
"""

from __future__ import annotations

import logging
from typing import Callable, Optional

from ..errors import TimerReentrancy
from .source import ClockSource, Handle

logger = logging.getLogger(__name__)


class PeriodicTask:

    def __init__(
        self,
        clock: ClockSource,
        period_ms: float,
        callback: Callable[[], None],
        name: str = "periodic",
    ):
        if period_ms <= 0:
            raise ValueError(f"{name}: period must be positive, got {period_ms}")
        self.name = name
        self.period_ms = period_ms
        self._clock = clock
        self._callback = callback
        self._handle: Optional[Handle] = None
        self._running = False
        self._next_due = 0.0
        self.ticks = 0

    @property
    def running(self) -> bool:
        return self._running

    def start(self) -> bool:
        """Begin ticking one period from now. Returns False if already running."""
        if self._running:
            logger.debug("%s already running, start ignored", self.name)
            return False
        self._running = True
        self._next_due = self._clock.now_ms() + self.period_ms
        self._arm()
        return True

    def cancel(self) -> bool:
        """Stop ticking. Returns False if the task was not running."""
        was_running = self._running
        self._running = False
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
        return was_running

    # ------------------------------------------------------------------

    def _arm(self) -> None:
        if self._handle is not None:
            raise TimerReentrancy(self.name)
        # anchored to the schedule, not to when the previous tick ran
        delay = max(0.0, self._next_due - self._clock.now_ms())
        self._handle = self._clock.call_later(delay, self._fire)

    def _fire(self) -> None:
        self._handle = None
        if not self._running:
            return
        self.ticks += 1
        self._next_due += self.period_ms
        try:
            self._callback()
        finally:
            # the callback may have cancelled or restarted us
            if self._running and self._handle is None:
                self._arm()


class PollTask:
    """
    Readiness poll: checks *predicate* immediately on start() and then every
    interval until it holds, at which point the poll stops and *on_ready*
    runs once. With *max_attempts* set, the poll gives up after that many
    failed checks and calls *on_exhausted*.
    """

    def __init__(
        self,
        clock: ClockSource,
        interval_ms: float,
        predicate: Callable[[], bool],
        on_ready: Callable[[], None],
        max_attempts: Optional[int] = None,
        on_exhausted: Optional[Callable[[], None]] = None,
        name: str = "poll",
    ):
        self.name = name
        self._predicate = predicate
        self._on_ready = on_ready
        self._on_exhausted = on_exhausted
        self._max_attempts = max_attempts or None
        self._task = PeriodicTask(clock, interval_ms, self._check, name=name)
        self.attempts = 0

    @property
    def running(self) -> bool:
        return self._task.running

    def start(self) -> bool:
        if self._task.running:
            return False
        self.attempts = 0
        if self._check_once():
            return True
        self._task.start()
        return True

    def cancel(self) -> bool:
        return self._task.cancel()

    def _check(self) -> None:
        if self._check_once():
            return
        if self._max_attempts is not None and self.attempts >= self._max_attempts:
            self._task.cancel()
            logger.warning("%s gave up after %d attempts", self.name, self.attempts)
            if self._on_exhausted:
                self._on_exhausted()

    def _check_once(self) -> bool:
        self.attempts += 1
        if not self._predicate():
            return False
        self._task.cancel()
        self._on_ready()
        return True
