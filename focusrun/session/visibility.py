"""
Visibility Tracker — turns the host's foreground/background signal into
distraction episodes.

An episode opens on foreground → background and is folded into the totals
on background → foreground. Only completed episodes change the counters.
Tracking is active while a session is running or paused; the controller
switches it on and off with activate()/deactivate().
"""

from __future__ import annotations

import logging
from typing import Callable, Optional

from ..clock.source import ClockSource, Handle
from .state import round_half_up

logger = logging.getLogger(__name__)


class VisibilityTracker:

    def __init__(
        self,
        clock: ClockSource,
        on_change: Callable[[], None],
        welcome_back_ms: float = 5000,
    ):
        self._clock = clock
        self._on_change = on_change
        self._welcome_back_ms = welcome_back_ms
        self._episode_started_at: Optional[float] = None
        self._dismiss_handle: Optional[Handle] = None
        self.active = False
        self.is_foreground = True
        self.distraction_count = 0
        self.total_distraction_seconds = 0
        self.last_distraction_seconds = 0
        self.welcome_back = False

    @property
    def episode_open(self) -> bool:
        return self._episode_started_at is not None

    def activate(self) -> None:
        self.active = True
        if not self.is_foreground and self._episode_started_at is None:
            # host was already in the background when tracking began
            self._episode_started_at = self._clock.now_ms()

    def deactivate(self) -> None:
        """Stop tracking; an open episode is discarded, never counted."""
        self.active = False
        self._episode_started_at = None

    def set_foreground(self, foreground: bool) -> bool:
        """Apply a host signal. Returns False for redundant signals."""
        foreground = bool(foreground)
        if foreground == self.is_foreground:
            return False
        self.is_foreground = foreground
        if not foreground:
            if self.active:
                self._episode_started_at = self._clock.now_ms()
        elif self._episode_started_at is not None:
            self._close_episode()
        return True

    def reset(self) -> None:
        self.deactivate()
        self._cancel_dismiss()
        self.distraction_count = 0
        self.total_distraction_seconds = 0
        self.last_distraction_seconds = 0
        self.welcome_back = False

    # ------------------------------------------------------------------

    def _close_episode(self) -> None:
        elapsed_ms = self._clock.now_ms() - self._episode_started_at
        duration = round_half_up(elapsed_ms / 1000.0)
        self._episode_started_at = None
        self.distraction_count += 1
        self.total_distraction_seconds += duration
        self.last_distraction_seconds = duration
        logger.info("distraction #%d lasted %ds", self.distraction_count, duration)
        self._show_welcome_back()

    def _show_welcome_back(self) -> None:
        self._cancel_dismiss()
        self.welcome_back = True
        self._dismiss_handle = self._clock.call_later(self._welcome_back_ms, self._dismiss)

    def _dismiss(self) -> None:
        self._dismiss_handle = None
        self.welcome_back = False
        self._on_change()

    def _cancel_dismiss(self) -> None:
        if self._dismiss_handle is not None:
            self._dismiss_handle.cancel()
            self._dismiss_handle = None
