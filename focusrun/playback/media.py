"""
Media handles — the only surface the playback stage machine touches.

    SimulatedMedia — in-process clip with a duration and a buffer level,
                     optionally driven by a ClockSource (tests, simulator)
    RemoteMedia    — a clip that lives in the browser host; the engine's
                     commands are recorded for the host to apply, and the
                     host reports buffering / ended / failures back.
"""

from __future__ import annotations

from typing import Any, Callable, Dict, List, Optional, Protocol

from ..clock.source import ClockSource, Handle
from ..errors import PlaybackFailure


class MediaHandle(Protocol):
    def play(self) -> None: ...

    def pause(self) -> None: ...

    def seek(self, position: float) -> None: ...

    def current_buffered_end(self) -> float: ...

    def on_ended(self, callback: Callable[[], None]) -> None: ...


class SimulatedMedia:

    def __init__(
        self,
        name: str,
        duration_seconds: float,
        loop: bool = False,
        clock: Optional[ClockSource] = None,
        buffered_seconds: float = 0.0,
    ):
        self.name = name
        self.duration_seconds = duration_seconds
        self.loop = loop
        self.playing = False
        self.fail_next_play = False
        self.play_calls = 0
        self._clock = clock
        self._position = 0.0
        self._started_at = 0.0
        self._buffered = min(duration_seconds, buffered_seconds)
        self._end_handle: Optional[Handle] = None
        self._ended_callbacks: List[Callable[[], None]] = []

    @property
    def position(self) -> float:
        if self.playing and self._clock is not None:
            played = (self._clock.now_ms() - self._started_at) / 1000.0
            return min(self.duration_seconds, self._position + played)
        return self._position

    # ── MediaHandle ─────────────────────────────────────────────────────

    def play(self) -> None:
        self.play_calls += 1
        if self.fail_next_play:
            self.fail_next_play = False
            raise PlaybackFailure(self.name, "play() rejected")
        if self.playing:
            return
        if self._position >= self.duration_seconds:
            self._position = 0.0
        self.playing = True
        self._mark_started()
        self._schedule_end()

    def pause(self) -> None:
        if not self.playing:
            return
        self._position = self.position
        self.playing = False
        self._cancel_end()

    def seek(self, position: float) -> None:
        self._position = max(0.0, min(self.duration_seconds, position))
        if self.playing:
            self._mark_started()
            self._cancel_end()
            self._schedule_end()

    def current_buffered_end(self) -> float:
        return self._buffered

    def on_ended(self, callback: Callable[[], None]) -> None:
        self._ended_callbacks.append(callback)

    # ── Test / simulation controls ──────────────────────────────────────

    def buffer_to(self, seconds: float) -> None:
        self._buffered = max(self._buffered, min(self.duration_seconds, seconds))

    def finish(self) -> None:
        """Play through to the end right now."""
        self._cancel_end()
        self._reach_end()

    # ------------------------------------------------------------------

    def _mark_started(self) -> None:
        if self._clock is not None:
            self._started_at = self._clock.now_ms()

    def _schedule_end(self) -> None:
        if self._clock is None:
            return
        remaining_ms = (self.duration_seconds - self._position) * 1000.0
        self._end_handle = self._clock.call_later(remaining_ms, self._reach_end)

    def _cancel_end(self) -> None:
        if self._end_handle is not None:
            self._end_handle.cancel()
            self._end_handle = None

    def _reach_end(self) -> None:
        self._end_handle = None
        if self.loop:
            # looping clips wrap around and never report "ended"
            self._position = 0.0
            if self.playing:
                self._mark_started()
                self._schedule_end()
            return
        self._position = self.duration_seconds
        self.playing = False
        for cb in list(self._ended_callbacks):
            cb()


class RemoteMedia:

    def __init__(self, name: str):
        self.name = name
        self.playing = False
        self.position = 0.0
        self.buffered_end = 0.0
        self.command_seq = 0
        self._ended_callbacks: List[Callable[[], None]] = []

    # ── MediaHandle ─────────────────────────────────────────────────────

    def play(self) -> None:
        self.playing = True
        self.command_seq += 1

    def pause(self) -> None:
        self.playing = False
        self.command_seq += 1

    def seek(self, position: float) -> None:
        self.position = max(0.0, position)
        self.command_seq += 1

    def current_buffered_end(self) -> float:
        return self.buffered_end

    def on_ended(self, callback: Callable[[], None]) -> None:
        self._ended_callbacks.append(callback)

    # ── Host reports ────────────────────────────────────────────────────

    def report_buffered(self, seconds: float) -> None:
        self.buffered_end = max(0.0, float(seconds))

    def report_ended(self) -> None:
        self.playing = False
        for cb in list(self._ended_callbacks):
            cb()

    def directive(self) -> Dict[str, Any]:
        """What the host should be doing with this clip right now."""
        return {
            "playing": self.playing,
            "position": self.position,
            "command_seq": self.command_seq,
        }
