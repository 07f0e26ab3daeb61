"""
Session Controller — the façade over countdown, score, visibility and
playback.

Commands flow in (configure / start / pause / resume / toggle_pause / end /
reset / set_foreground), immutable SessionSnapshots flow out. Every owned
timer is started or stopped before a command returns, and nothing raised by
a sub-component escapes this class.

Usage:
    ctrl = SessionController(clock, intro, loop, store)
    ctrl.subscribe(render)
    ctrl.configure(0, 25, 0)
    ctrl.start()
"""

from __future__ import annotations

import logging
from typing import Any, Callable, List, Optional

from ..clock.source import ClockSource
from ..errors import InvalidConfiguration, PlaybackFailure, StoreUnavailable
from ..playback.media import MediaHandle
from ..playback.stage_machine import PlaybackStageMachine
from .countdown import CountdownTimer
from .high_score import HighScoreStore
from .score import ScoreAccumulator
from .state import Phase, SessionConfig, SessionSnapshot
from .visibility import VisibilityTracker

logger = logging.getLogger(__name__)

Listener = Callable[[SessionSnapshot], None]


class SessionController:

    def __init__(
        self,
        clock: ClockSource,
        intro: MediaHandle,
        loop: MediaHandle,
        store: HighScoreStore,
        *,
        countdown_tick_ms: float = 1000,
        score_tick_ms: float = 90,
        buffer_poll_ms: float = 16,
        loop_lookahead_seconds: float = 5.0,
        welcome_back_seconds: float = 5,
        max_buffer_polls: Optional[int] = None,
    ):
        self._clock = clock
        self._store = store
        self._config = SessionConfig()
        self._phase = Phase.IDLE
        self._playback_error: Optional[str] = None
        self._listeners: List[Listener] = []

        self._countdown = CountdownTimer(
            clock, on_tick=self._publish, on_expired=self._on_expired, period_ms=countdown_tick_ms
        )
        self._score = ScoreAccumulator(clock, on_tick=self._publish, period_ms=score_tick_ms)
        self._visibility = VisibilityTracker(
            clock, on_change=self._publish, welcome_back_ms=welcome_back_seconds * 1000
        )
        self._playback = PlaybackStageMachine(
            clock,
            intro,
            loop,
            on_stage_change=self._publish,
            on_failure=self._on_playback_failure,
            lookahead_seconds=loop_lookahead_seconds,
            poll_interval_ms=buffer_poll_ms,
            max_poll_attempts=max_buffer_polls,
        )
        self._high_score = self._read_high_score()
        self._snapshot = self._build_snapshot()

    # ------------------------------------------------------------------
    # Read side
    # ------------------------------------------------------------------

    @property
    def phase(self) -> Phase:
        return self._phase

    @property
    def config(self) -> SessionConfig:
        return self._config

    def snapshot(self) -> SessionSnapshot:
        return self._snapshot

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register for every published snapshot. Returns an unsubscribe callable."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def configure(self, hours: Any = 0, minutes: Any = 0, seconds: Any = 0) -> SessionSnapshot:
        if self._phase is not Phase.IDLE:
            logger.debug("configure ignored while %s", self._phase.value)
            return self._snapshot
        self._config = SessionConfig.from_fields(hours, minutes, seconds)
        self._countdown.reset(self._config.total_duration_seconds)
        return self._publish()

    def start(self) -> SessionSnapshot:
        if self._phase is not Phase.IDLE:
            logger.debug("start ignored while %s", self._phase.value)
            return self._snapshot
        try:
            self._countdown.start(self._config.total_duration_seconds)
        except InvalidConfiguration as e:
            logger.info("session not started: %s", e)
            return self._snapshot
        self._phase = Phase.RUNNING
        self._playback_error = None
        self._score.start()
        self._visibility.activate()
        self._playback.begin()
        logger.info("session started (%ds)", self._config.total_duration_seconds)
        return self._publish()

    def pause(self) -> SessionSnapshot:
        if self._phase is not Phase.RUNNING:
            logger.debug("pause ignored while %s", self._phase.value)
            return self._snapshot
        self._countdown.pause()
        self._score.stop()
        self._playback.pause()
        self._phase = Phase.PAUSED
        return self._publish()

    def resume(self) -> SessionSnapshot:
        if self._phase is not Phase.PAUSED:
            logger.debug("resume ignored while %s", self._phase.value)
            return self._snapshot
        self._countdown.resume()
        self._score.start()
        self._playback.resume()
        self._phase = Phase.RUNNING
        return self._publish()

    def toggle_pause(self) -> SessionSnapshot:
        if self._phase is Phase.RUNNING:
            return self.pause()
        if self._phase is Phase.PAUSED:
            return self.resume()
        return self._snapshot

    def end(self) -> SessionSnapshot:
        if self._phase not in (Phase.RUNNING, Phase.PAUSED):
            logger.debug("end ignored while %s", self._phase.value)
            return self._snapshot
        self._stop_all()
        self._phase = Phase.ENDED
        self._commit_high_score()
        logger.info("session ended: score=%d distractions=%d",
                    self._score.score, self._visibility.distraction_count)
        return self._publish()

    def reset(self) -> SessionSnapshot:
        self._stop_all()
        self._countdown.reset(self._config.total_duration_seconds)
        self._score.reset()
        self._visibility.reset()
        self._playback.reset()
        self._phase = Phase.IDLE
        self._playback_error = None
        return self._publish()

    def set_foreground(self, foreground: bool) -> SessionSnapshot:
        if self._visibility.set_foreground(foreground):
            return self._publish()
        return self._snapshot

    def report_playback_failure(self, clip: str, reason: str = "") -> SessionSnapshot:
        """A host-side play() rejection; the session keeps running."""
        self._on_playback_failure(PlaybackFailure(clip, reason))
        return self._snapshot

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _stop_all(self) -> None:
        self._countdown.stop()
        self._score.stop()
        self._visibility.deactivate()
        self._playback.halt()

    def _on_expired(self) -> None:
        # runs inside the final countdown tick; nothing is published in between
        self.end()

    def _on_playback_failure(self, error: PlaybackFailure) -> None:
        logger.warning("playback failure (non-fatal): %s", error)
        self._playback_error = str(error)
        self._publish()

    def _read_high_score(self) -> int:
        try:
            return self._store.get_high_score()
        except StoreUnavailable as e:
            logger.warning("high score unavailable, starting from 0: %s", e)
            return 0

    def _commit_high_score(self) -> None:
        score = self._score.score
        if score <= self._high_score:
            return
        self._high_score = score
        try:
            self._store.set_high_score(score)
        except StoreUnavailable as e:
            logger.warning("high score not persisted: %s", e)

    def _build_snapshot(self) -> SessionSnapshot:
        vis = self._visibility
        return SessionSnapshot(
            phase=self._phase,
            total_duration_seconds=self._config.total_duration_seconds,
            remaining_seconds=self._countdown.remaining_seconds,
            score=self._score.score,
            high_score=self._high_score,
            is_foreground=vis.is_foreground,
            distraction_count=vis.distraction_count,
            total_distraction_seconds=vis.total_distraction_seconds,
            last_distraction_seconds=vis.last_distraction_seconds,
            welcome_back=vis.welcome_back,
            playback_stage=self._playback.stage,
            playback_error=self._playback_error,
        )

    def _publish(self) -> SessionSnapshot:
        self._snapshot = self._build_snapshot()
        for listener in list(self._listeners):
            try:
                listener(self._snapshot)
            except Exception:
                logger.exception("snapshot listener failed")
        return self._snapshot
