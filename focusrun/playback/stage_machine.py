"""
Playback Stage Machine — sequences the intro clip into the looping clip.

    HOME ──begin()──▶ INTRO ──(intro ended AND loop buffered)──▶ LOOP

The handoff waits on two independent conditions. The loop clip's buffer is
polled every frame from the moment the intro starts; the intro's "ended"
observer is attached once, at construction. Whichever condition is
satisfied last performs the handoff, so an intro that finishes before the
loop clip is buffered defers the stage change instead of dropping it.

Only reset() moves the stage backwards.
"""

from __future__ import annotations

import logging
from typing import Callable, Optional

from ..clock.periodic import PollTask
from ..clock.source import ClockSource
from ..errors import PlaybackFailure
from ..session.state import PlaybackStage
from .media import MediaHandle

logger = logging.getLogger(__name__)


class PlaybackStageMachine:

    def __init__(
        self,
        clock: ClockSource,
        intro: MediaHandle,
        loop: MediaHandle,
        on_stage_change: Callable[[], None],
        on_failure: Callable[[PlaybackFailure], None],
        lookahead_seconds: float = 5.0,
        poll_interval_ms: float = 16,
        max_poll_attempts: Optional[int] = None,
    ):
        self._intro = intro
        self._loop = loop
        self._on_stage_change = on_stage_change
        self._on_failure = on_failure
        self._lookahead_seconds = lookahead_seconds
        self._poll = PollTask(
            clock,
            poll_interval_ms,
            predicate=self._loop_buffered,
            on_ready=self._on_loop_ready,
            max_attempts=max_poll_attempts,
            on_exhausted=self._on_poll_exhausted,
            name="loop-buffer-poll",
        )
        self.stage = PlaybackStage.HOME
        self.intro_ended = False
        self.loop_ready = False
        self.paused = False
        self.halted = False
        intro.on_ended(self._on_intro_ended)

    @property
    def polling(self) -> bool:
        return self._poll.running

    def active_clip(self) -> Optional[MediaHandle]:
        if self.stage is PlaybackStage.INTRO:
            return self._intro
        if self.stage is PlaybackStage.LOOP:
            return self._loop
        return None

    # ── Commands ────────────────────────────────────────────────────────

    def begin(self) -> None:
        if self.stage is not PlaybackStage.HOME:
            return
        self.stage = PlaybackStage.INTRO
        self.paused = False
        self.halted = False
        self._play(self._intro, "intro")
        self._poll.start()

    def pause(self) -> None:
        self.paused = True
        clip = self.active_clip()
        if clip is not None:
            clip.pause()

    def resume(self) -> None:
        self.paused = False
        clip = self.active_clip()
        if clip is not None:
            self._play(clip, self.stage.value)

    def halt(self) -> None:
        """Session ended: stop polling and freeze the active clip."""
        self.halted = True
        self._poll.cancel()
        self.pause()

    def reset(self) -> None:
        self._poll.cancel()
        for clip in (self._intro, self._loop):
            clip.pause()
            clip.seek(0)
        self.stage = PlaybackStage.HOME
        self.intro_ended = False
        self.loop_ready = False
        self.paused = False
        self.halted = False

    # ── Conditions ──────────────────────────────────────────────────────

    def _loop_buffered(self) -> bool:
        return self._loop.current_buffered_end() >= self._lookahead_seconds

    def _on_loop_ready(self) -> None:
        self.loop_ready = True
        self._maybe_hand_off()

    def _on_intro_ended(self) -> None:
        if self.stage is not PlaybackStage.INTRO or self.halted:
            return
        self.intro_ended = True
        if not self.loop_ready:
            logger.info("intro ended before loop clip buffered; handoff deferred")
            if not self._poll.running:
                # a capped poll may have given up already
                self._poll.start()
        self._maybe_hand_off()

    def _on_poll_exhausted(self) -> None:
        self._on_failure(PlaybackFailure("loop", "buffering did not reach the lookahead window"))

    def _maybe_hand_off(self) -> None:
        if self.stage is not PlaybackStage.INTRO or self.halted:
            return
        if not (self.intro_ended and self.loop_ready):
            return
        self._poll.cancel()
        self._loop.seek(0)
        self.stage = PlaybackStage.LOOP
        if not self.paused:
            self._play(self._loop, "loop")
        self._on_stage_change()

    def _play(self, clip: MediaHandle, label: str) -> None:
        try:
            clip.play()
        except PlaybackFailure as e:
            logger.warning("%s clip failed to play: %s", label, e)
            self._on_failure(e)
