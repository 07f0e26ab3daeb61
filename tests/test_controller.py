"""Tests for the SessionController — lifecycle, lockstep timers and invariants."""

import pytest

from focusrun.errors import StoreUnavailable
from focusrun.session.controller import SessionController
from focusrun.session.high_score import InMemoryHighScoreStore
from focusrun.session.state import Phase, PlaybackStage


class _BrokenStore:
    def get_high_score(self):
        raise StoreUnavailable("disk gone")

    def set_high_score(self, value):
        raise StoreUnavailable("disk gone")


def _record(controller):
    snapshots = []
    controller.subscribe(snapshots.append)
    return snapshots


class TestConfigureAndStart:
    @pytest.mark.parametrize("h,m,s", [(0, 0, 1), (0, 25, 0), (1, 30, 15), (99, 59, 59)])
    def test_start_sets_remaining_to_total(self, controller, h, m, s):
        controller.configure(h, m, s)
        snap = controller.start()
        assert snap.phase is Phase.RUNNING
        assert snap.remaining_seconds == h * 3600 + m * 60 + s

    def test_zero_duration_stays_idle(self, controller, clock):
        controller.configure(0, 0, 0)
        snap = controller.start()
        assert snap.phase is Phase.IDLE
        assert snap.playback_stage is PlaybackStage.HOME
        assert clock.pending() == 0

    def test_fields_clamped_independently(self, controller):
        snap = controller.configure(150, 75, -4)
        assert snap.total_duration_seconds == 99 * 3600 + 59 * 60

    def test_non_numeric_fields_count_as_zero(self, controller):
        snap = controller.configure("", None, "30")
        assert snap.total_duration_seconds == 30

    def test_configure_ignored_once_started(self, controller):
        controller.configure(0, 1, 0)
        controller.start()
        snap = controller.configure(0, 5, 0)
        assert snap.total_duration_seconds == 60

    def test_start_begins_intro(self, controller, intro):
        controller.configure(0, 1, 0)
        snap = controller.start()
        assert snap.playback_stage is PlaybackStage.INTRO
        assert intro.playing


class TestPauseResume:
    def test_pause_freezes_countdown_and_score(self, controller, clock):
        controller.configure(0, 1, 0)
        controller.start()
        clock.advance(2000)
        paused = controller.pause()
        clock.advance(30_000)
        snap = controller.snapshot()
        assert snap.phase is Phase.PAUSED
        assert snap.score == paused.score
        assert snap.remaining_seconds == paused.remaining_seconds == 58

    def test_no_score_tick_published_while_paused(self, controller, clock):
        controller.configure(0, 1, 0)
        controller.start()
        clock.advance(1000)
        controller.pause()
        snapshots = _record(controller)
        clock.advance(20_000)
        assert snapshots == []

    def test_pause_resume_storm_keeps_one_stream_per_timer(self, controller, clock):
        controller.configure(0, 10, 0)
        controller.start()
        for _ in range(20):
            controller.pause()
            controller.pause()
            controller.resume()
            controller.resume()
            controller.toggle_pause()
            controller.toggle_pause()
        # countdown + score + loop-buffer poll
        assert clock.pending() == 3
        before = controller.snapshot().remaining_seconds
        clock.advance(3000)
        assert controller.snapshot().remaining_seconds == before - 3

    def test_pause_pauses_active_clip(self, controller, intro):
        controller.configure(0, 1, 0)
        controller.start()
        controller.pause()
        assert not intro.playing
        controller.resume()
        assert intro.playing

    def test_resume_only_from_paused(self, controller, clock):
        controller.configure(0, 1, 0)
        snap = controller.resume()
        assert snap.phase is Phase.IDLE
        assert clock.pending() == 0

    def test_score_accumulates_only_while_running(self, controller, clock):
        controller.configure(0, 1, 0)
        controller.start()
        clock.advance(900)
        assert controller.snapshot().score == 10
        controller.pause()
        clock.advance(5000)
        controller.resume()
        clock.advance(900)
        assert controller.snapshot().score == 20


class TestExpiry:
    def test_end_to_end_five_second_session(self, clock, intro, loop):
        store = InMemoryHighScoreStore(initial=10)
        controller = SessionController(clock, intro, loop, store, score_tick_ms=90)
        controller.configure(0, 0, 5)
        controller.start()
        clock.advance(5000)
        snap = controller.snapshot()
        assert snap.phase is Phase.ENDED
        assert snap.remaining_seconds == 0
        assert snap.score == 55
        assert snap.high_score == 55
        assert store.value == 55
        assert clock.pending() == 0

    def test_zero_remaining_never_observed_while_running(self, controller, clock):
        snapshots = _record(controller)
        controller.configure(0, 0, 3)
        controller.start()
        clock.advance(10_000)
        assert snapshots
        assert not any(
            s.remaining_seconds == 0 and s.phase is Phase.RUNNING for s in snapshots
        )
        assert snapshots[-1].phase is Phase.ENDED

    def test_high_score_not_lowered(self, clock, intro, loop):
        store = InMemoryHighScoreStore(initial=1000)
        controller = SessionController(clock, intro, loop, store)
        controller.configure(0, 0, 2)
        controller.start()
        clock.advance(2000)
        assert controller.snapshot().high_score == 1000
        assert store.writes == 0

    def test_manual_end_commits_once(self, controller, clock, store):
        controller.configure(0, 1, 0)
        controller.start()
        clock.advance(900)
        controller.end()
        controller.end()
        assert store.writes == 1
        assert store.value == 10
        assert controller.phase is Phase.ENDED

    def test_end_from_paused(self, controller, clock, intro):
        controller.configure(0, 1, 0)
        controller.start()
        controller.pause()
        snap = controller.end()
        assert snap.phase is Phase.ENDED
        assert not intro.playing
        assert clock.pending() == 0

    def test_commands_after_end_are_ignored(self, controller, clock):
        controller.configure(0, 0, 1)
        controller.start()
        clock.advance(1000)
        for command in (controller.pause, controller.resume, controller.toggle_pause, controller.start):
            assert command().phase is Phase.ENDED
        assert clock.pending() == 0


class TestDistractions:
    def test_seven_second_episode_while_running(self, controller, clock):
        controller.configure(0, 5, 0)
        controller.start()
        controller.set_foreground(False)
        clock.advance(7000)
        snap = controller.set_foreground(True)
        assert snap.distraction_count == 1
        assert snap.total_distraction_seconds == 7
        assert snap.last_distraction_seconds == 7

    def test_seven_second_episode_while_paused(self, controller, clock):
        controller.configure(0, 5, 0)
        controller.start()
        controller.pause()
        controller.set_foreground(False)
        clock.advance(7000)
        snap = controller.set_foreground(True)
        assert snap.phase is Phase.PAUSED
        assert snap.distraction_count == 1
        assert snap.total_distraction_seconds == 7
        assert snap.last_distraction_seconds == 7

    def test_two_episodes(self, controller, clock):
        controller.configure(0, 5, 0)
        controller.start()
        controller.set_foreground(False)
        clock.advance(3000)
        controller.set_foreground(True)
        clock.advance(1000)
        controller.set_foreground(False)
        clock.advance(2000)
        snap = controller.set_foreground(True)
        assert snap.distraction_count == 2
        assert snap.total_distraction_seconds == 5
        assert snap.last_distraction_seconds == 2

    def test_not_tracked_while_idle_or_ended(self, controller, clock):
        controller.set_foreground(False)
        clock.advance(4000)
        controller.set_foreground(True)
        assert controller.snapshot().distraction_count == 0

        controller.configure(0, 0, 2)
        controller.start()
        clock.advance(2000)
        controller.set_foreground(False)
        clock.advance(4000)
        snap = controller.set_foreground(True)
        assert snap.phase is Phase.ENDED
        assert snap.distraction_count == 0
        assert snap.is_foreground

    def test_episode_open_at_end_is_discarded(self, controller, clock):
        controller.configure(0, 0, 5)
        controller.start()
        clock.advance(2000)
        controller.set_foreground(False)
        clock.advance(3000)
        controller.set_foreground(True)
        assert controller.snapshot().distraction_count == 0

    def test_welcome_back_notice_published_and_dismissed(self, controller, clock):
        controller.configure(0, 5, 0)
        controller.start()
        controller.set_foreground(False)
        clock.advance(1000)
        assert controller.set_foreground(True).welcome_back
        clock.advance(5000)
        assert not controller.snapshot().welcome_back

    def test_focus_percentage(self, controller, clock):
        controller.configure(0, 1, 0)
        controller.start()
        assert controller.snapshot().focus_percentage == 100
        controller.set_foreground(False)
        clock.advance(5000)
        controller.set_foreground(True)
        clock.advance(5000)
        snap = controller.snapshot()
        assert snap.elapsed_seconds == 10
        assert snap.focus_percentage == 50


class TestPlaybackThroughController:
    def test_intro_to_loop_handoff_published(self, controller, clock, intro, loop):
        snapshots = _record(controller)
        controller.configure(0, 1, 0)
        controller.start()
        loop.buffer_to(6.0)
        clock.advance(16)
        intro.finish()
        assert controller.snapshot().playback_stage is PlaybackStage.LOOP
        stages = [s.playback_stage for s in snapshots]
        assert stages.index(PlaybackStage.LOOP) > stages.index(PlaybackStage.INTRO)

    def test_play_failure_is_non_fatal(self, controller, clock, intro):
        intro.fail_next_play = True
        controller.configure(0, 0, 3)
        snap = controller.start()
        assert snap.phase is Phase.RUNNING
        assert snap.playback_error == "intro: play() rejected"
        clock.advance(1000)
        assert controller.snapshot().remaining_seconds == 2
        assert controller.snapshot().score > 0

    def test_reported_host_failure_recorded(self, controller):
        controller.configure(0, 1, 0)
        controller.start()
        snap = controller.report_playback_failure("loop", "NotAllowedError")
        assert snap.playback_error == "loop: NotAllowedError"
        assert snap.phase is Phase.RUNNING


class TestReset:
    def test_reset_after_activity_zeroes_everything(self, controller, clock, intro, loop):
        controller.configure(0, 2, 0)
        controller.start()
        clock.advance(3000)
        controller.set_foreground(False)
        clock.advance(2000)
        controller.set_foreground(True)
        loop.buffer_to(10.0)
        intro.finish()
        controller.pause()

        snap = controller.reset()
        assert snap.phase is Phase.IDLE
        assert snap.score == 0
        assert snap.distraction_count == 0
        assert snap.total_distraction_seconds == 0
        assert snap.last_distraction_seconds == 0
        assert snap.playback_stage is PlaybackStage.HOME
        assert snap.remaining_seconds == 120
        assert intro.position == 0.0
        assert loop.position == 0.0
        assert clock.pending() == 0

    def test_reset_after_end_allows_new_session(self, controller, clock):
        controller.configure(0, 0, 2)
        controller.start()
        clock.advance(2000)
        controller.reset()
        snap = controller.start()
        assert snap.phase is Phase.RUNNING
        assert snap.remaining_seconds == 2
        assert snap.score == 0


class TestBoundary:
    def test_unreadable_store_defaults_to_zero(self, clock, intro, loop):
        controller = SessionController(clock, intro, loop, _BrokenStore())
        assert controller.snapshot().high_score == 0

    def test_unwritable_store_does_not_break_end(self, clock, intro, loop):
        controller = SessionController(clock, intro, loop, _BrokenStore())
        controller.configure(0, 0, 1)
        controller.start()
        clock.advance(1000)
        snap = controller.snapshot()
        assert snap.phase is Phase.ENDED
        assert snap.high_score == snap.score == 11

    def test_failing_listener_does_not_break_engine(self, controller, clock):
        def bad_listener(snapshot):
            raise RuntimeError("render failed")

        controller.subscribe(bad_listener)
        controller.configure(0, 0, 2)
        controller.start()
        clock.advance(2000)
        assert controller.phase is Phase.ENDED

    def test_unsubscribe(self, controller):
        snapshots = []
        unsubscribe = controller.subscribe(snapshots.append)
        controller.configure(0, 0, 5)
        unsubscribe()
        unsubscribe()
        controller.configure(0, 0, 6)
        assert len(snapshots) == 1
