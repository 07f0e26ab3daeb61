"""Tests for distraction-episode tracking."""

from focusrun.session.visibility import VisibilityTracker


def _tracker(clock, active=True):
    changes = []
    tracker = VisibilityTracker(clock, lambda: changes.append(clock.now_ms()))
    if active:
        tracker.activate()
    return tracker, changes


class TestEpisodes:
    def test_single_episode_totals(self, clock):
        tracker, _ = _tracker(clock)
        tracker.set_foreground(False)
        clock.advance(7000)
        tracker.set_foreground(True)
        assert tracker.distraction_count == 1
        assert tracker.total_distraction_seconds == 7
        assert tracker.last_distraction_seconds == 7

    def test_counters_unchanged_while_episode_open(self, clock):
        tracker, _ = _tracker(clock)
        tracker.set_foreground(False)
        clock.advance(30_000)
        assert tracker.episode_open
        assert tracker.distraction_count == 0
        assert tracker.total_distraction_seconds == 0

    def test_duration_rounds_half_up(self, clock):
        tracker, _ = _tracker(clock)
        tracker.set_foreground(False)
        clock.advance(2500)
        tracker.set_foreground(True)
        tracker.set_foreground(False)
        clock.advance(1499)
        tracker.set_foreground(True)
        assert tracker.total_distraction_seconds == 3 + 1
        assert tracker.last_distraction_seconds == 1

    def test_redundant_signals_are_no_ops(self, clock):
        tracker, _ = _tracker(clock)
        assert tracker.set_foreground(True) is False
        tracker.set_foreground(False)
        clock.advance(2000)
        assert tracker.set_foreground(False) is False  # must not restart the episode
        clock.advance(1000)
        tracker.set_foreground(True)
        assert tracker.set_foreground(True) is False
        assert tracker.distraction_count == 1
        assert tracker.total_distraction_seconds == 3

    def test_inactive_tracker_mirrors_foreground_only(self, clock):
        tracker, _ = _tracker(clock, active=False)
        tracker.set_foreground(False)
        clock.advance(5000)
        tracker.set_foreground(True)
        assert tracker.is_foreground
        assert tracker.distraction_count == 0

    def test_activate_while_background_opens_episode(self, clock):
        tracker, _ = _tracker(clock, active=False)
        tracker.set_foreground(False)
        clock.advance(10_000)
        tracker.activate()
        clock.advance(4000)
        tracker.set_foreground(True)
        assert tracker.total_distraction_seconds == 4

    def test_deactivate_discards_open_episode(self, clock):
        tracker, _ = _tracker(clock)
        tracker.set_foreground(False)
        clock.advance(3000)
        tracker.deactivate()
        tracker.set_foreground(True)
        assert tracker.distraction_count == 0
        assert not tracker.episode_open


class TestWelcomeBack:
    def test_notice_dismissed_after_five_seconds(self, clock):
        tracker, changes = _tracker(clock)
        tracker.set_foreground(False)
        clock.advance(1000)
        tracker.set_foreground(True)
        assert tracker.welcome_back
        clock.advance(4999)
        assert tracker.welcome_back
        clock.advance(1)
        assert not tracker.welcome_back
        assert changes == [6000]

    def test_new_episode_restarts_display_window(self, clock):
        tracker, changes = _tracker(clock)
        tracker.set_foreground(False)
        clock.advance(1000)
        tracker.set_foreground(True)      # notice until 6000
        clock.advance(3000)
        tracker.set_foreground(False)
        clock.advance(1000)
        tracker.set_foreground(True)      # notice until 10000
        clock.advance(3000)
        assert tracker.welcome_back
        clock.advance(2000)
        assert not tracker.welcome_back
        assert changes == [10_000]

    def test_reset_clears_everything(self, clock):
        tracker, _ = _tracker(clock)
        tracker.set_foreground(False)
        clock.advance(2000)
        tracker.set_foreground(True)
        tracker.reset()
        assert tracker.distraction_count == 0
        assert tracker.total_distraction_seconds == 0
        assert tracker.last_distraction_seconds == 0
        assert not tracker.welcome_back
        assert not tracker.active
        assert clock.pending() == 0
