"""
Offline session simulator — runs complete sessions on virtual time with
randomly drawn distraction episodes, so engine behaviour can be inspected
without a browser or a running server.

Usage:
    from focusrun.simulation import simulate_sessions
    report = simulate_sessions(runs=200, duration_seconds=300, seed=7)
    report.summary["score"]["mean"]
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List

import numpy as np

from .clock.source import ManualClock
from .playback.media import SimulatedMedia
from .session.controller import SessionController
from .session.high_score import InMemoryHighScoreStore
from .session.state import Phase, PlaybackStage


@dataclass
class SessionResult:
    score: int
    high_score: int
    distraction_count: int
    total_distraction_seconds: int
    focus_percentage: int
    reached_loop: bool


@dataclass
class SimulationReport:
    results: List[SessionResult] = field(default_factory=list)
    summary: Dict[str, Dict[str, float]] = field(default_factory=dict)

    @property
    def best_score(self) -> int:
        return max((r.high_score for r in self.results), default=0)


def _draw_episodes(
    rng: np.random.Generator,
    duration_seconds: int,
    distractions_per_minute: float,
    mean_away_seconds: float,
) -> List[tuple]:
    """Non-overlapping (leave_ms, return_ms) pairs inside the session window."""
    count = rng.poisson(distractions_per_minute * duration_seconds / 60.0)
    starts = np.sort(rng.uniform(0, duration_seconds * 1000, size=count))
    aways = rng.exponential(mean_away_seconds * 1000, size=count)
    episodes = []
    free_from = 0.0
    for start, away in zip(starts, aways):
        if start < free_from:
            continue
        end = start + max(1.0, away)
        episodes.append((float(start), float(end)))
        free_from = end
    return episodes


def run_session(
    rng: np.random.Generator,
    duration_seconds: int,
    previous_best: int = 0,
    distractions_per_minute: float = 0.5,
    mean_away_seconds: float = 8.0,
    score_tick_ms: float = 90,
    intro_seconds: float = 3.0,
    loop_buffer_delay_ms: float = 1500,
) -> SessionResult:
    clock = ManualClock()
    intro = SimulatedMedia("intro", intro_seconds, clock=clock, buffered_seconds=intro_seconds)
    loop = SimulatedMedia("loop", 10.0, loop=True, clock=clock)
    clock.call_later(loop_buffer_delay_ms, lambda: loop.buffer_to(loop.duration_seconds))

    controller = SessionController(
        clock, intro, loop, InMemoryHighScoreStore(previous_best), score_tick_ms=score_tick_ms
    )
    hours, rest = divmod(duration_seconds, 3600)
    minutes, seconds = divmod(rest, 60)
    controller.configure(hours, minutes, seconds)

    for leave_ms, return_ms in _draw_episodes(rng, duration_seconds, distractions_per_minute, mean_away_seconds):
        clock.call_later(leave_ms, lambda: controller.set_foreground(False))
        clock.call_later(return_ms, lambda: controller.set_foreground(True))

    controller.start()
    clock.advance_seconds(duration_seconds)
    snap = controller.snapshot()
    if snap.phase is not Phase.ENDED:
        raise RuntimeError(f"session did not end on time (phase={snap.phase.value})")
    controller.reset()

    return SessionResult(
        score=snap.score,
        high_score=snap.high_score,
        distraction_count=snap.distraction_count,
        total_distraction_seconds=snap.total_distraction_seconds,
        focus_percentage=snap.focus_percentage,
        reached_loop=snap.playback_stage is PlaybackStage.LOOP,
    )


def _describe(values: np.ndarray) -> Dict[str, float]:
    return {
        "mean": float(np.mean(values)),
        "p50": float(np.percentile(values, 50)),
        "p90": float(np.percentile(values, 90)),
        "min": float(np.min(values)),
        "max": float(np.max(values)),
    }


def simulate_sessions(
    runs: int = 100,
    duration_seconds: int = 300,
    seed: int = 0,
    **session_kwargs: Any,
) -> SimulationReport:
    if runs <= 0:
        raise ValueError("runs must be positive")
    if duration_seconds <= 0:
        raise ValueError("duration_seconds must be positive")

    rng = np.random.default_rng(seed)
    report = SimulationReport()
    best = 0
    for _ in range(runs):
        result = run_session(rng, duration_seconds, previous_best=best, **session_kwargs)
        best = result.high_score
        report.results.append(result)

    for key in ("score", "distraction_count", "total_distraction_seconds", "focus_percentage"):
        report.summary[key] = _describe(np.array([getattr(r, key) for r in report.results]))
    return report
