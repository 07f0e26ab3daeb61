"""
Session Simulator — exercises the FocusRun engine without a real widget page.

Offline mode runs many sessions on virtual time and prints score / distraction
statistics. Live mode drives a running engine over HTTP the way the page
would: configure, start, look away a few times, report the clips.

Usage:
    python scripts/simulate.py                      # offline, 100 runs of 5 min
    python scripts/simulate.py --runs 500 --duration 1500 --seed 3
    # Live — make sure the engine is running first:
    #   python start.py
    python scripts/simulate.py --live --duration 20
    python scripts/simulate.py --live --speed 2.0   # 2× faster look-aways
"""

from __future__ import annotations

import argparse
import json
import random
import sys
import time
import urllib.error
import urllib.request
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from focusrun.simulation import simulate_sessions  # noqa: E402
from focusrun.session.state import format_clock, format_score  # noqa: E402

API = "http://127.0.0.1:8765"


# ---------------------------------------------------------------------------
# Low-level HTTP helper
# ---------------------------------------------------------------------------

def _post(path: str, body: list | dict | None = None) -> dict | None:
    try:
        data = json.dumps(body if body is not None else {}).encode()
        req = urllib.request.Request(
            f"{API}{path}",
            data=data,
            headers={"Content-Type": "application/json"},
            method="POST",
        )
        with urllib.request.urlopen(req, timeout=3) as r:
            return json.loads(r.read())
    except (urllib.error.URLError, OSError) as e:
        print(f"  [!] Engine unreachable: {e}")
        return None


def _get(path: str) -> dict | None:
    try:
        with urllib.request.urlopen(f"{API}{path}", timeout=3) as r:
            return json.loads(r.read())
    except (urllib.error.URLError, OSError, ValueError):
        return None


def _evt(event_type: str, data: dict | None = None) -> dict:
    return {
        "source": "browser",
        "type": event_type,
        "timestamp": time.time(),
        "data": data or {},
    }


def _print_session(label: str, s: dict | None) -> None:
    if not s:
        return
    print(
        f"  {label:<22} {s['phase']:<8} {s['remaining_display']}  "
        f"score {s['score_display']}  away {s['distraction_count']}×/"
        f"{s['total_distraction_seconds']}s  focus {s['focus_percentage']:3d}%  "
        f"stage {s['playback_stage']}"
    )


# ---------------------------------------------------------------------------
# Modes
# ---------------------------------------------------------------------------

def run_offline(runs: int, duration: int, seed: int) -> None:
    report = simulate_sessions(runs=runs, duration_seconds=duration, seed=seed)
    print(f"\n{runs} sessions × {format_clock(duration)}  (seed {seed})")
    print(f"{'─' * 60}")
    for key, stats in report.summary.items():
        print(
            f"  {key:<26} mean {stats['mean']:9.1f}  p50 {stats['p50']:8.1f}  "
            f"p90 {stats['p90']:8.1f}"
        )
    reached = sum(r.reached_loop for r in report.results)
    print(f"  {'reached loop clip':<26} {reached}/{runs}")
    print(f"  {'best score':<26} {format_score(report.best_score)}")


def run_live(duration: int, speed: float) -> None:
    health = _get("/health")
    if not health:
        print(f"[!] Cannot reach engine at {API}")
        print("    Start it first: python start.py")
        return
    print(f"[✓] Engine connected — FocusRun v{health.get('version', '?')}")

    _post("/session/reset")
    hours, rest = divmod(duration, 3600)
    minutes, seconds = divmod(rest, 60)
    _print_session("configure", _post("/session/configure", {
        "hours": hours, "minutes": minutes, "seconds": seconds,
    }))
    _print_session("start", _post("/session/start"))
    _post("/telemetry/event", _evt("MEDIA_BUFFERED", {"clip": "loop", "bufferedEnd": 6.0}))

    deadline = time.time() + duration
    intro_reported = False
    while time.time() < deadline:
        time.sleep(random.uniform(1.0, 3.0) / speed)
        _post("/telemetry/event", _evt("VISIBILITY_HIDDEN"))
        time.sleep(random.uniform(0.5, 2.0) / speed)
        _post("/telemetry/event", _evt("VISIBILITY_VISIBLE"))
        if not intro_reported:
            _post("/telemetry/event", _evt("MEDIA_ENDED", {"clip": "intro"}))
            intro_reported = True
        _print_session("looked away", _get("/session"))

    time.sleep(1.0)
    _print_session("final", _get("/session"))


def main() -> None:
    parser = argparse.ArgumentParser(description="FocusRun Session Simulator")
    parser.add_argument("--live", action="store_true", help="Drive a running engine over HTTP")
    parser.add_argument("--runs", type=int, default=100, help="Offline sessions to simulate")
    parser.add_argument("--duration", type=int, default=300, help="Session length in seconds")
    parser.add_argument("--seed", type=int, default=0, help="Random seed (offline)")
    parser.add_argument("--speed", type=float, default=1.0, help="Speed multiplier (live)")
    args = parser.parse_args()

    if args.live:
        run_live(args.duration, args.speed)
    else:
        run_offline(args.runs, args.duration, args.seed)


if __name__ == "__main__":
    main()
