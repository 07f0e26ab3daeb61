"""
Convenience launcher — starts the FocusRun engine and (optionally) a live
simulation against it.

Usage:
    python start.py             # engine only
    python start.py --simulate  # engine + live simulated page
"""

from __future__ import annotations

import argparse
import subprocess
import sys
import time


def start_engine() -> subprocess.Popen:
    return subprocess.Popen(
        [sys.executable, "-m", "focusrun.main"],
        stdout=sys.stdout,
        stderr=sys.stderr,
    )


def start_simulator() -> subprocess.Popen:
    return subprocess.Popen(
        [sys.executable, "scripts/simulate.py", "--live"],
        stdout=sys.stdout,
        stderr=sys.stderr,
    )


def main() -> None:
    parser = argparse.ArgumentParser(description="Start the FocusRun engine")
    parser.add_argument("--simulate", action="store_true", help="Also drive it with a simulated page")
    args = parser.parse_args()

    print("Starting FocusRun engine…")
    engine_proc = start_engine()

    if args.simulate:
        time.sleep(1.5)  # give engine a moment to bind
        print("Starting simulated page…")
        start_simulator()

    print("\nEngine → http://127.0.0.1:8765")
    print("Live snapshots → ws://127.0.0.1:8765/session/ws")
    print("Press Ctrl+C to stop.\n")

    try:
        engine_proc.wait()
    except KeyboardInterrupt:
        print("\nShutting down…")
        engine_proc.terminate()
        engine_proc.wait()


if __name__ == "__main__":
    main()
