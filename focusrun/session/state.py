"""
Session data model — phases, stages, configuration and published snapshots.
"""

from __future__ import annotations

import math
import re
from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any, Dict, Optional

MAX_HOURS = 99
MAX_MINUTES = 59
MAX_SECONDS = 59


class Phase(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    PAUSED = "paused"
    ENDED = "ended"


class PlaybackStage(str, Enum):
    HOME = "home"
    INTRO = "intro"
    LOOP = "loop"


_LEADING_INT = re.compile(r"\s*([+-]?\d+)")


def _parse_field(value: Any) -> int:
    """Leading integer of a form field ("12abc" → 12, "3.5" → 3); anything else is 0."""
    if isinstance(value, str):
        match = _LEADING_INT.match(value)
        return int(match.group(1)) if match else 0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0
    if math.isnan(number) or math.isinf(number):
        return 0
    return int(number)


def _clamp_field(value: Any, upper: int) -> int:
    return max(0, min(upper, _parse_field(value)))


@dataclass(frozen=True)
class SessionConfig:
    total_duration_seconds: int = 0

    @classmethod
    def from_fields(cls, hours: Any = 0, minutes: Any = 0, seconds: Any = 0) -> "SessionConfig":
        """Clamp each field to its own range, then combine."""
        h = _clamp_field(hours, MAX_HOURS)
        m = _clamp_field(minutes, MAX_MINUTES)
        s = _clamp_field(seconds, MAX_SECONDS)
        return cls(total_duration_seconds=h * 3600 + m * 60 + s)


@dataclass(frozen=True)
class SessionSnapshot:
    phase: Phase
    total_duration_seconds: int
    remaining_seconds: int
    score: int
    high_score: int
    is_foreground: bool
    distraction_count: int
    total_distraction_seconds: int
    last_distraction_seconds: int
    welcome_back: bool
    playback_stage: PlaybackStage
    playback_error: Optional[str] = None

    @property
    def elapsed_seconds(self) -> int:
        return self.total_duration_seconds - self.remaining_seconds

    @property
    def focus_percentage(self) -> int:
        return focus_percentage(self.elapsed_seconds, self.total_distraction_seconds)

    def to_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        d["phase"] = self.phase.value
        d["playback_stage"] = self.playback_stage.value
        d["elapsed_seconds"] = self.elapsed_seconds
        d["focus_percentage"] = self.focus_percentage
        return d


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def focus_percentage(elapsed_seconds: int, distraction_seconds: int) -> int:
    if elapsed_seconds <= 0:
        return 100
    focused = elapsed_seconds - distraction_seconds
    return max(0, min(100, round_half_up(focused / elapsed_seconds * 100)))


def format_clock(seconds: int) -> str:
    """Format whole seconds as 'HH:MM:SS'."""
    hours, rest = divmod(max(0, int(seconds)), 3600)
    mins, secs = divmod(rest, 60)
    return f"{hours:02d}:{mins:02d}:{secs:02d}"


def format_score(score: int) -> str:
    """Six-digit scoreboard rendering; only the last six digits are shown."""
    return str(score).zfill(6)[-6:]
