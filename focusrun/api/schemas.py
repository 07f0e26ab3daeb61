"""
Pydantic schemas for the FastAPI local API.
"""

from __future__ import annotations

from typing import Any, Dict, Optional, Union

from pydantic import BaseModel, Field

from ..session.state import SessionSnapshot, format_clock, format_score

# ── Telemetry ──────────────────────────────────────────────────────────────

class TelemetryEventIn(BaseModel):
    source: str = Field(..., description="browser")
    type: str   = Field(..., description="Raw event type string from the page")
    timestamp: Optional[float] = None
    data: Dict[str, Any] = Field(default_factory=dict)


# ── Session ────────────────────────────────────────────────────────────────

class ConfigureIn(BaseModel):
    # raw form values; the engine parses and clamps them, nothing is rejected
    hours: Union[int, float, str, None] = 0
    minutes: Union[int, float, str, None] = 0
    seconds: Union[int, float, str, None] = 0


class MediaDirectiveOut(BaseModel):
    playing: bool
    position: float
    command_seq: int


class SessionOut(BaseModel):
    phase: str
    total_duration_seconds: int = Field(..., ge=0)
    remaining_seconds: int = Field(..., ge=0)
    elapsed_seconds: int = Field(..., ge=0)
    score: int = Field(..., ge=0)
    high_score: int = Field(..., ge=0)
    is_foreground: bool
    distraction_count: int = Field(..., ge=0)
    total_distraction_seconds: int = Field(..., ge=0)
    last_distraction_seconds: int = Field(..., ge=0)
    welcome_back: bool
    focus_percentage: int = Field(..., ge=0, le=100)
    playback_stage: str
    playback_error: Optional[str] = None
    remaining_display: str
    score_display: str
    high_score_display: str
    media: Dict[str, MediaDirectiveOut] = Field(default_factory=dict)


def session_out(snapshot: SessionSnapshot, media: Dict[str, Dict[str, Any]]) -> SessionOut:
    return SessionOut(
        **snapshot.to_dict(),
        remaining_display=format_clock(snapshot.remaining_seconds),
        score_display=format_score(snapshot.score),
        high_score_display=format_score(snapshot.high_score),
        media={name: MediaDirectiveOut(**d) for name, d in media.items()},
    )
