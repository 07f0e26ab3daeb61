"""
/settings — read and update user-tunable runtime settings.
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter
from pydantic import BaseModel, Field

from ...settings import DEFAULTS, get_settings, update_settings

router = APIRouter(prefix="/settings", tags=["settings"])


class SettingsPatch(BaseModel):
    score_tick_ms:          Optional[int]   = Field(None, ge=10,  le=500)
    buffer_poll_ms:         Optional[int]   = Field(None, ge=4,   le=250)
    loop_lookahead_seconds: Optional[float] = Field(None, ge=0.0, le=30.0)
    welcome_back_seconds:   Optional[int]   = Field(None, ge=1,   le=60)
    max_buffer_polls:       Optional[int]   = Field(None, ge=0,   le=100_000)


@router.get("")
def read_settings():
    """Return current settings with their defaults for reference."""
    current = get_settings()
    return {"settings": current, "defaults": DEFAULTS}


@router.put("")
def write_settings(patch: SettingsPatch):
    """
    Apply a partial update; unknown keys are ignored. Persists to
    data/settings.json and takes effect the next time the engine starts.
    """
    data = {k: v for k, v in patch.model_dump().items() if v is not None}
    return {"settings": update_settings(data)}
