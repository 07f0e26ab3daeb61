"""
User-tunable runtime settings — persisted to data/settings.json.

Import get_settings() anywhere in the engine to read current values.
Import update_settings(patch) to mutate and save.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from .config import config

_FILE: Path = config.data_dir / "settings.json"

DEFAULTS: dict[str, Any] = {
    "score_tick_ms":          90,     # score cadence, much finer than the countdown
    "buffer_poll_ms":         16,     # one animation frame
    "loop_lookahead_seconds": 5.0,    # loop clip media buffered before handoff
    "welcome_back_seconds":   5,      # welcome-back notice display window
    "max_buffer_polls":       0,      # 0 → poll until ready or cancelled
}

_current: dict[str, Any] = {}


def _load() -> None:
    global _current
    _current = dict(DEFAULTS)
    if _FILE.exists():
        try:
            saved = json.loads(_FILE.read_text())
            if not isinstance(saved, dict):
                return
            for k, v in saved.items():
                if k in DEFAULTS:
                    # coerce to the same type as the default
                    _current[k] = type(DEFAULTS[k])(v)
        except (OSError, ValueError, TypeError):
            pass  # malformed file — fall back to defaults


def get_settings() -> dict[str, Any]:
    """Return a copy of the current settings dict."""
    if not _current:
        _load()
    return dict(_current)


def update_settings(patch: dict[str, Any]) -> dict[str, Any]:
    """Apply *patch* (unknown keys ignored), persist to disk, return full settings."""
    if not _current:
        _load()
    for k, v in patch.items():
        if k in DEFAULTS:
            _current[k] = type(DEFAULTS[k])(v)
    _FILE.parent.mkdir(parents=True, exist_ok=True)
    _FILE.write_text(json.dumps(_current, indent=2))
    return dict(_current)


# Eagerly load on import
_load()
