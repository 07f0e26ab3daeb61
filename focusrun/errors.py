"""
Engine error taxonomy.

Sub-components raise these; the SessionController is the boundary that
catches them and downgrades each one to a state field or a log record.
"""

from __future__ import annotations


class FocusRunError(Exception):
    """Base class for all engine errors."""


class InvalidConfiguration(FocusRunError):
    """A session was started with a non-positive total duration."""


class PlaybackFailure(FocusRunError):
    """A media handle rejected play()."""

    def __init__(self, clip: str, reason: str = ""):
        self.clip = clip
        self.reason = reason
        super().__init__(f"{clip}: {reason}" if reason else clip)


class TimerReentrancy(FocusRunError):
    """A periodic task tried to arm a second pending tick."""


class StoreUnavailable(FocusRunError):
    """The persisted high-score cell could not be read or written."""
