"""
Browser Telemetry Receiver — accepts events POSTed by the widget page
and converts them to HostEvent objects for the HostBridge.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any, Dict

# Mapping from page event names → internal event_type strings
_EVENT_MAP: Dict[str, str] = {
    "VISIBILITY_HIDDEN": "background",
    "VISIBILITY_VISIBLE": "foreground",
    "FOCUS_LOST": "background",
    "FOCUS_GAINED": "foreground",
    "MEDIA_BUFFERED": "media_buffered",
    "MEDIA_ENDED": "media_ended",
    "MEDIA_PLAY_FAILED": "media_play_failed",
}

_MEDIA_EVENTS = {"media_buffered", "media_ended", "media_play_failed"}

CLIPS = ("intro", "loop")


@dataclass
class HostEvent:
    source: str          # "browser"
    event_type: str      # e.g. "background", "media_ended"
    timestamp: float = field(default_factory=time.time)
    metadata: Dict[str, Any] = field(default_factory=dict)


def parse_browser_event(payload: Dict[str, Any]) -> HostEvent | None:
    """
    Parse a raw page payload into a HostEvent.
    Returns None if the event type is unknown or malformed.

    Expected payload shape:
    {
        "type": "MEDIA_BUFFERED",
        "timestamp": 1700000000.123,   # optional, defaults to now
        "data": { "clip": "loop", "bufferedEnd": 6.2 }
    }
    """
    raw_type = payload.get("type", "")
    internal_type = _EVENT_MAP.get(raw_type)
    if not internal_type:
        return None

    data = payload.get("data") or {}
    timestamp = float(payload.get("timestamp", time.time()))

    metadata: Dict[str, Any] = {}

    if internal_type in _MEDIA_EVENTS:
        clip = data.get("clip", "")
        if clip not in CLIPS:
            return None
        metadata["clip"] = clip

    if internal_type == "media_buffered":
        try:
            metadata["buffered_end"] = float(data.get("bufferedEnd", 0.0))
        except (TypeError, ValueError):
            return None

    elif internal_type == "media_play_failed":
        metadata["error"] = str(data.get("error", ""))

    return HostEvent(
        source="browser",
        event_type=internal_type,
        timestamp=timestamp,
        metadata=metadata,
    )
