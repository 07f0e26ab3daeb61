"""
Host Bridge — applies parsed host events to the session engine.

The page reports visibility changes and the state of its two <video>
elements; the bridge turns those into SessionController commands and
RemoteMedia reports. Event timestamps are informational only: durations are
measured on the engine's own clock.
"""

from __future__ import annotations

import logging
from typing import Dict

from ..playback.media import RemoteMedia
from ..session.controller import SessionController
from .sources.browser import HostEvent

logger = logging.getLogger(__name__)


class HostBridge:

    def __init__(self, controller: SessionController, clips: Dict[str, RemoteMedia]):
        self._controller = controller
        self._clips = clips
        self.events_applied = 0

    def push_event(self, event: HostEvent) -> None:
        kind = event.event_type
        if kind == "background":
            self._controller.set_foreground(False)
        elif kind == "foreground":
            self._controller.set_foreground(True)
        elif kind == "media_buffered":
            self._clips[event.metadata["clip"]].report_buffered(event.metadata["buffered_end"])
        elif kind == "media_ended":
            self._clips[event.metadata["clip"]].report_ended()
        elif kind == "media_play_failed":
            self._controller.report_playback_failure(
                event.metadata["clip"], event.metadata.get("error", "")
            )
        else:
            logger.debug("ignoring host event %r", kind)
            return
        self.events_applied += 1
