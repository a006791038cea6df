"""Usage event tracking.

Trackers are plain observer callables registered with the dispatcher.
They run synchronously, in registration order, and a failing tracker
never affects the request being tracked.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Callable

logger = logging.getLogger(__name__)


class TrackEvent(str, Enum):
    INIT = "mcp-init"
    CALL_TOOL = "mcp-call-tool"


Tracker = Callable[[TrackEvent, dict[str, Any]], None]


class TrackerRegistry:
    """Ordered collection of trackers."""

    def __init__(self, trackers: list[Tracker] | None = None):
        self._trackers: list[Tracker] = list(trackers or [])

    def add(self, tracker: Tracker) -> None:
        if tracker not in self._trackers:
            self._trackers.append(tracker)

    def __len__(self) -> int:
        return len(self._trackers)

    def track(self, event: TrackEvent, props: dict[str, Any] | None = None) -> None:
        props = props or {}
        for tracker in self._trackers:
            try:
                tracker(event, props)
            except Exception:
                logger.warning("Tracker %r failed on %s", tracker, event.value, exc_info=True)


class LoggingTracker:
    """Writes usage events to the log, tagged with the client name."""

    def __init__(self, client_name: str = ""):
        self.client_name = client_name

    def __call__(self, event: TrackEvent, props: dict[str, Any]) -> None:
        logger.info("event=%s client=%s props=%s", event.value, self.client_name, props)


__all__ = ["TrackEvent", "Tracker", "TrackerRegistry", "LoggingTracker"]
