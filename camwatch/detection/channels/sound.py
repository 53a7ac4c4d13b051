"""
Sound sink that records cue requests in the log.

Actual audio playback happens in the browser or on a speaker controller
outside this package; this sink stands in for it in headless deployments
and keeps a short record of the cues requested.

Example:
    >>> sink = LogSoundSink()
    >>> await sink.play("alert-motion", volume=0.7)
    >>> sink.played[-1]
    ('alert-motion', 0.7)
"""

from collections import deque
from typing import Deque, Tuple

import structlog

logger = structlog.get_logger(__name__)


DEFAULT_HISTORY = 50


class LogSoundSink:
    """
    Sound sink that logs each cue request.

    Attributes:
        played: Most recent (cue_id, volume) requests, oldest first.
    """

    def __init__(self, history: int = DEFAULT_HISTORY) -> None:
        self.played: Deque[Tuple[str, float]] = deque(maxlen=history)

    async def play(self, cue_id: str, volume: float) -> None:
        """
        Record a cue request.

        Args:
            cue_id: Cue identifier, e.g. "alert-motion".
            volume: Playback volume, 0.0 to 1.0.
        """
        self.played.append((cue_id, volume))
        logger.info("sound_cue_requested", cue_id=cue_id, volume=volume)
