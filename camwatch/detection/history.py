"""
Rolling motion history per source.

Keeps the last N readings of each source and summarises them for the
camera status panel: how many crossed the threshold, the average and peak
intensity, and when motion was last seen.

Example:
    >>> history = MotionHistory(window_size=10)
    >>> history.record("CAM-1", reading, threshold=30.0)
    >>> stats = history.stats("CAM-1")
    >>> print(stats.detections, stats.average_intensity)
"""

from collections import deque
from typing import Deque, Dict

import structlog

from camwatch.models.motion import MotionReading, MotionStats

logger = structlog.get_logger(__name__)


DEFAULT_WINDOW_SIZE = 10


class MotionHistory:
    """
    Fixed-size reading window per source.

    Attributes:
        window_size: Readings kept per source.
        _windows: Dictionary mapping source ids to (reading, detected) pairs.
    """

    def __init__(self, window_size: int = DEFAULT_WINDOW_SIZE) -> None:
        if window_size < 1:
            raise ValueError(f"window_size must be >= 1, got {window_size}")
        self.window_size = window_size
        self._windows: Dict[str, Deque[tuple[MotionReading, bool]]] = {}

    def record(self, source_id: str, reading: MotionReading, threshold: float) -> None:
        """
        Append a reading to the source's window.

        Args:
            source_id: The source identifier.
            reading: The reading for this tick.
            threshold: Gate threshold in effect, used to mark detections.
        """
        window = self._windows.get(source_id)
        if window is None:
            window = deque(maxlen=self.window_size)
            self._windows[source_id] = window
        window.append((reading, reading.intensity > threshold))

    def stats(self, source_id: str) -> MotionStats:
        """
        Summarise the source's window.

        Args:
            source_id: The source identifier.

        Returns:
            MotionStats: Statistics; all zero if nothing recorded.
        """
        window = self._windows.get(source_id)
        if not window:
            return MotionStats(source_id=source_id)

        intensities = [reading.intensity for reading, _ in window]
        detected = [reading for reading, hit in window if hit]

        return MotionStats(
            source_id=source_id,
            sample_count=len(window),
            detections=len(detected),
            average_intensity=sum(intensities) / len(intensities),
            peak_intensity=max(intensities),
            last_detection=detected[-1].captured_at if detected else None,
        )

    def reset(self, source_id: str) -> None:
        """Drop the window of one source."""
        self._windows.pop(source_id, None)

    def __len__(self) -> int:
        """Number of sources with history."""
        return len(self._windows)
