"""
Motion gate applying threshold and cooldown policy per source.

This module provides the MotionGate class which turns a stream of motion
readings into discrete MotionEvents.

Key Features:
    - Emits only when intensity is strictly above the threshold
    - Enforces a cooldown between emissions of the same source
    - Keeps independent state per source_id
    - Uses reading timestamps, never the wall clock

This is a debounce, not a smoothing filter: a single spike above threshold
after the cooldown fires immediately, and sustained motion below threshold
never fires.

Example:
    >>> gate = MotionGate(threshold=30.0, cooldown_ms=5000)
    >>> event = gate.observe("CAM-1", reading)
    >>> if event is not None:
    ...     alert = factory.create(event, source_name="Front Door")
"""

from datetime import datetime
from typing import Dict, Optional

import structlog

from camwatch.models.motion import MotionEvent, MotionReading

logger = structlog.get_logger(__name__)


DEFAULT_THRESHOLD = 30.0
DEFAULT_COOLDOWN_MS = 5000

MIN_THRESHOLD = 10.0
MAX_THRESHOLD = 100.0


class MotionGate:
    """
    Threshold and cooldown gate keyed by source.

    Attributes:
        threshold: Intensity a reading must exceed to emit.
        cooldown_ms: Minimum milliseconds between emissions per source.
        _last_emitted: Dictionary mapping source ids to last emission time.

    Example:
        >>> gate = MotionGate(threshold=30.0, cooldown_ms=5000)
        >>> t0 = datetime(2025, 1, 26, 12, 0, 0)
        >>> gate.observe("CAM-1", reading_at(t0, 90.0))           # emits
        >>> gate.observe("CAM-1", reading_at(t0 + 1s, 90.0))      # None, cooling down
        >>> gate.observe("CAM-1", reading_at(t0 + 6s, 90.0))      # emits
    """

    def __init__(
        self,
        threshold: float = DEFAULT_THRESHOLD,
        cooldown_ms: int = DEFAULT_COOLDOWN_MS,
    ) -> None:
        """
        Initialize the gate.

        Args:
            threshold: Emission threshold on the 0-100 scale (10 to 100).
            cooldown_ms: Cooldown per source in milliseconds (>= 0).

        Raises:
            ValueError: If a setting is out of range.
        """
        self.threshold = DEFAULT_THRESHOLD
        self.cooldown_ms = DEFAULT_COOLDOWN_MS
        self.configure(threshold=threshold, cooldown_ms=cooldown_ms)

        self._last_emitted: Dict[str, datetime] = {}

        logger.debug(
            "motion_gate_initialized",
            threshold=self.threshold,
            cooldown_ms=self.cooldown_ms,
        )

    def configure(
        self,
        threshold: Optional[float] = None,
        cooldown_ms: Optional[int] = None,
    ) -> None:
        """
        Update gate policy. Arguments left as None keep their value.

        Existing cooldown state is kept; a shorter cooldown applies to the
        next reading.

        Args:
            threshold: New emission threshold.
            cooldown_ms: New cooldown in milliseconds.

        Raises:
            ValueError: If a setting is out of range.
        """
        if threshold is not None:
            if not (MIN_THRESHOLD <= threshold <= MAX_THRESHOLD):
                raise ValueError(
                    f"threshold must be between {MIN_THRESHOLD} and {MAX_THRESHOLD}, "
                    f"got {threshold}"
                )
            self.threshold = float(threshold)

        if cooldown_ms is not None:
            if cooldown_ms < 0:
                raise ValueError(f"cooldown_ms must be >= 0, got {cooldown_ms}")
            self.cooldown_ms = int(cooldown_ms)

    def observe(self, source_id: str, reading: MotionReading) -> Optional[MotionEvent]:
        """
        Feed one reading and return an event if the gate opens.

        Args:
            source_id: The source the reading belongs to.
            reading: The reading for this tick.

        Returns:
            Optional[MotionEvent]: The event, or None if below threshold or
                still cooling down.
        """
        if reading.intensity <= self.threshold:
            return None

        now = reading.captured_at
        if self._is_cooling_down(source_id, now):
            logger.debug(
                "motion_event_suppressed",
                source_id=source_id,
                intensity=reading.intensity,
                last_emitted=self._last_emitted[source_id].isoformat(),
            )
            return None

        self._last_emitted[source_id] = now
        event = MotionEvent(source_id=source_id, reading=reading, triggered_at=now)

        logger.info(
            "motion_event_emitted",
            source_id=source_id,
            intensity=round(reading.intensity, 2),
            pixel_change_count=reading.pixel_change_count,
            threshold=self.threshold,
        )
        return event

    def _is_cooling_down(self, source_id: str, now: datetime) -> bool:
        """
        Check if the source emitted less than cooldown_ms ago.

        Args:
            source_id: The source identifier.
            now: Timestamp of the current reading.

        Returns:
            bool: True if an emission now would violate the cooldown.
        """
        last = self._last_emitted.get(source_id)
        if last is None:
            return False

        elapsed_ms = (now - last).total_seconds() * 1000.0
        return elapsed_ms < self.cooldown_ms

    def reset(self, source_id: str) -> None:
        """
        Forget the last emission of one source.

        Called by the owner when a source disconnects; the gate does not
        detect disconnection itself.

        Args:
            source_id: The source to reset.
        """
        if self._last_emitted.pop(source_id, None) is not None:
            logger.debug("motion_gate_reset", source_id=source_id)

    def reset_all(self) -> None:
        """Forget the last emission of every source."""
        count = len(self._last_emitted)
        self._last_emitted.clear()
        logger.info("motion_gate_reset_all", cleared_count=count)

    def last_emitted_at(self, source_id: str) -> Optional[datetime]:
        """
        Get the last emission time of a source.

        Args:
            source_id: The source identifier.

        Returns:
            Optional[datetime]: Last emission time, None if never or reset.
        """
        return self._last_emitted.get(source_id)

    def __contains__(self, source_id: str) -> bool:
        """Check if a source has emission state."""
        return source_id in self._last_emitted
