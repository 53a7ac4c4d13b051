"""
Motion estimator for frame-difference motion intensity.

This module turns two consecutive pixel buffers into a MotionReading using
a plain per-pixel absolute-difference heuristic. There is no background
model and no optical flow.

Key Formulas:
    pixel_delta = |dR| + |dG| + |dB|
    mean_channel_delta = sum(pixel_delta) / (pixel_count * 3)
    pixel_change_count = count(pixel_delta > noise_floor)
    intensity = min(mean_channel_delta * sensitivity_multiplier, 100)

Classes:
    MotionEstimator: Stateless estimator with tunable sensitivity
"""

from datetime import datetime, timezone
from typing import Optional

import numpy as np
import structlog

from camwatch.errors import ShapeMismatch
from camwatch.models.frames import COLOR_CHANNELS, PixelBuffer
from camwatch.models.motion import MAX_INTENSITY, MotionReading

logger = structlog.get_logger(__name__)


DEFAULT_SENSITIVITY_MULTIPLIER = 1.0
DEFAULT_NOISE_FLOOR = 30

MIN_SENSITIVITY_MULTIPLIER = 0.1
MAX_SENSITIVITY_MULTIPLIER = 2.0
MAX_NOISE_FLOOR = 255 * COLOR_CHANNELS


class MotionEstimator:
    """
    Estimates motion intensity between two pixel buffers.

    The estimator holds only its tuning knobs; every call is a pure function
    of its inputs, so identical inputs give identical readings.

    Edge Cases Handled:
        - Shape mismatch (resolution change mid-stream): zero reading
        - Empty buffers: zero reading
        - Alpha channel (RGBA input): ignored

    Attributes:
        sensitivity_multiplier: Scale from mean channel delta to intensity.
        noise_floor: Combined per-pixel difference a pixel must exceed to
            count as changed.

    Example:
        >>> estimator = MotionEstimator(sensitivity_multiplier=0.7)
        >>> reading = estimator.estimate(previous, current)
        >>> print(f"Motion: {reading.intensity:.1f}%")
    """

    def __init__(
        self,
        sensitivity_multiplier: float = DEFAULT_SENSITIVITY_MULTIPLIER,
        noise_floor: int = DEFAULT_NOISE_FLOOR,
    ) -> None:
        """
        Initialize the estimator.

        Args:
            sensitivity_multiplier: Delta to intensity scale (0.1 to 2.0).
            noise_floor: Per-pixel noise floor (0 to 765).

        Raises:
            ValueError: If a setting is out of range.
        """
        self.sensitivity_multiplier = DEFAULT_SENSITIVITY_MULTIPLIER
        self.noise_floor = DEFAULT_NOISE_FLOOR
        self.configure(
            sensitivity_multiplier=sensitivity_multiplier,
            noise_floor=noise_floor,
        )

    def configure(
        self,
        sensitivity_multiplier: Optional[float] = None,
        noise_floor: Optional[int] = None,
    ) -> None:
        """
        Update tuning knobs. Arguments left as None keep their value.

        Args:
            sensitivity_multiplier: New delta to intensity scale.
            noise_floor: New per-pixel noise floor.

        Raises:
            ValueError: If a setting is out of range.
        """
        if sensitivity_multiplier is not None:
            if not (
                MIN_SENSITIVITY_MULTIPLIER
                <= sensitivity_multiplier
                <= MAX_SENSITIVITY_MULTIPLIER
            ):
                raise ValueError(
                    f"sensitivity_multiplier must be between "
                    f"{MIN_SENSITIVITY_MULTIPLIER} and {MAX_SENSITIVITY_MULTIPLIER}, "
                    f"got {sensitivity_multiplier}"
                )
            self.sensitivity_multiplier = float(sensitivity_multiplier)

        if noise_floor is not None:
            if not (0 <= noise_floor <= MAX_NOISE_FLOOR):
                raise ValueError(
                    f"noise_floor must be between 0 and {MAX_NOISE_FLOOR}, got {noise_floor}"
                )
            self.noise_floor = int(noise_floor)

    def estimate(
        self,
        previous: PixelBuffer,
        current: PixelBuffer,
        captured_at: Optional[datetime] = None,
    ) -> MotionReading:
        """
        Measure the change between two consecutive buffers.

        Args:
            previous: Buffer from the previous tick.
            current: Buffer from this tick.
            captured_at: Capture time of ``current`` (defaults to now, UTC).

        Returns:
            MotionReading: Intensity, changed-pixel count and mean delta.
                A zero reading if the shapes differ.

        Example:
            >>> still = PixelBuffer.filled(8, 8, value=40)
            >>> estimator.estimate(still, still).intensity
            0.0
        """
        if captured_at is None:
            captured_at = datetime.now(timezone.utc)

        try:
            previous.require_same_shape(current)
        except ShapeMismatch as e:
            logger.debug(
                "motion_shape_mismatch",
                expected=e.expected,
                actual=e.actual,
            )
            return MotionReading.still(captured_at)

        if current.pixel_count == 0:
            return MotionReading.still(captured_at)

        pixel_delta = np.abs(current.color_planes() - previous.color_planes()).sum(axis=1)

        total_delta = int(pixel_delta.sum())
        mean_channel_delta = total_delta / (current.pixel_count * COLOR_CHANNELS)
        pixel_change_count = int(np.count_nonzero(pixel_delta > self.noise_floor))
        intensity = min(mean_channel_delta * self.sensitivity_multiplier, MAX_INTENSITY)

        return MotionReading(
            intensity=intensity,
            pixel_change_count=pixel_change_count,
            mean_channel_delta=mean_channel_delta,
            captured_at=captured_at,
        )

    def __repr__(self) -> str:
        """String representation of the estimator."""
        return (
            f"MotionEstimator(sensitivity_multiplier={self.sensitivity_multiplier}, "
            f"noise_floor={self.noise_floor})"
        )
