"""
Motion data models for the detection pipeline.

Models:
    MotionReading: Per-tick change measurement between two frames
    MotionEvent: A reading that passed the threshold and cooldown gate
    MotionStats: Rolling statistics over a source's recent readings
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

# Upper bound of the intensity scale.
MAX_INTENSITY = 100.0


class MotionReading(BaseModel):
    """
    Change measurement between two consecutive pixel buffers.

    Attributes:
        intensity: Scaled change on the [0, 100] scale.
        pixel_change_count: Pixels whose combined channel difference exceeded
            the noise floor.
        mean_channel_delta: Mean absolute difference per pixel per channel.
        captured_at: Capture time of the newer buffer.

    Example:
        >>> reading = MotionReading(
        ...     intensity=42.5,
        ...     pixel_change_count=1200,
        ...     mean_channel_delta=42.5,
        ...     captured_at=datetime(2025, 1, 26, 12, 0, 0),
        ... )
    """

    model_config = {"frozen": True, "extra": "forbid"}

    intensity: float = Field(
        ...,
        description="Scaled inter-frame change, 0 to 100",
        ge=0.0,
        le=MAX_INTENSITY,
    )
    pixel_change_count: int = Field(
        default=0,
        description="Pixels above the per-pixel noise floor",
        ge=0,
    )
    mean_channel_delta: float = Field(
        default=0.0,
        description="Mean absolute per-pixel per-channel difference",
        ge=0.0,
    )
    captured_at: datetime = Field(
        ...,
        description="Capture time of the current frame",
    )

    @classmethod
    def still(cls, captured_at: datetime) -> "MotionReading":
        """Zero-motion reading at the given time."""
        return cls(
            intensity=0.0,
            pixel_change_count=0,
            mean_channel_delta=0.0,
            captured_at=captured_at,
        )


class MotionEvent(BaseModel):
    """
    A reportable motion occurrence for one source.

    Emitted by MotionGate and consumed immediately by AlertFactory.

    Attributes:
        source_id: Camera or sensor that produced the reading.
        reading: The reading that crossed the threshold.
        triggered_at: When the gate emitted the event.
    """

    model_config = {"frozen": True, "extra": "forbid"}

    source_id: str = Field(
        ...,
        description="Originating camera/sensor identifier",
        min_length=1,
    )
    reading: MotionReading = Field(
        ...,
        description="Reading that crossed the threshold",
    )
    triggered_at: datetime = Field(
        ...,
        description="Gate emission time",
    )

    @property
    def intensity(self) -> float:
        """Intensity of the triggering reading."""
        return self.reading.intensity


class MotionStats(BaseModel):
    """
    Rolling motion statistics for one source.

    Attributes:
        source_id: The source these statistics describe.
        sample_count: Readings currently in the window.
        detections: Readings in the window above the threshold.
        average_intensity: Mean intensity across the window.
        peak_intensity: Highest intensity in the window.
        last_detection: Capture time of the newest reading above threshold.
    """

    model_config = {"frozen": True, "extra": "forbid"}

    source_id: str
    sample_count: int = Field(default=0, ge=0)
    detections: int = Field(default=0, ge=0)
    average_intensity: float = Field(default=0.0, ge=0.0)
    peak_intensity: float = Field(default=0.0, ge=0.0)
    last_detection: Optional[datetime] = None
