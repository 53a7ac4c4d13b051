"""
Shared Pydantic data models for the motion alert pipeline.

Modules:
    frames: Pixel buffer snapshots
    motion: Motion readings, events and rolling statistics
    alerts: Alert records, enums and the status state machine
    actors: Identity handed to permission-gated operations

Example:
    >>> from camwatch.models import PixelBuffer, MotionReading
    >>> from camwatch.models import Alert, AlertSeverity, AlertStatus
"""

# Frame models
from camwatch.models.frames import PixelBuffer

# Motion models
from camwatch.models.motion import (
    MAX_INTENSITY,
    MotionEvent,
    MotionReading,
    MotionStats,
)

# Alert models
from camwatch.models.alerts import (
    ALLOWED_TRANSITIONS,
    Alert,
    AlertCounts,
    AlertSeverity,
    AlertStatus,
    AlertType,
    StatusChange,
    TransitionResult,
)

# Actor models
from camwatch.models.actors import Actor

__all__ = [
    # Frames
    "PixelBuffer",
    # Motion
    "MAX_INTENSITY",
    "MotionReading",
    "MotionEvent",
    "MotionStats",
    # Alerts
    "ALLOWED_TRANSITIONS",
    "AlertSeverity",
    "AlertStatus",
    "AlertType",
    "StatusChange",
    "Alert",
    "AlertCounts",
    "TransitionResult",
    # Actors
    "Actor",
]
