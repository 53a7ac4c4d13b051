"""
Alert data models for the surveillance pipeline.

This module defines the durable alert record, its classification enums and
the status state machine the lifecycle manager enforces.

Models:
    AlertSeverity: Severity levels (low, medium, high, critical)
    AlertStatus: Lifecycle status (new, acknowledged, investigating, dismissed)
    AlertType: What raised the alert (motion, connection_lost, ...)
    StatusChange: One entry of an alert's status history
    Alert: Durable alert instance
    AlertCounts: Aggregate counts by status
    TransitionResult: Per-id outcome of a bulk transition
"""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, FrozenSet, Optional, Tuple

from pydantic import BaseModel, Field, model_validator

from camwatch.models.motion import MotionReading


class AlertSeverity(str, Enum):
    """
    Alert severity levels.

    Attributes:
        LOW: Minor change, awareness only.
        MEDIUM: Noticeable activity.
        HIGH: Significant activity or a lost camera.
        CRITICAL: Severe activity requiring immediate attention.
    """

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"

    @property
    def is_urgent(self) -> bool:
        """Check if this severity warrants escalated delivery (high or critical)."""
        return self in (AlertSeverity.HIGH, AlertSeverity.CRITICAL)


class AlertStatus(str, Enum):
    """
    Alert lifecycle status.

    Attributes:
        NEW: Admitted, nobody has looked at it yet.
        ACKNOWLEDGED: An operator has seen it.
        INVESTIGATING: Someone is following it up.
        DISMISSED: Closed. Terminal.
    """

    NEW = "new"
    ACKNOWLEDGED = "acknowledged"
    INVESTIGATING = "investigating"
    DISMISSED = "dismissed"

    @property
    def is_terminal(self) -> bool:
        """Check if no further transitions are possible."""
        return not ALLOWED_TRANSITIONS[self]

    def can_transition_to(self, target: "AlertStatus") -> bool:
        """
        Check whether the state machine allows moving to target.

        Args:
            target: The requested status.

        Returns:
            bool: True if the edge exists.

        Example:
            >>> AlertStatus.NEW.can_transition_to(AlertStatus.INVESTIGATING)
            True
            >>> AlertStatus.DISMISSED.can_transition_to(AlertStatus.ACKNOWLEDGED)
            False
        """
        return target in ALLOWED_TRANSITIONS[self]


ALLOWED_TRANSITIONS: Dict[AlertStatus, FrozenSet[AlertStatus]] = {
    AlertStatus.NEW: frozenset(
        {AlertStatus.ACKNOWLEDGED, AlertStatus.INVESTIGATING, AlertStatus.DISMISSED}
    ),
    AlertStatus.ACKNOWLEDGED: frozenset(
        {AlertStatus.INVESTIGATING, AlertStatus.DISMISSED}
    ),
    AlertStatus.INVESTIGATING: frozenset({AlertStatus.DISMISSED}),
    AlertStatus.DISMISSED: frozenset(),
}


class AlertType(str, Enum):
    """
    What raised an alert.

    Attributes:
        MOTION: Frame-difference motion above threshold.
        PERSON: Person reported by an upstream detector.
        VEHICLE: Vehicle reported by an upstream detector.
        SUSPICIOUS: Suspicious activity reported upstream.
        CONNECTION_LOST: The camera stopped delivering frames.
    """

    MOTION = "motion"
    PERSON = "person"
    VEHICLE = "vehicle"
    SUSPICIOUS = "suspicious"
    CONNECTION_LOST = "connection_lost"

    @property
    def sound_cue(self) -> str:
        """Sound cue identifier played when an alert of this type arrives."""
        return f"alert-{self.value}"


class StatusChange(BaseModel):
    """One (status, timestamp) entry in an alert's history."""

    model_config = {"frozen": True, "extra": "forbid"}

    status: AlertStatus
    changed_at: datetime


class Alert(BaseModel):
    """
    Durable alert instance.

    Alerts are frozen. A status change produces a new copy through
    ``with_status``; only the lifecycle manager calls it, so the registry
    copy is the single source of truth.

    Attributes:
        alert_id: Unique identifier, never reused.
        alert_type: What raised the alert.
        source_id: Originating camera/sensor.
        source_name: Human-readable camera name.
        severity: Severity fixed at creation.
        confidence: 0-100 confidence, the motion intensity for motion alerts.
        description: Human-readable summary.
        created_at: Creation time.
        status: Current lifecycle status.
        status_history: Ordered status changes, starting with (new, created_at).
        reading: The motion reading behind the alert, if any.

    Example:
        >>> alert = Alert(
        ...     alert_id="CAM-1-1737892800000-1",
        ...     alert_type=AlertType.MOTION,
        ...     source_id="CAM-1",
        ...     source_name="Front Door",
        ...     severity=AlertSeverity.CRITICAL,
        ...     confidence=95.0,
        ...     description="Motion detected (95.0% intensity)",
        ...     created_at=datetime(2025, 1, 26, 12, 0, 0),
        ... )
        >>> alert.status
        <AlertStatus.NEW: 'new'>
    """

    model_config = {"frozen": True, "extra": "forbid"}

    # Identification
    alert_id: str = Field(
        ...,
        description="Unique identifier for this alert instance",
        min_length=1,
    )
    alert_type: AlertType = Field(
        default=AlertType.MOTION,
        description="What raised the alert",
    )

    # Location
    source_id: str = Field(
        ...,
        description="Originating camera/sensor identifier",
        min_length=1,
    )
    source_name: str = Field(
        ...,
        description="Human-readable camera name",
    )

    # Classification
    severity: AlertSeverity = Field(
        ...,
        description="Alert severity",
    )
    confidence: float = Field(
        ...,
        description="Confidence on the 0-100 scale",
        ge=0.0,
        le=100.0,
    )
    description: str = Field(
        ...,
        description="Human-readable summary",
    )

    # Lifecycle
    created_at: datetime = Field(
        ...,
        description="When the alert was created",
    )
    status: AlertStatus = Field(
        default=AlertStatus.NEW,
        description="Current lifecycle status",
    )
    status_history: Tuple[StatusChange, ...] = Field(
        default=(),
        description="Ordered status changes",
    )

    # Context
    reading: Optional[MotionReading] = Field(
        default=None,
        description="Motion reading that triggered the alert",
    )

    @model_validator(mode="before")
    @classmethod
    def seed_history(cls, data: Any) -> Any:
        """Start the history with the initial status at creation time."""
        if (
            isinstance(data, dict)
            and not data.get("status_history")
            and data.get("created_at") is not None
        ):
            data = dict(data)
            data["status_history"] = (
                {
                    "status": data.get("status", AlertStatus.NEW),
                    "changed_at": data["created_at"],
                },
            )
        return data

    @property
    def is_active(self) -> bool:
        """Check if the alert can still move (not dismissed)."""
        return not self.status.is_terminal

    @property
    def sound_cue(self) -> str:
        """Sound cue for this alert's type."""
        return self.alert_type.sound_cue

    def with_status(self, status: AlertStatus, timestamp: datetime) -> "Alert":
        """
        Return a copy with a new status and the change recorded.

        No state-machine checks happen here; the manager validates first.

        Args:
            status: The new status.
            timestamp: When the change happened.

        Returns:
            Alert: Updated copy.
        """
        return self.model_copy(
            update={
                "status": status,
                "status_history": self.status_history
                + (StatusChange(status=status, changed_at=timestamp),),
            }
        )

    def matches_text(self, text: str) -> bool:
        """Case-insensitive substring match on description and source name."""
        needle = text.casefold()
        return needle in self.description.casefold() or needle in self.source_name.casefold()


class AlertCounts(BaseModel):
    """Alert totals by status."""

    model_config = {"frozen": True, "extra": "forbid"}

    total: int = Field(default=0, ge=0)
    new: int = Field(default=0, ge=0)
    acknowledged: int = Field(default=0, ge=0)
    investigating: int = Field(default=0, ge=0)
    dismissed: int = Field(default=0, ge=0)


class TransitionResult(BaseModel):
    """
    Outcome of one id within a bulk transition.

    Attributes:
        alert_id: The targeted alert.
        success: Whether the transition was applied.
        status: Status after the call (None if the alert does not exist).
        error: Error class name on failure (e.g. "InvalidTransition").
        message: Error message on failure.
    """

    model_config = {"frozen": True, "extra": "forbid"}

    alert_id: str
    success: bool
    status: Optional[AlertStatus] = None
    error: Optional[str] = None
    message: Optional[str] = None
