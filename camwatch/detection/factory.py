"""
Alert factory mapping motion events to alert records.

This module provides the AlertFactory class, the only place alerts are
created. It fixes severity from intensity, fills the description template
for the alert type and assigns session-unique ids.

Severity Mapping:
    intensity > 80          -> critical
    60 < intensity <= 80    -> high
    30 < intensity <= 60    -> medium
    intensity <= 30         -> low

With the default gate threshold of 30, most admitted motion alerts are
medium or above; low-severity motion alerts are rare by construction.

Example:
    >>> factory = AlertFactory()
    >>> alert = factory.create(event, source_name="Front Door")
    >>> alert.severity, alert.description
    (<AlertSeverity.CRITICAL: 'critical'>, 'Motion detected (95.0% intensity)')
"""

import itertools
import threading
from datetime import datetime, timezone
from typing import Dict, Optional

import structlog

from camwatch.models.alerts import Alert, AlertSeverity, AlertType
from camwatch.models.motion import MAX_INTENSITY, MotionEvent

logger = structlog.get_logger(__name__)


DESCRIPTION_TEMPLATES: Dict[AlertType, str] = {
    AlertType.MOTION: "Motion detected ({intensity:.1f}% intensity)",
    AlertType.PERSON: "Person detected in restricted area",
    AlertType.VEHICLE: "Vehicle detected in parking area",
    AlertType.SUSPICIOUS: "Suspicious activity detected",
    AlertType.CONNECTION_LOST: "Camera connection lost - attempting to reconnect",
}

CONNECTION_LOST_SEVERITY = AlertSeverity.HIGH


def severity_for_intensity(intensity: float) -> AlertSeverity:
    """
    Map a 0-100 intensity to a severity.

    Args:
        intensity: Motion intensity.

    Returns:
        AlertSeverity: The severity band.

    Example:
        >>> [severity_for_intensity(i).value for i in (30, 31, 60, 61, 80, 81)]
        ['low', 'medium', 'medium', 'high', 'high', 'critical']
    """
    if intensity > 80:
        return AlertSeverity.CRITICAL
    elif intensity > 60:
        return AlertSeverity.HIGH
    elif intensity > 30:
        return AlertSeverity.MEDIUM
    return AlertSeverity.LOW


class AlertFactory:
    """
    Creates Alert records from motion events and connection losses.

    Ids have the form ``{source_id}-{epoch_ms}-{n}`` where ``n`` comes from
    a counter shared by all sources, so two sources firing in the same
    millisecond still get distinct ids.

    Attributes:
        _counter: Monotonic id disambiguator.
        _lock: Guards the counter for callers on sampler threads.
    """

    def __init__(self) -> None:
        self._counter = itertools.count(1)
        self._lock = threading.Lock()

    def next_id(self, source_id: str, timestamp: datetime) -> str:
        """
        Allocate a new alert id.

        Args:
            source_id: The originating source.
            timestamp: Creation time.

        Returns:
            str: A session-unique id.
        """
        with self._lock:
            n = next(self._counter)
        epoch_ms = int(timestamp.timestamp() * 1000)
        return f"{source_id}-{epoch_ms}-{n}"

    def create(
        self,
        event: MotionEvent,
        source_name: str,
        alert_type: AlertType = AlertType.MOTION,
        confidence: Optional[float] = None,
    ) -> Alert:
        """
        Create an alert from a gate event.

        Args:
            event: The motion event emitted by the gate.
            source_name: Display name of the camera.
            alert_type: Alert type (motion unless an upstream detector
                classified the event).
            confidence: Externally supplied confidence for non-motion types;
                defaults to the reading's intensity.

        Returns:
            Alert: A new alert with status ``new``.
        """
        intensity = event.reading.intensity
        alert = Alert(
            alert_id=self.next_id(event.source_id, event.triggered_at),
            alert_type=alert_type,
            source_id=event.source_id,
            source_name=source_name,
            severity=severity_for_intensity(intensity),
            confidence=intensity if confidence is None else confidence,
            description=DESCRIPTION_TEMPLATES[alert_type].format(intensity=intensity),
            created_at=event.triggered_at,
            reading=event.reading,
        )

        logger.debug(
            "alert_created",
            alert_id=alert.alert_id,
            alert_type=alert_type.value,
            severity=alert.severity.value,
            confidence=round(alert.confidence, 2),
        )
        return alert

    def create_connection_lost(
        self,
        source_id: str,
        source_name: str,
        timestamp: Optional[datetime] = None,
    ) -> Alert:
        """
        Create a connection-lost alert, bypassing the motion gate.

        Args:
            source_id: The source that went offline.
            source_name: Display name of the camera.
            timestamp: When the loss was detected (defaults to now, UTC).

        Returns:
            Alert: A high-severity alert with full confidence.
        """
        if timestamp is None:
            timestamp = datetime.now(timezone.utc)

        alert = Alert(
            alert_id=self.next_id(source_id, timestamp),
            alert_type=AlertType.CONNECTION_LOST,
            source_id=source_id,
            source_name=source_name,
            severity=CONNECTION_LOST_SEVERITY,
            confidence=MAX_INTENSITY,
            description=DESCRIPTION_TEMPLATES[AlertType.CONNECTION_LOST],
            created_at=timestamp,
        )

        logger.debug(
            "alert_created",
            alert_id=alert.alert_id,
            alert_type=AlertType.CONNECTION_LOST.value,
            severity=alert.severity.value,
        )
        return alert
