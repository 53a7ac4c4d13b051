from __future__ import annotations

import pytest

from camwatch.detection.factory import AlertFactory, severity_for_intensity
from camwatch.models import AlertSeverity, AlertStatus, AlertType, MotionEvent

from conftest import T0


@pytest.mark.parametrize(
    "intensity, expected",
    [
        (0.0, AlertSeverity.LOW),
        (30.0, AlertSeverity.LOW),
        (30.01, AlertSeverity.MEDIUM),
        (31.0, AlertSeverity.MEDIUM),
        (60.0, AlertSeverity.MEDIUM),
        (61.0, AlertSeverity.HIGH),
        (80.0, AlertSeverity.HIGH),
        (81.0, AlertSeverity.CRITICAL),
        (100.0, AlertSeverity.CRITICAL),
    ],
)
def test_severity_boundaries(intensity, expected):
    assert severity_for_intensity(intensity) == expected


def _event(reading, intensity: float, source_id: str = "CAM-1") -> MotionEvent:
    r = reading(intensity)
    return MotionEvent(source_id=source_id, reading=r, triggered_at=r.captured_at)


def test_create_motion_alert(reading):
    alert = AlertFactory().create(_event(reading, 95.0), source_name="Front Door")

    assert alert.alert_type == AlertType.MOTION
    assert alert.severity == AlertSeverity.CRITICAL
    assert alert.confidence == 95.0
    assert alert.description == "Motion detected (95.0% intensity)"
    assert alert.source_name == "Front Door"
    assert alert.created_at == T0
    assert alert.status == AlertStatus.NEW
    assert [(c.status, c.changed_at) for c in alert.status_history] == [
        (AlertStatus.NEW, T0)
    ]
    assert alert.reading is not None and alert.reading.intensity == 95.0
    assert alert.sound_cue == "alert-motion"


def test_alert_ids_are_unique_within_same_millisecond(reading):
    factory = AlertFactory()

    ids = {
        factory.create(_event(reading, 50.0, source_id=src), source_name=src).alert_id
        for src in ("CAM-1", "CAM-1", "CAM-2", "CAM-2", "CAM-1")
    }

    assert len(ids) == 5
    assert all(i.startswith(("CAM-1-", "CAM-2-")) for i in ids)


def test_alert_id_format(t0):
    alert_id = AlertFactory().next_id("CAM-3", t0)

    source, epoch_ms, n = alert_id.rsplit("-", 2)
    assert source == "CAM-3"
    assert int(epoch_ms) == int(t0.timestamp() * 1000)
    assert int(n) == 1


def test_classified_alert_uses_type_template_and_supplied_confidence(reading):
    alert = AlertFactory().create(
        _event(reading, 70.0),
        source_name="Parking Lot",
        alert_type=AlertType.VEHICLE,
        confidence=88.0,
    )

    assert alert.description == "Vehicle detected in parking area"
    assert alert.confidence == 88.0
    assert alert.severity == AlertSeverity.HIGH
    assert alert.sound_cue == "alert-vehicle"


def test_connection_lost_alert(t0):
    alert = AlertFactory().create_connection_lost("CAM-2", "Parking Lot", timestamp=t0)

    assert alert.alert_type == AlertType.CONNECTION_LOST
    assert alert.severity == AlertSeverity.HIGH
    assert alert.confidence == 100.0
    assert alert.description == "Camera connection lost - attempting to reconnect"
    assert alert.reading is None
    assert alert.created_at == t0
