# tests/conftest.py
from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Callable, List, Optional

import pytest

from camwatch.detection.channels.sound import LogSoundSink
from camwatch.detection.dispatcher import AlertDispatcher
from camwatch.detection.manager import AlertLifecycleManager
from camwatch.models import (
    Actor,
    Alert,
    AlertSeverity,
    AlertStatus,
    AlertType,
    MotionReading,
)

T0 = datetime(2025, 1, 26, 12, 0, 0, tzinfo=timezone.utc)


def at_ms(offset_ms: int) -> datetime:
    return T0 + timedelta(milliseconds=offset_ms)


class RecordingChannel:
    """Notification channel that remembers what it was sent."""

    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.received: List[Alert] = []

    async def notify(self, alert: Alert) -> None:
        if self.fail:
            raise ConnectionError("channel offline")
        self.received.append(alert)


class FailingSoundSink:
    async def play(self, cue_id: str, volume: float) -> None:
        raise RuntimeError("no audio device")


@pytest.fixture
def t0() -> datetime:
    return T0


@pytest.fixture
def reading() -> Callable[..., MotionReading]:
    def _make(intensity: float, offset_ms: int = 0) -> MotionReading:
        return MotionReading(
            intensity=intensity,
            pixel_change_count=0,
            mean_channel_delta=intensity,
            captured_at=at_ms(offset_ms),
        )

    return _make


@pytest.fixture
def make_alert() -> Callable[..., Alert]:
    counter = iter(range(1, 10_000))

    def _make(
        alert_id: Optional[str] = None,
        severity: AlertSeverity = AlertSeverity.MEDIUM,
        status: AlertStatus = AlertStatus.NEW,
        source_id: str = "CAM-1",
        source_name: str = "Front Door",
        alert_type: AlertType = AlertType.MOTION,
        description: str = "Motion detected (45.0% intensity)",
        offset_ms: int = 0,
    ) -> Alert:
        n = next(counter)
        return Alert(
            alert_id=alert_id or f"{source_id}-{n}",
            alert_type=alert_type,
            source_id=source_id,
            source_name=source_name,
            severity=severity,
            confidence=45.0,
            description=description,
            created_at=at_ms(offset_ms + n),
            status=status,
        )

    return _make


@pytest.fixture
def manager_actor() -> Actor:
    return Actor(actor_id="mgr-1", role="manager")


@pytest.fixture
def operator_actor() -> Actor:
    return Actor(actor_id="op-1", role="operator")


@pytest.fixture
def channel() -> RecordingChannel:
    return RecordingChannel()


@pytest.fixture
def sound_sink() -> LogSoundSink:
    return LogSoundSink()


@pytest.fixture
def dispatcher(channel: RecordingChannel, sound_sink: LogSoundSink) -> AlertDispatcher:
    return AlertDispatcher(channels={"console": channel}, sound_sink=sound_sink)


@pytest.fixture
def manager(dispatcher: AlertDispatcher) -> AlertLifecycleManager:
    return AlertLifecycleManager(dispatcher=dispatcher)
