from __future__ import annotations

import math

import pytest

from camwatch.detection.history import MotionHistory

from conftest import at_ms


def test_stats_for_unknown_source_are_zero():
    stats = MotionHistory().stats("CAM-9")

    assert stats.source_id == "CAM-9"
    assert stats.sample_count == 0
    assert stats.detections == 0
    assert stats.last_detection is None


def test_stats_summarise_window(reading):
    history = MotionHistory(window_size=10)
    for off, intensity in [(0, 5.0), (1000, 45.0), (2000, 20.0), (3000, 60.0)]:
        history.record("CAM-1", reading(intensity, off), threshold=30)

    stats = history.stats("CAM-1")

    assert stats.sample_count == 4
    assert stats.detections == 2
    assert math.isclose(stats.average_intensity, 32.5)
    assert stats.peak_intensity == 60.0
    assert stats.last_detection == at_ms(3000)


def test_window_drops_oldest_readings(reading):
    history = MotionHistory(window_size=3)
    for off, intensity in enumerate([99.0, 1.0, 2.0, 3.0]):
        history.record("CAM-1", reading(intensity, off), threshold=30)

    stats = history.stats("CAM-1")

    assert stats.sample_count == 3
    assert stats.peak_intensity == 3.0
    assert stats.detections == 0


def test_reset_drops_one_source(reading):
    history = MotionHistory()
    history.record("CAM-1", reading(50.0), threshold=30)
    history.record("CAM-2", reading(50.0), threshold=30)

    history.reset("CAM-1")

    assert history.stats("CAM-1").sample_count == 0
    assert history.stats("CAM-2").sample_count == 1
    assert len(history) == 1


def test_window_size_must_be_positive():
    with pytest.raises(ValueError):
        MotionHistory(window_size=0)
