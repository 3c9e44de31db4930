"""Unit tests for the anomaly classifier."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import pytest
from motor_telemetry.services.anomaly_classifier import classify, STATUS_ALERT, STATUS_OK
from motor_telemetry.services.telemetry_decoder import TelemetryFlags, TelemetryReading, decode_payload


def make_reading(**flags):
    return TelemetryReading(device_name="motor-01", rpm=1500, target_rpm=1500,
                            pwm=120, flags=TelemetryFlags(**flags))


class TestAnomalyClassifier:
    def test_no_flags_is_ok(self):
        result = classify(make_reading())
        assert result.status == STATUS_OK
        assert not result.is_alert
        assert result.active_flags() == []

    @pytest.mark.parametrize("flag", ["sudden_drop", "stall", "overshoot", "encoder_fault"])
    def test_any_flag_is_alert(self, flag):
        result = classify(make_reading(**{flag: True}))
        assert result.status == STATUS_ALERT
        assert result.active_flags() == [flag]

    def test_reported_status_forces_alert(self):
        result = classify(make_reading(status="DEGRADED"))
        assert result.status == STATUS_ALERT
        assert result.reported_status == "DEGRADED"

    def test_flags_passed_through_unchanged(self):
        reading = make_reading(stall=True, overshoot=True)
        result = classify(reading)
        assert result.flags is reading.flags
        assert result.active_flags() == ["stall", "overshoot"]

    def test_does_not_recompute_thresholds(self):
        """A reading far off target but with no device flags stays OK."""
        reading = TelemetryReading(device_name="motor-01", rpm=5, target_rpm=1500, pwm=250)
        assert classify(reading).status == STATUS_OK

    def test_classification_is_idempotent(self):
        reading = decode_payload(
            b'{"rpm": 5, "pwm": 250, "flags": {"stall": true, "encoder_fault": true}}', "motor-driver-01"
        )
        first, second = classify(reading), classify(reading)
        assert first == second
        assert first.status == second.status == STATUS_ALERT
        assert first.flags == second.flags
