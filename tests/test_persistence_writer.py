"""Tests for the atomic sample + raw event + anomaly write."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from datetime import datetime
import pytest
from unittest.mock import patch
from sqlalchemy import select
from motor_telemetry.models import AnomalyEvent, Device, RawEvent, TelemetrySample
from motor_telemetry.services.persistence_writer import PersistenceWriter, build_anomalies
from motor_telemetry.services.telemetry_decoder import TelemetryFlags, TelemetryReading, decode_payload

FLAG_TO_TYPE = {
    "sudden_drop": "DROP",
    "stall": "STALL",
    "overshoot": "OVERSHOOT",
    "encoder_fault": "ENCODER_FAULT",
}


async def make_device(session_factory, name="motor-01"):
    async with session_factory() as db:
        device = Device(name=name, description="Telemetry device", created_at=datetime.utcnow())
        db.add(device)
        await db.commit()
        return device.device_id


async def fetch_all(session_factory, model):
    async with session_factory() as db:
        return (await db.execute(select(model))).scalars().all()


class TestBuildAnomalies:
    def test_no_flags_no_anomalies(self):
        reading = TelemetryReading(device_name="m", rpm=1500, target_rpm=1500)
        assert build_anomalies(reading, reading.flags) == []

    def test_messages_carry_numeric_context(self):
        reading = TelemetryReading(device_name="m", rpm=5, target_rpm=1500, pwm=250, delta_counts=0)
        flags = TelemetryFlags(sudden_drop=True, stall=True, overshoot=True, encoder_fault=True)
        assert build_anomalies(reading, flags) == [
            ("DROP", "Sudden RPM drop detected (rpm=5, target=1500)"),
            ("STALL", "Possible stall / high load (rpm=5, pwm=250)"),
            ("OVERSHOOT", "RPM overshoot (rpm=5, target=1500)"),
            ("ENCODER_FAULT", "Encoder not updating while PWM=250, delta_counts=0"),
        ]

    def test_missing_numbers_render_as_none(self):
        reading = TelemetryReading(device_name="m", rpm=12.5)
        flags = TelemetryFlags(overshoot=True)
        assert build_anomalies(reading, flags) == [("OVERSHOOT", "RPM overshoot (rpm=12.5, target=None)")]


class TestPersistenceWriter:
    @pytest.mark.asyncio
    async def test_normal_packet_writes_sample_and_raw(self, session_factory):
        device_id = await make_device(session_factory)
        reading = decode_payload(
            b'{"device_name": "motor-01", "time_s": 3.5, "rpm": 1500, "target_rpm": 1500, '
            b'"pwm": 120, "duty_pct": 47.0, "flags": {}}',
            "motor-driver-01",
        )

        assert await PersistenceWriter(session_factory).write(device_id, reading, reading.raw, reading.flags)

        samples = await fetch_all(session_factory, TelemetrySample)
        raws = await fetch_all(session_factory, RawEvent)
        assert len(samples) == 1 and len(raws) == 1
        assert await fetch_all(session_factory, AnomalyEvent) == []

        sample = samples[0]
        assert sample.device_id == device_id
        assert sample.rpm == 1500
        assert sample.duty_pct == 47.0
        assert sample.stall is False and sample.encoder_fault is False
        assert sample.timestamp is not None
        assert raws[0].raw == reading.raw
        assert raws[0].time_s == 3.5

    @pytest.mark.asyncio
    @pytest.mark.parametrize("flags", [
        {"stall": True},
        {"stall": True, "overshoot": True},
        {"sudden_drop": True, "encoder_fault": True},
        {"sudden_drop": True, "stall": True, "overshoot": True, "encoder_fault": True},
    ])
    async def test_one_anomaly_per_true_flag(self, session_factory, flags):
        device_id = await make_device(session_factory)
        reading = TelemetryReading(device_name="motor-01", rpm=5, pwm=250, flags=TelemetryFlags(**flags))

        assert await PersistenceWriter(session_factory).write(device_id, reading, {"rpm": 5}, reading.flags)

        anomalies = await fetch_all(session_factory, AnomalyEvent)
        assert sorted(a.event_type for a in anomalies) == sorted(FLAG_TO_TYPE[f] for f in flags)
        sample = (await fetch_all(session_factory, TelemetrySample))[0]
        for name in FLAG_TO_TYPE:
            assert getattr(sample, name) is flags.get(name, False)
        assert {a.timestamp for a in anomalies} == {sample.timestamp}

    @pytest.mark.asyncio
    async def test_failure_after_sample_insert_rolls_back_everything(self, session_factory, count_rows):
        device_id = await make_device(session_factory)
        reading = TelemetryReading(device_name="motor-01", rpm=5, pwm=250,
                                   flags=TelemetryFlags(stall=True, overshoot=True))

        with patch("motor_telemetry.services.persistence_writer.build_anomalies",
                   side_effect=RuntimeError("connection lost")):
            ok = await PersistenceWriter(session_factory).write(device_id, reading, {"rpm": 5}, reading.flags)

        assert ok is False
        assert await count_rows(TelemetrySample) == 0
        assert await count_rows(RawEvent) == 0
        assert await count_rows(AnomalyEvent) == 0

    @pytest.mark.asyncio
    async def test_unserialisable_payload_fails_cleanly(self, session_factory, count_rows):
        device_id = await make_device(session_factory)
        reading = TelemetryReading(device_name="motor-01", rpm=5)

        ok = await PersistenceWriter(session_factory).write(
            device_id, reading, {"bad": object()}, reading.flags
        )

        assert ok is False
        assert await count_rows(TelemetrySample) == 0
        assert await count_rows(RawEvent) == 0

    @pytest.mark.asyncio
    async def test_next_write_after_failure_succeeds(self, session_factory, count_rows):
        device_id = await make_device(session_factory)
        writer = PersistenceWriter(session_factory)
        reading = TelemetryReading(device_name="motor-01", rpm=5, flags=TelemetryFlags(stall=True))

        assert await writer.write(device_id, reading, {"bad": object()}, reading.flags) is False
        assert await writer.write(device_id, reading, {"rpm": 5}, reading.flags) is True
        assert await count_rows(TelemetrySample) == 1
        assert await count_rows(AnomalyEvent) == 1
