# motor_telemetry/services/persistence_writer.py
"""
Writes one ingested telemetry packet to the database.

A single transaction holds the telemetry_metrics row, the telemetry_events
raw copy and one anomaly_events row per true flag. Any failure rolls all of
them back; the caller only gets True/False.
"""

from datetime import datetime
from typing import Any, Optional
from sqlalchemy.ext.asyncio import async_sessionmaker
from motor_telemetry.models.anomaly_event import AnomalyEvent
from motor_telemetry.models.raw_event import RawEvent
from motor_telemetry.models.telemetry_sample import TelemetrySample
from motor_telemetry.services.telemetry_decoder import TelemetryFlags, TelemetryReading
from motor_telemetry.utils.logger import get_logger

logger = get_logger(__name__)

def _fmt(value: Optional[float]) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def build_anomalies(reading: TelemetryReading, flags: TelemetryFlags) -> list[tuple[str, str]]:
    """(event_type, message) for every true flag, in a fixed order."""
    rpm, target, pwm = _fmt(reading.rpm), _fmt(reading.target_rpm), _fmt(reading.pwm)
    anomalies = []
    if flags.sudden_drop:
        anomalies.append(("DROP", f"Sudden RPM drop detected (rpm={rpm}, target={target})"))
    if flags.stall:
        anomalies.append(("STALL", f"Possible stall / high load (rpm={rpm}, pwm={pwm})"))
    if flags.overshoot:
        anomalies.append(("OVERSHOOT", f"RPM overshoot (rpm={rpm}, target={target})"))
    if flags.encoder_fault:
        anomalies.append((
            "ENCODER_FAULT",
            f"Encoder not updating while PWM={pwm}, delta_counts={_fmt(reading.delta_counts)}",
        ))
    return anomalies


class PersistenceWriter:
    def __init__(self, session_factory: async_sessionmaker):
        self._session_factory = session_factory

    async def write(self, device_id: int, reading: TelemetryReading,
                    raw_payload: dict[str, Any], flags: TelemetryFlags) -> bool:
        """Commit sample + raw event + anomalies atomically. Returns False on failure."""
        now = datetime.utcnow()
        try:
            async with self._session_factory() as db:
                async with db.begin():
                    db.add(TelemetrySample(
                        device_id=device_id,
                        timestamp=now,
                        target_rpm=reading.target_rpm,
                        rpm=reading.rpm,
                        deviation_rpm=reading.deviation_rpm,
                        deviation_pct=reading.deviation_pct,
                        pwm=reading.pwm,
                        duty_pct=reading.duty_pct,
                        delta_counts=reading.delta_counts,
                        sudden_drop=flags.sudden_drop,
                        stall=flags.stall,
                        overshoot=flags.overshoot,
                        encoder_fault=flags.encoder_fault,
                    ))
                    db.add(RawEvent(
                        device_id=device_id,
                        time_s=reading.time_s,
                        raw=raw_payload,
                        created_at=now,
                    ))
                    await db.flush()

                    for event_type, message in build_anomalies(reading, flags):
                        db.add(AnomalyEvent(
                            device_id=device_id,
                            timestamp=now,
                            event_type=event_type,
                            message=message,
                        ))
        except Exception as e:
            logger.error(f"Database error while storing telemetry for device_id={device_id}: {e}",
                         exc_info=True)
            return False
        return True
