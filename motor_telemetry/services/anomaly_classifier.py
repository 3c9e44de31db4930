# motor_telemetry/services/anomaly_classifier.py
"""
Derives the overall status of a telemetry reading from its fault flags.

The devices compute their own thresholds (sudden drop, stall, overshoot,
encoder fault) and report the outcome as flags; this module trusts them and
only summarises. Pure function, no I/O.
"""

from dataclasses import dataclass
from typing import Optional
from motor_telemetry.services.telemetry_decoder import TelemetryFlags, TelemetryReading, FLAG_FIELDS

STATUS_OK = "OK"
STATUS_ALERT = "ALERT"


@dataclass(frozen=True)
class Classification:
    status: str                          # OK | ALERT, not persisted
    flags: TelemetryFlags
    reported_status: Optional[str] = None

    def active_flags(self) -> list[str]:
        """Names of the true flags, in sudden_drop/stall/overshoot/encoder_fault order."""
        return [name for name in FLAG_FIELDS if getattr(self.flags, name)]

    @property
    def is_alert(self) -> bool:
        return self.status == STATUS_ALERT


def classify(reading: TelemetryReading) -> Classification:
    flags = reading.flags
    if flags.status is not None:
        status = STATUS_ALERT
    elif flags.sudden_drop or flags.stall or flags.overshoot or flags.encoder_fault:
        status = STATUS_ALERT
    else:
        status = STATUS_OK
    return Classification(status=status, flags=flags, reported_status=flags.status)
