# motor_telemetry/services/telemetry_decoder.py
"""
Parses raw MQTT telemetry payloads from motor-driver devices.
Returns a typed TelemetryReading; every defaulting rule lives here so the
rest of the pipeline never touches the untyped JSON document.

Expected packet shape:
    {
      "device_name": "motor-01",
      "time_s": 12.5,
      "target_rpm": 1500, "rpm": 1498, "deviation_rpm": -2, "deviation_pct": -0.13,
      "pwm": 120, "duty_pct": 47.0, "delta_counts": 64,
      "flags": {"sudden_drop": false, "stall": false, "overshoot": false,
                "encoder_fault": false}
    }
"""

from dataclasses import dataclass, field
from typing import Optional, Union
from motor_telemetry.utils.json_parser import safe_parse_json, get_nested, as_number
from motor_telemetry.utils.logger import get_logger

logger = get_logger(__name__)

NUMERIC_FIELDS = (
    "time_s", "target_rpm", "rpm", "deviation_rpm",
    "deviation_pct", "pwm", "duty_pct", "delta_counts",
)
FLAG_FIELDS = ("sudden_drop", "stall", "overshoot", "encoder_fault")


class TelemetryDecodeError(ValueError):
    """Payload is not a JSON object and cannot be ingested."""


@dataclass(frozen=True)
class TelemetryFlags:
    sudden_drop: bool = False
    stall: bool = False
    overshoot: bool = False
    encoder_fault: bool = False
    status: Optional[str] = None     # device-reported status string, if any


@dataclass(frozen=True)
class TelemetryReading:
    device_name: str
    time_s: Optional[float] = None
    target_rpm: Optional[float] = None
    rpm: Optional[float] = None
    deviation_rpm: Optional[float] = None
    deviation_pct: Optional[float] = None
    pwm: Optional[float] = None
    duty_pct: Optional[float] = None
    delta_counts: Optional[float] = None
    flags: TelemetryFlags = field(default_factory=TelemetryFlags)
    raw: dict = field(default_factory=dict, compare=False)


def _preview(payload: Union[bytes, str], limit: int = 200) -> str:
    text = payload.decode("utf-8", errors="replace") if isinstance(payload, bytes) else str(payload)
    return text if len(text) <= limit else text[:limit] + "…"


def _reported_status(data: dict) -> Optional[str]:
    status = get_nested(data, "flags", "status")
    if isinstance(status, str) and status.strip():
        return status
    return None


def decode_payload(payload: Union[bytes, str], default_device_name: str) -> TelemetryReading:
    """
    Decode one telemetry packet.

    Missing numeric fields become None, missing flags default to False, and a
    packet without a usable device_name is attributed to default_device_name.
    Raises TelemetryDecodeError when the payload is not a JSON object.
    """
    data = safe_parse_json(payload)
    if data is None:
        raise TelemetryDecodeError(f"Payload is not valid JSON: {_preview(payload)!r}")
    if not isinstance(data, dict):
        raise TelemetryDecodeError(
            f"Payload must be a JSON object, got {type(data).__name__}: {_preview(payload)!r}"
        )

    device_name = data.get("device_name")
    if not isinstance(device_name, str) or not device_name:
        logger.debug(f"Packet has no device_name, using default '{default_device_name}'")
        device_name = default_device_name

    flags = TelemetryFlags(
        **{name: bool(get_nested(data, "flags", name, default=False)) for name in FLAG_FIELDS},
        status=_reported_status(data),
    )

    return TelemetryReading(
        device_name=device_name,
        flags=flags,
        raw=data,
        **{name: as_number(data.get(name)) for name in NUMERIC_FIELDS},
    )
