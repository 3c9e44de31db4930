# motor_telemetry/schemas/telemetry_sample.py
from pydantic import BaseModel
from datetime import datetime
from typing import Optional


class TelemetrySampleOut(BaseModel):
    id: int
    device_id: int
    timestamp: datetime
    target_rpm: Optional[float]
    rpm: Optional[float]
    deviation_rpm: Optional[float]
    deviation_pct: Optional[float]
    pwm: Optional[float]
    duty_pct: Optional[float]
    delta_counts: Optional[float]
    sudden_drop: bool
    stall: bool
    overshoot: bool
    encoder_fault: bool

    class Config:
        from_attributes = True
