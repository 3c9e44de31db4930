# motor_telemetry/schemas/raw_event.py
from pydantic import BaseModel
from datetime import datetime
from typing import Any, Optional


class RawEventOut(BaseModel):
    event_id: int
    device_id: int
    time_s: Optional[float]
    raw: dict[str, Any]
    created_at: datetime

    class Config:
        from_attributes = True
