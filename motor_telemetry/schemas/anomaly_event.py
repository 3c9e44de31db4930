# motor_telemetry/schemas/anomaly_event.py
from pydantic import BaseModel
from datetime import datetime
from typing import Optional


class AnomalyEventOut(BaseModel):
    anomaly_id: int
    device_id: int
    timestamp: datetime
    event_type: str
    message: Optional[str]

    class Config:
        from_attributes = True
