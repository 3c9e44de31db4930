# motor_telemetry/schemas/device.py
from pydantic import BaseModel
from datetime import datetime
from typing import Optional


class DeviceOut(BaseModel):
    device_id: int
    name: str
    description: Optional[str]
    created_at: Optional[datetime]

    class Config:
        from_attributes = True
