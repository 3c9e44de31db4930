# motor_telemetry/models/device.py
"""
Device registry table.
One row per distinct device name, created lazily the first time a packet
from that name is ingested. The unique constraint on name is what keeps
concurrent first-sight resolutions from creating duplicates.
"""

from sqlalchemy import Column, Integer, String, DateTime, Text
from motor_telemetry.database import Base


class Device(Base):
    __tablename__ = "devices"

    device_id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), unique=True, nullable=False, index=True)
    description = Column(Text)
    created_at = Column(DateTime, nullable=False)

    def __repr__(self):
        return f"<Device {self.device_id} name={self.name}>"
