# motor_telemetry/models/raw_event.py
"""
Raw telemetry event table.
Stores the verbatim decoded payload of every accepted packet.
Used for audit trail, debugging, and replay.
"""

from sqlalchemy import Column, Integer, Float, DateTime, ForeignKey, JSON
from sqlalchemy.dialects.postgresql import JSONB
from motor_telemetry.database import Base


class RawEvent(Base):
    __tablename__ = "telemetry_events"

    event_id = Column(Integer, primary_key=True, autoincrement=True)
    device_id = Column(Integer, ForeignKey("devices.device_id"), nullable=False, index=True)
    time_s = Column(Float)
    raw = Column(JSON().with_variant(JSONB(), "postgresql"), nullable=False)
    created_at = Column(DateTime, nullable=False, index=True)

    def __repr__(self):
        return f"<RawEvent {self.event_id} device={self.device_id}>"
