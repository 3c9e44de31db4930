# motor_telemetry/models/anomaly_event.py
"""
Anomaly events table. One row per true fault flag of an accepted packet.
event_type is one of DROP | STALL | OVERSHOOT | ENCODER_FAULT.
"""

from sqlalchemy import Column, Integer, String, DateTime, Text, ForeignKey
from motor_telemetry.database import Base


class AnomalyEvent(Base):
    __tablename__ = "anomaly_events"

    anomaly_id = Column(Integer, primary_key=True, autoincrement=True)
    device_id = Column(Integer, ForeignKey("devices.device_id"), nullable=False, index=True)
    timestamp = Column(DateTime, nullable=False, index=True)
    event_type = Column(String(32), nullable=False, index=True)
    message = Column(Text)

    def __repr__(self):
        return f"<AnomalyEvent {self.anomaly_id} type={self.event_type} device={self.device_id}>"
