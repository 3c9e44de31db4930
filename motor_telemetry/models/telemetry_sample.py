# motor_telemetry/models/telemetry_sample.py
"""
Telemetry metrics table.
One row per accepted telemetry packet. Numeric readings are nullable because
devices may omit any of them; fault flags default to false.
"""

from sqlalchemy import Column, Integer, Float, Boolean, DateTime, ForeignKey
from motor_telemetry.database import Base


class TelemetrySample(Base):
    __tablename__ = "telemetry_metrics"

    id = Column(Integer, primary_key=True, autoincrement=True)
    device_id = Column(Integer, ForeignKey("devices.device_id"), nullable=False, index=True)
    timestamp = Column(DateTime, nullable=False, index=True)
    target_rpm = Column(Float)
    rpm = Column(Float)
    deviation_rpm = Column(Float)
    deviation_pct = Column(Float)
    pwm = Column(Float)
    duty_pct = Column(Float)
    delta_counts = Column(Float)
    sudden_drop = Column(Boolean, default=False, nullable=False)
    stall = Column(Boolean, default=False, nullable=False)
    overshoot = Column(Boolean, default=False, nullable=False)
    encoder_fault = Column(Boolean, default=False, nullable=False)

    def __repr__(self):
        return f"<TelemetrySample {self.id} device={self.device_id} rpm={self.rpm}>"
