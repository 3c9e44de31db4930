# Motor Telemetry — Database Models
# Import all models here for SQLAlchemy discovery

from motor_telemetry.models.device import Device                        # noqa
from motor_telemetry.models.telemetry_sample import TelemetrySample     # noqa
from motor_telemetry.models.raw_event import RawEvent                   # noqa
from motor_telemetry.models.anomaly_event import AnomalyEvent           # noqa
