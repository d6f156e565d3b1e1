from uxpulse.models.base import Base
from uxpulse.models.entities import TelemetryEventRecord

__all__ = ["Base", "TelemetryEventRecord"]
