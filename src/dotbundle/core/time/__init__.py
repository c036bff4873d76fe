from dotbundle.core.time.abc import Time
from dotbundle.core.time.real import RealTime

__all__ = ["RealTime", "Time"]
