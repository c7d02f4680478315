from .registry import create_fix_source
from .simulator import SimulatedFixSource, SimulatorConfig
from .sources import ErrorCallback, FixCallback, FixSource, ReplayFixSource, ThreadedFixSource

__all__ = [
    "ErrorCallback",
    "FixCallback",
    "FixSource",
    "ReplayFixSource",
    "SimulatedFixSource",
    "SimulatorConfig",
    "ThreadedFixSource",
    "create_fix_source",
]
