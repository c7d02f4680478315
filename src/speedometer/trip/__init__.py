from .aggregator import TripAggregator, TripConfig
from .state import PipelineState, TripSnapshot
from .status import error_status, signal_status

__all__ = ["PipelineState", "TripAggregator", "TripConfig", "TripSnapshot", "error_status", "signal_status"]
