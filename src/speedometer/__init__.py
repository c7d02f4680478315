from speedometer.geometry.geodesic import haversine_km
from speedometer.pipeline.session import PipelineConfig, TrackingSession, build_aggregator
from speedometer.speed_estimation.estimator import FixSpeedEstimator
from speedometer.speed_estimation.smoothing import AdaptiveSpeedSmoother
from speedometer.trip.aggregator import TripAggregator
from speedometer.trip.state import TripSnapshot
from speedometer.utils.types import AcquisitionError, Fix, fix_from_dict

__version__ = "0.1.0"

__all__ = [
    "AcquisitionError",
    "AdaptiveSpeedSmoother",
    "Fix",
    "FixSpeedEstimator",
    "PipelineConfig",
    "TrackingSession",
    "TripAggregator",
    "TripSnapshot",
    "build_aggregator",
    "fix_from_dict",
    "haversine_km",
]
